"""Concrete cryptography for the SBP protocol: an Ed25519-based VRF and hash commitments.

These are example instantiations for exercising the protocol; any
:class:`interfaces.VRFScheme` or :class:`interfaces.CommitmentScheme` can replace them.
"""

import hashlib
import json
from typing import Any, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from constants import DEFAULT_SALT_BITS
from data_models import ProofValue
from field import FiniteField
from interfaces import Commitment, CommitmentScheme, VRFScheme


class CryptoManager:
    """加密管理器，处理签名密钥、签名校验与摘要 / Signing keys, signatures and digests."""

    VRF_CONTEXT = "sbp-vrf-round"

    @staticmethod
    def generate_signature_keypair(rng) -> Tuple[ed25519.Ed25519PrivateKey, bytes]:
        """由随机源生成Ed25519签名密钥对 / Derive an Ed25519 key pair from ``rng``."""
        private_key = ed25519.Ed25519PrivateKey.from_private_bytes(rng.random_bytes(32))
        public_key = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return private_key, public_key

    @staticmethod
    def sign_message(message: bytes, signing_private: ed25519.Ed25519PrivateKey) -> bytes:
        """对消息进行签名 / Sign a message with Ed25519 (deterministic)."""
        return signing_private.sign(message)

    @staticmethod
    def verify_signature(signature: bytes, message: bytes, signing_public_bytes: bytes) -> bool:
        """验证Ed25519签名，返回是否有效; malformed keys or signatures count as invalid."""
        try:
            public_key = ed25519.Ed25519PublicKey.from_public_bytes(signing_public_bytes)
            public_key.verify(signature, message)
            return True
        except (InvalidSignature, ValueError, TypeError):
            return False

    @staticmethod
    def serialize_round_input(round_number: int) -> bytes:
        """序列化轮次输入 / Canonical bytes signed for a given round."""
        payload = {
            'context': CryptoManager.VRF_CONTEXT,
            'round': round_number,
        }
        return json.dumps(payload, sort_keys=True).encode()

    @staticmethod
    def digest_to_int(data: bytes) -> int:
        """SHA-512摘要转整数 / Hash bytes to a 512-bit integer."""
        digest = hashes.Hash(hashes.SHA512(), backend=default_backend())
        digest.update(data)
        return int.from_bytes(digest.finalize(), 'big')


class Ed25519VRFScheme(VRFScheme):
    """VRF from deterministic Ed25519 signatures: proof = sig(round), value = H(proof) in the field."""

    def __init__(self, field: FiniteField) -> None:
        self.field = field

    def _value_from_proof(self, proof: bytes) -> Any:
        return self.field.from_int(CryptoManager.digest_to_int(proof) % self.field.size)

    def create_keypair(self, rng) -> Tuple[bytes, ed25519.Ed25519PrivateKey]:
        private_key, public_key = CryptoManager.generate_signature_keypair(rng)
        return public_key, private_key

    def generate(self, private_key: ed25519.Ed25519PrivateKey, round_number: int) -> ProofValue:
        message = CryptoManager.serialize_round_input(round_number)
        proof = CryptoManager.sign_message(message, private_key)
        return ProofValue(proof=proof, value=self._value_from_proof(proof))

    def verify(self, public_key: bytes, round_number: int, output: ProofValue) -> bool:
        if not isinstance(output, ProofValue) or not isinstance(output.proof, bytes):
            return False
        if not self.field.contains(output.value):
            return False
        message = CryptoManager.serialize_round_input(round_number)
        if not CryptoManager.verify_signature(output.proof, message, public_key):
            return False
        return output.value == self._value_from_proof(output.proof)

    def random_malicious_value(self, rng) -> ProofValue:
        return ProofValue(proof=rng.random_bytes(64), value=self.field.random(rng))

    def __str__(self) -> str:
        return f"Ed25519 VRF over {self.field}"


class HashCommitment(Commitment):
    """哈希承诺 / SHA-256 digest of ``salt|value|salt``."""

    def __init__(self, field: FiniteField, digest: str, salt: str) -> None:
        self.field = field
        self.digest = digest
        self.salt = salt

    @staticmethod
    def hash_value(value: int, salt: str) -> str:
        return hashlib.sha256(f"{salt}|{value}|{salt}".encode()).hexdigest()

    def matches(self, candidate: Any) -> bool:
        if not self.field.contains(candidate):
            return False
        return self.hash_value(self.field.to_int(candidate), self.salt) == self.digest

    def __str__(self) -> str:
        return f"sha256(salt|?|salt) == {self.digest[:16]}..."


class HashCommitmentScheme(CommitmentScheme):
    """Salted hash commitments; ``salt_bits=0`` gives the unsalted variant."""

    def __init__(self, field: FiniteField, salt_bits: int = DEFAULT_SALT_BITS) -> None:
        if salt_bits < 0:
            raise ValueError(f"salt_bits must be non-negative, got {salt_bits}")
        self.field = field
        self.salt_bits = salt_bits

    def create(self, secret: Any, rng) -> HashCommitment:
        value = self.field.to_int(secret)
        salt = rng.decimal_salt(self.salt_bits) if self.salt_bits else ""
        return HashCommitment(self.field, HashCommitment.hash_value(value, salt), salt)

    def __str__(self) -> str:
        return f"SHA-256 commitment ({self.salt_bits}-bit salt)"
