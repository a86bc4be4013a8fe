"""Capability interfaces the protocol consumes; concrete schemes live elsewhere."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Tuple

from data_models import ProofValue


class Commitment(ABC):
    """承诺 / Binds to a value without revealing it."""

    @abstractmethod
    def matches(self, candidate: Any) -> bool:
        ...


class CommitmentScheme(ABC):
    """承诺方案 / Creates one commitment per secret; must be binding and hiding."""

    @abstractmethod
    def create(self, secret: Any, rng) -> Commitment:
        ...


class VRFScheme(ABC):
    """可验证随机函数 / Keyed function whose outputs are publicly verifiable."""

    @abstractmethod
    def create_keypair(self, rng) -> Tuple[Any, Any]:
        """Return ``(public_key, private_key)``."""

    @abstractmethod
    def generate(self, private_key: Any, round_number: int) -> ProofValue:
        """Deterministic in ``(private_key, round_number)``."""

    @abstractmethod
    def verify(self, public_key: Any, round_number: int, output: ProofValue) -> bool:
        """Check ``output`` without the private key; never raises on malformed input."""

    @abstractmethod
    def random_malicious_value(self, rng) -> ProofValue:
        """A well-formed-looking output that no legitimate key produced."""
