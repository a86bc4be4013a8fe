"""Labelled, seedable cryptographic random source.

Output is an HMAC-SHA256 stream keyed by HKDF(seed, label). Without a seed the
key comes from ``os.urandom``; with a fixed seed the stream is reproducible,
which tests and experiments rely on.
"""

from __future__ import annotations

import os
from fractions import Fraction
from typing import Any, List, MutableSequence

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.kdf.hkdf import HKDF


class SecureRandom:
    """安全随机数生成器 / Deterministic-when-seeded random source for dealing and simulation."""

    def __init__(self, label: str, seed: bytes | None = None) -> None:
        self.label = label
        if seed is None:
            seed = os.urandom(32)
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=label.encode(),
            backend=default_backend(),
        )
        self._key = hkdf.derive(seed)
        self._counter = 0

    def random_bytes(self, length: int) -> bytes:
        if length < 0:
            raise ValueError(f"Length must be non-negative, got {length}")
        out = bytearray()
        while len(out) < length:
            block = hmac.HMAC(self._key, hashes.SHA256(), backend=default_backend())
            block.update(self._counter.to_bytes(8, 'big'))
            out.extend(block.finalize())
            self._counter += 1
        return bytes(out[:length])

    def randbits(self, k: int) -> int:
        if k <= 0:
            return 0
        value = int.from_bytes(self.random_bytes((k + 7) // 8), 'big')
        return value >> (-k % 8)

    def randbelow(self, n: int) -> int:
        """Uniform integer in ``[0, n)`` by rejection sampling."""
        if n <= 0:
            raise ValueError(f"Upper bound must be positive, got {n}")
        k = n.bit_length()
        while True:
            r = self.randbits(k)
            if r < n:
                return r

    def chance(self, probability: Fraction) -> bool:
        """Biased coin that succeeds with the given rational probability."""
        probability = Fraction(probability)
        if not 0 <= probability <= 1:
            raise ValueError(f"Probability must lie in [0, 1], got {probability}")
        return self.randbelow(probability.denominator) < probability.numerator

    def geometric(self, stop_probability: Fraction) -> int:
        """Number of trials up to and including the first success (minimum 1)."""
        stop_probability = Fraction(stop_probability)
        if not 0 < stop_probability <= 1:
            raise ValueError(f"Stop probability must lie in (0, 1], got {stop_probability}")
        trials = 1
        while self.chance(1 - stop_probability):
            trials += 1
        return trials

    def shuffle(self, items: MutableSequence[Any]) -> None:
        """Fisher-Yates shuffle in place."""
        for i in range(len(items) - 1, 0, -1):
            j = self.randbelow(i + 1)
            items[i], items[j] = items[j], items[i]

    def sample(self, items: List[Any], k: int) -> List[Any]:
        pool = list(items)
        if not 0 <= k <= len(pool):
            raise ValueError(f"Cannot sample {k} items from {len(pool)}")
        self.shuffle(pool)
        return pool[:k]

    def decimal_salt(self, bits: int) -> str:
        """随机盐值的十进制字符串 / Random ``bits``-bit salt rendered in decimal."""
        return str(self.randbits(bits))

    def derive_child(self, label: str) -> "SecureRandom":
        """Independent stream for a sub-task, seeded from this one."""
        return SecureRandom(f"{self.label}/{label}", seed=self.random_bytes(32))
