"""Shared fixtures for SBP tests."""

import pytest

from constants import TEST_MODULUS
from field import ModIntField
from protocol import build_scheme
from secure_rng import SecureRandom


@pytest.fixture
def rng():
    """Deterministic random source for reproducible tests."""
    return SecureRandom("tests", seed=b"\x2a" * 32)


@pytest.fixture
def field():
    return ModIntField(TEST_MODULUS)


@pytest.fixture
def scheme(field):
    """t=6, n=10 over the integers mod 1009."""
    return build_scheme(6, 10, field)


@pytest.fixture
def small_scheme(field):
    """t=3, n=5 over the integers mod 1009."""
    return build_scheme(3, 5, field)
