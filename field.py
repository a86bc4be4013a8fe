"""Finite field arithmetic used by polynomials, Shamir sharing and the SBP protocol.

Protocol code relies only on the :class:`FiniteField` contract and on the element
operators (``+``, ``-``, ``*``, unary ``-``, ``inverse()``, ``is_zero``), so any
field implementing them can be plugged in without touching the protocol.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List

import gmpy2

from constants import GF256_POLYNOMIAL
from errors import FieldMismatchError


class FieldElement:
    """Marker base class for elements of any :class:`FiniteField`."""

    __slots__ = ()


class FiniteField(ABC):
    """有限域接口 / Contract shared by all finite fields."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of elements in the field."""

    @abstractmethod
    def from_int(self, value: int) -> Any:
        """Map an integer to a field element, reducing it into ``[0, size)``."""

    @abstractmethod
    def to_int(self, element: Any) -> int:
        """Inverse of :meth:`from_int` on ``[0, size)``."""

    @abstractmethod
    def contains(self, element: Any) -> bool:
        """Whether ``element`` belongs to this field."""

    @property
    def zero(self) -> Any:
        return self.from_int(0)

    @property
    def one(self) -> Any:
        return self.from_int(1)

    @property
    def suffix(self) -> str:
        """Suffix appended when rendering polynomials over this field."""
        return ""

    def check(self, element: Any) -> Any:
        if not self.contains(element):
            raise FieldMismatchError(f"{element!r} is not an element of {self}")
        return element

    def random(self, rng) -> Any:
        """Sample a uniform element; ``rng`` must provide ``randbelow``."""
        return self.from_int(rng.randbelow(self.size))

    def nonzero_elements(self, count: int) -> List[Any]:
        """Deterministic enumeration of the first ``count`` nonzero elements 1, 2, 3, ..."""
        if count < 0 or count >= self.size:
            raise ValueError(f"A field of size {self.size} has no {count} distinct nonzero elements")
        return [self.from_int(i) for i in range(1, count + 1)]


@dataclass(frozen=True)
class ModInt(FieldElement):
    """模整数 / Integer modulo a prime; operands must share the modulus."""

    value: int
    modulus: int

    def __post_init__(self) -> None:
        if self.modulus <= 0:
            raise ValueError(f"Modulus must be positive, got {self.modulus}")
        if not 0 <= self.value < self.modulus:
            raise ValueError(f"Value {self.value} is not reduced modulo {self.modulus}")

    @classmethod
    def reduce(cls, value: int, modulus: int) -> "ModInt":
        return cls(value % modulus, modulus)

    def _coerce(self, other: Any) -> "ModInt | None":
        if isinstance(other, ModInt):
            if other.modulus != self.modulus:
                raise FieldMismatchError(
                    f"Cannot combine elements mod {self.modulus} and mod {other.modulus}"
                )
            return other
        if isinstance(other, FieldElement):
            raise FieldMismatchError(f"Cannot combine ModInt with {type(other).__name__}")
        if isinstance(other, int):
            return ModInt.reduce(other, self.modulus)
        return None

    def __add__(self, other: Any) -> "ModInt":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return ModInt((self.value + other.value) % self.modulus, self.modulus)

    __radd__ = __add__

    def __sub__(self, other: Any) -> "ModInt":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return ModInt((self.value - other.value) % self.modulus, self.modulus)

    def __rsub__(self, other: Any) -> "ModInt":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other - self

    def __mul__(self, other: Any) -> "ModInt":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return ModInt(self.value * other.value % self.modulus, self.modulus)

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> "ModInt":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self * other.inverse()

    def __neg__(self) -> "ModInt":
        return ModInt(-self.value % self.modulus, self.modulus)

    def inverse(self) -> "ModInt":
        if self.value == 0:
            raise ZeroDivisionError(f"0 has no inverse modulo {self.modulus}")
        return ModInt(pow(self.value, -1, self.modulus), self.modulus)

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value} (mod {self.modulus})"


@dataclass(frozen=True)
class ModIntField(FiniteField):
    """素数域 Z/pZ / Prime field of integers modulo ``modulus``."""

    modulus: int

    def __post_init__(self) -> None:
        if self.modulus < 2 or not gmpy2.is_prime(self.modulus):
            raise ValueError(f"Modulus {self.modulus} is not prime")

    @property
    def size(self) -> int:
        return self.modulus

    def from_int(self, value: int) -> ModInt:
        return ModInt.reduce(value, self.modulus)

    def to_int(self, element: Any) -> int:
        return self.check(element).value

    def contains(self, element: Any) -> bool:
        return isinstance(element, ModInt) and element.modulus == self.modulus

    @property
    def suffix(self) -> str:
        return f" (mod {self.modulus})"

    def __str__(self) -> str:
        return f"Integers mod {self.modulus}"


def _binary_multiply(a: int, b: int, polynomial: int, degree: int) -> int:
    """Carry-less multiply of ``a`` and ``b`` reduced by ``polynomial``."""
    result = 0
    top = 1 << degree
    while b:
        if b & 1:
            result ^= a
        a <<= 1
        if a & top:
            a ^= polynomial
        b >>= 1
    return result


@dataclass(frozen=True)
class BinaryFieldElement(FieldElement):
    """GF(2^m) 元素 / Element of a binary extension field, stored as a bit pattern."""

    value: int
    polynomial: int

    def __post_init__(self) -> None:
        if not 0 <= self.value < 1 << self.degree:
            raise ValueError(f"Value {self.value:#x} does not fit in GF(2^{self.degree})")

    @property
    def degree(self) -> int:
        return self.polynomial.bit_length() - 1

    def _coerce(self, other: Any) -> "BinaryFieldElement | None":
        if isinstance(other, BinaryFieldElement):
            if other.polynomial != self.polynomial:
                raise FieldMismatchError(
                    f"Cannot combine elements of GF(2^m) mod {self.polynomial:#x} and mod {other.polynomial:#x}"
                )
            return other
        if isinstance(other, FieldElement):
            raise FieldMismatchError(f"Cannot combine BinaryFieldElement with {type(other).__name__}")
        return None

    def __add__(self, other: Any) -> "BinaryFieldElement":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return BinaryFieldElement(self.value ^ other.value, self.polynomial)

    __radd__ = __add__
    # characteristic 2: subtraction is addition
    __sub__ = __add__
    __rsub__ = __add__

    def __mul__(self, other: Any) -> "BinaryFieldElement":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        product = _binary_multiply(self.value, other.value, self.polynomial, self.degree)
        return BinaryFieldElement(product, self.polynomial)

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> "BinaryFieldElement":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self * other.inverse()

    def __neg__(self) -> "BinaryFieldElement":
        return self

    def inverse(self) -> "BinaryFieldElement":
        if self.value == 0:
            raise ZeroDivisionError(f"0 has no inverse in GF(2^{self.degree})")
        # a^(2^m - 2) = a^-1
        exponent = (1 << self.degree) - 2
        result = 1
        base = self.value
        while exponent:
            if exponent & 1:
                result = _binary_multiply(result, base, self.polynomial, self.degree)
            base = _binary_multiply(base, base, self.polynomial, self.degree)
            exponent >>= 1
        return BinaryFieldElement(result, self.polynomial)

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:#04x} (GF(2^{self.degree}))"


@dataclass(frozen=True)
class BinaryField(FiniteField):
    """二元扩域 GF(2^m) / Binary extension field; ``polynomial`` must be irreducible."""

    polynomial: int = GF256_POLYNOMIAL

    def __post_init__(self) -> None:
        if self.polynomial.bit_length() < 2:
            raise ValueError(f"Reduction polynomial {self.polynomial:#x} has degree < 1")

    @property
    def degree(self) -> int:
        return self.polynomial.bit_length() - 1

    @property
    def size(self) -> int:
        return 1 << self.degree

    def from_int(self, value: int) -> BinaryFieldElement:
        return BinaryFieldElement(value % self.size, self.polynomial)

    def to_int(self, element: Any) -> int:
        return self.check(element).value

    def contains(self, element: Any) -> bool:
        return isinstance(element, BinaryFieldElement) and element.polynomial == self.polynomial

    @property
    def suffix(self) -> str:
        return f" (GF(2^{self.degree}))"

    def __str__(self) -> str:
        return f"GF(2^{self.degree}) mod {self.polynomial:#x}"
