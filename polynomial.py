"""Polynomials over a finite field.

Coefficients are stored little-endian and normalized so that the last one is
never zero; the empty tuple is the zero polynomial.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Sequence, Tuple

from data_models import Point
from errors import FieldMismatchError
from field import FieldElement, FiniteField


class Polynomial:
    """多项式 / Polynomial with coefficients in ``field``."""

    __slots__ = ('field', 'coefficients')

    def __init__(self, field: FiniteField, coefficients: Iterable[Any] = ()):
        coefs = [field.check(c) for c in coefficients]
        # 去掉末尾的零系数
        while coefs and coefs[-1].is_zero:
            coefs.pop()
        self.field = field
        self.coefficients: Tuple[Any, ...] = tuple(coefs)

    @classmethod
    def zero(cls, field: FiniteField) -> "Polynomial":
        return cls(field)

    @classmethod
    def constant(cls, field: FiniteField, value: Any) -> "Polynomial":
        return cls(field, [value])

    @classmethod
    def x(cls, field: FiniteField) -> "Polynomial":
        return cls(field, [field.zero, field.one])

    @property
    def is_zero(self) -> bool:
        return not self.coefficients

    @property
    def degree(self) -> int:
        """Degree of the polynomial; 0 for the zero polynomial."""
        return max(len(self.coefficients) - 1, 0)

    @property
    def leading_coefficient(self) -> Any:
        return self.coefficients[-1] if self.coefficients else self.field.zero

    def evaluate(self, x: Any) -> Any:
        """Horner evaluation at ``x``."""
        self.field.check(x)
        total = self.field.zero
        for c in reversed(self.coefficients):
            total = total * x + c
        return total

    __call__ = evaluate

    def _check_compatible(self, other: "Polynomial") -> None:
        if other.field != self.field:
            raise FieldMismatchError(f"Cannot combine polynomials over {self.field} and {other.field}")

    def __neg__(self) -> "Polynomial":
        return Polynomial(self.field, [-c for c in self.coefficients])

    def __add__(self, other: "Polynomial") -> "Polynomial":
        if not isinstance(other, Polynomial):
            return NotImplemented
        self._check_compatible(other)
        a, b = self.coefficients, other.coefficients
        if len(a) < len(b):
            a, b = b, a
        coefs = list(a)
        for i, c in enumerate(b):
            coefs[i] = coefs[i] + c
        return Polynomial(self.field, coefs)

    def __sub__(self, other: "Polynomial") -> "Polynomial":
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self + -other

    def __mul__(self, other: Any) -> "Polynomial":
        if isinstance(other, Polynomial):
            self._check_compatible(other)
            if self.is_zero or other.is_zero:
                return Polynomial.zero(self.field)
            coefs = [self.field.zero] * (len(self.coefficients) + len(other.coefficients) - 1)
            for i, a in enumerate(self.coefficients):
                for j, b in enumerate(other.coefficients):
                    coefs[i + j] = coefs[i + j] + a * b
            return Polynomial(self.field, coefs)
        if isinstance(other, FieldElement):
            self.field.check(other)
            return Polynomial(self.field, [c * other for c in self.coefficients])
        return NotImplemented

    __rmul__ = __mul__

    def __lshift__(self, shift: int) -> "Polynomial":
        """Multiply by X**shift."""
        if shift < 0:
            raise ValueError(f"Shift must be non-negative, got {shift}")
        if self.is_zero:
            return self
        return Polynomial(self.field, [self.field.zero] * shift + list(self.coefficients))

    def divide_with_remainder(self, divisor: "Polynomial") -> Tuple["Polynomial", "Polynomial"]:
        """Schoolbook long division: returns (q, r) with q*divisor + r == self."""
        self._check_compatible(divisor)
        if divisor.is_zero:
            raise ZeroDivisionError("Polynomial division by the zero polynomial")
        zero = self.field.zero
        if self.is_zero:
            return Polynomial.zero(self.field), Polynomial.zero(self.field)

        d = divisor.degree
        inverse_lead = divisor.leading_coefficient.inverse()
        normalized = [c * inverse_lead for c in divisor.coefficients]
        quotient: List[Any] = [zero] * max(0, len(self.coefficients) - d)
        remainder = list(self.coefficients)
        for i in range(len(remainder) - 1, d - 1, -1):
            c = remainder[i]
            if c.is_zero:
                continue
            quotient[i - d] = c * inverse_lead
            for j in range(d + 1):
                remainder[i - j] = remainder[i - j] - c * normalized[d - j]
        return Polynomial(self.field, quotient), Polynomial(self.field, remainder)

    __divmod__ = divide_with_remainder

    def __truediv__(self, divisor: "Polynomial") -> "Polynomial":
        """Exact division; raises if there is a remainder."""
        if not isinstance(divisor, Polynomial):
            return NotImplemented
        quotient, remainder = self.divide_with_remainder(divisor)
        if not remainder.is_zero:
            raise ValueError("Division had remainder")
        return quotient

    def __mod__(self, divisor: "Polynomial") -> "Polynomial":
        if not isinstance(divisor, Polynomial):
            return NotImplemented
        return self.divide_with_remainder(divisor)[1]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.field == other.field and self.coefficients == other.coefficients

    def __hash__(self) -> int:
        return hash((self.field, self.coefficients))

    def _term(self, coefficient: Any, power: int) -> str:
        value = str(self.field.to_int(coefficient))
        if power == 0:
            return value
        x = "x" if power == 1 else f"x^{power}"
        return x if value == "1" else value + x

    def __str__(self) -> str:
        if self.is_zero:
            return "0" + self.field.suffix
        terms = [self._term(c, i) for i, c in enumerate(self.coefficients) if not c.is_zero]
        return " + ".join(reversed(terms)) + self.field.suffix

    def __repr__(self) -> str:
        return f"Polynomial({self})"

    @classmethod
    def interpolate(cls, field: FiniteField, points: Sequence[Point]) -> "Polynomial":
        """Lagrange interpolation through points with pairwise-distinct x-coordinates.

        The result has degree < len(points) and passes through every point.
        """
        pts = list(points)
        if not pts:
            raise ValueError("Cannot interpolate through zero points")
        for p in pts:
            field.check(p.x)
            field.check(p.y)
        if len({p.x for p in pts}) != len(pts):
            raise ValueError("Interpolation points must have distinct x-coordinates")
        if len(pts) == 1:
            return cls.constant(field, pts[0].y)

        one = cls.constant(field, field.one)
        x = cls.x(field)
        full_numerator = one
        for p in pts:
            full_numerator = full_numerator * (x - one * p.x)

        total = cls.zero(field)
        for p in pts:
            numerator = full_numerator / (x - one * p.x)
            denominator = field.one
            for q in pts:
                if q is not p:
                    denominator = denominator * (p.x - q.x)
            total = total + numerator * (p.y * denominator.inverse())
        return total
