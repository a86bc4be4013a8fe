"""Shamir secret sharing over any :class:`field.FiniteField`."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from data_models import Point
from errors import InconsistentSharesError, NotEnoughSharesError
from field import FiniteField
from polynomial import Polynomial


def create_shares(field: FiniteField, secret: Any, threshold: int, total: int, rng) -> List[Point]:
    """Split ``secret`` into ``total`` points, any ``threshold`` of which recover it.

    The polynomial has the secret as constant term and ``threshold - 1`` uniformly
    random higher coefficients; share i is its value at the i-th nonzero element.
    """
    field.check(secret)
    if threshold < 1:
        raise ValueError(f"Threshold must be >= 1, got {threshold}")
    if threshold > total:
        raise ValueError(f"Threshold {threshold} exceeds total {total}")

    coefficients = [secret] + [field.random(rng) for _ in range(threshold - 1)]
    poly = Polynomial(field, coefficients)
    return [Point(x, poly.evaluate(x)) for x in field.nonzero_elements(total)]


def try_combine(field: FiniteField, threshold: int, points: Sequence[Point]) -> Optional[Any]:
    """Recover the secret, or ``None`` if the points are inconsistent.

    The polynomial is built from the *first* ``threshold`` points and every point,
    including the extras, must lie on it.
    """
    points = list(points)
    if len(points) < threshold:
        return None
    poly = Polynomial.interpolate(field, points[:threshold])
    if any(poly.evaluate(p.x) != p.y for p in points):
        return None
    return poly.evaluate(field.zero)


def combine(field: FiniteField, threshold: int, points: Sequence[Point]) -> Any:
    points = list(points)
    if len(points) < threshold:
        raise NotEnoughSharesError(f"Need {threshold} shares, got {len(points)}")
    secret = try_combine(field, threshold, points)
    if secret is None:
        raise InconsistentSharesError("Inconsistent shares")
    return secret
