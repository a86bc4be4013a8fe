"""Dataclasses shared across the rational secret sharing implementation.

协议各阶段交换的数据结构集中定义于此。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class Point:
    """坐标点 / An (x, y) pair of elements of one field; a Shamir share is a Point."""

    x: Any
    y: Any


@dataclass(frozen=True)
class ProofValue:
    """VRF输出 / A VRF output: the field value and the proof that it was computed honestly."""

    proof: Any
    value: Any


@dataclass(frozen=True, eq=False)
class Share:
    """SBP份额 / One shareholder's record produced by a single dealing.

    ``commitment``, ``public_keys`` and ``offsets`` are the same objects in every
    share of a dealing; ``private_key`` belongs to this shareholder only.
    """

    index: Any
    commitment: Any
    public_keys: Mapping[Any, Any]
    offsets: Mapping[Any, Any]
    private_key: Any

    def __str__(self) -> str:
        return f"SBP Share {int(self.index)}"


@dataclass(frozen=True)
class SBPParameters:
    """协议参数 / Threshold, share count and definitive-round probability of one SBP instance."""

    threshold: int
    total: int
    alpha: Fraction

    def validate(self, finite_field) -> None:
        if self.threshold < 2:
            raise ValueError(f"Threshold must be at least 2, got {self.threshold}")
        if self.threshold > self.total:
            raise ValueError(f"Threshold {self.threshold} exceeds total {self.total}")
        if self.total >= finite_field.size:
            raise ValueError(
                f"{finite_field} has too few nonzero elements for {self.total} shareholders"
            )
        if not 0 < self.alpha < 1:
            raise ValueError(f"alpha must lie strictly between 0 and 1, got {self.alpha}")


@dataclass
class PerformanceStats:
    """性能统计数据类 / Collects timing and operation counts for each protocol phase."""

    phase_name: str
    duration: float
    operations: Dict[str, int] | None = None

    def __post_init__(self) -> None:
        if self.operations is None:
            self.operations = {}


@dataclass
class PlayerOutcome:
    """参与者结果 / Final state of one player after a protocol run."""

    index: Any
    role: str
    done_reason: Optional[str]
    recovered_secret: Any = None

    @property
    def recovered(self) -> bool:
        return self.recovered_secret is not None


@dataclass
class ProtocolRun:
    """一次模拟运行 / Result of running players to joint completion."""

    rounds: int
    outcomes: Dict[Any, PlayerOutcome] = field(default_factory=dict)

    def recovered_secrets(self) -> Dict[Any, Any]:
        return {index: o.recovered_secret for index, o in self.outcomes.items()}

    def outcomes_for(self, role: str) -> List[PlayerOutcome]:
        return [o for o in self.outcomes.values() if o.role == role]
