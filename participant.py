"""Player state machines driven round by round by :meth:`sbp_core.SBP.run_protocol`."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from typing import Any, Deque, Dict, Iterable, List, Optional, Set, Tuple

import shamir
from data_models import Point, ProofValue, Share
from field import FiniteField
from interfaces import VRFScheme

logger = logging.getLogger(__name__)


class DoneReason(str, Enum):
    HAVE_SECRET = "Have secret"
    NOT_ENOUGH_COOPERATORS = "Not enough cooperators"
    MALICIOUS = "Malicious"


class Participant(ABC):
    """参与者接口 / Capabilities the round driver relies on."""

    role = "participant"

    def __init__(self, share: Share) -> None:
        self.share = share

    @property
    def index(self) -> Any:
        return self.share.index

    @property
    def recovered_secret(self) -> Any:
        return None

    @abstractmethod
    def done_reason(self) -> Optional[DoneReason]:
        """``None`` while the player is still active."""

    @abstractmethod
    def round_message(self, round_number: int) -> Optional[ProofValue]:
        ...

    @abstractmethod
    def message_receivers(self) -> List[Any]:
        ...

    @abstractmethod
    def use_round_messages(self, round_number: int, messages: Dict[Any, ProofValue]) -> None:
        ...

    def __str__(self) -> str:
        return f"SBP {self.role.capitalize()} Player {int(self.index)}"


class RationalPlayer(Participant):
    """理性参与者 / Cooperates until it learns the secret or too few others cooperate."""

    role = "rational"

    def __init__(
        self,
        share: Share,
        threshold: int,
        field: FiniteField,
        vrf_scheme: VRFScheme,
        window: int = 1,
    ) -> None:
        super().__init__(share)
        self.threshold = threshold
        self.field = field
        self.vrf_scheme = vrf_scheme
        self.window = window
        self.cooperator_indexes: Set[Any] = set(share.public_keys)
        self.received_points: Deque[Tuple[int, Point]] = deque()
        self.cooperator_history: List[int] = []
        self._secret: Any = None

    @property
    def recovered_secret(self) -> Any:
        return self._secret

    def done_reason(self) -> Optional[DoneReason]:
        if self._secret is not None:
            return DoneReason.HAVE_SECRET
        if len(self.cooperator_indexes) < self.threshold:
            return DoneReason.NOT_ENOUGH_COOPERATORS
        return None

    def round_message(self, round_number: int) -> Optional[ProofValue]:
        if self.done_reason() is not None:
            return None
        return self.vrf_scheme.generate(self.share.private_key, round_number)

    def message_receivers(self) -> List[Any]:
        return list(self.cooperator_indexes)

    def _evict(self, round_number: int) -> None:
        while self.received_points and self.received_points[0][0] <= round_number - self.window:
            self.received_points.popleft()

    def round_points(self, round_number: int) -> List[Point]:
        return [point for r, point in self.received_points if r == round_number]

    def use_round_messages(self, round_number: int, messages: Dict[Any, ProofValue]) -> None:
        if self.done_reason() is not None:
            return

        self._evict(round_number)
        for sender, output in messages.items():
            if sender not in self.cooperator_indexes:
                continue
            if not self.vrf_scheme.verify(self.share.public_keys[sender], round_number, output):
                logger.debug("[Player %s] Round %d: invalid message from %s", self.index, round_number, sender)
                self.cooperator_indexes.discard(sender)
                continue
            point = Point(sender, output.value + self.share.offsets[sender])
            self.received_points.append((round_number, point))

        # 沉默与无效消息同样处理
        silent = self.cooperator_indexes.difference(messages)
        if silent:
            logger.debug("[Player %s] Round %d: no message from %s", self.index, round_number, sorted(map(int, silent)))
        self.cooperator_indexes.intersection_update(messages)
        self.cooperator_history.append(len(self.cooperator_indexes))

        if len(self.cooperator_indexes) < self.threshold:
            logger.info(
                "[Player %s] Round %d: only %d cooperators left, giving up",
                self.index, round_number, len(self.cooperator_indexes),
            )
            return

        candidate = shamir.try_combine(self.field, self.threshold, self.round_points(round_number))
        if candidate is not None and self.share.commitment.matches(candidate):
            self._secret = candidate
            logger.info("[Player %s] Round %d: recovered the secret", self.index, round_number)


class MaliciousPlayer(Participant):
    """恶意参与者 / Never recovers; broadcasts forged outputs when given an rng, otherwise stays silent."""

    role = "malicious"

    def __init__(self, share: Share, vrf_scheme: VRFScheme, rng=None) -> None:
        super().__init__(share)
        self.vrf_scheme = vrf_scheme
        self.rng = rng
        self.player_indexes: List[Any] = list(share.public_keys)

    def done_reason(self) -> Optional[DoneReason]:
        return DoneReason.MALICIOUS

    def round_message(self, round_number: int) -> Optional[ProofValue]:
        if self.rng is None:
            return None
        return self.vrf_scheme.random_malicious_value(self.rng)

    def message_receivers(self) -> List[Any]:
        if self.rng is None:
            return []
        return [i for i in self.player_indexes if i != self.index]

    def use_round_messages(self, round_number: int, messages: Dict[Any, ProofValue]) -> None:
        pass


def active_players(players: Iterable[Participant]) -> List[Participant]:
    return [p for p in players if p.done_reason() is None]
