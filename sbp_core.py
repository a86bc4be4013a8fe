"""SBP protocol: VRF-masked Shamir shares with a single randomized definitive round."""

from __future__ import annotations

import logging
import time
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import shamir
from constants import DEFAULT_ALPHA
from data_models import PerformanceStats, PlayerOutcome, Point, ProtocolRun, SBPParameters, Share
from errors import InconsistentSharesError, NotEnoughSharesError
from field import FiniteField
from interfaces import CommitmentScheme, VRFScheme
from network_simulator import NetworkSimulator
from participant import MaliciousPlayer, Participant, RationalPlayer, active_players

logger = logging.getLogger(__name__)


class SBP:
    def __init__(
        self,
        threshold: int,
        total: int,
        field: FiniteField,
        commitment_scheme: CommitmentScheme,
        vrf_scheme: VRFScheme,
        alpha: Fraction = DEFAULT_ALPHA,
    ):
        self.parameters = SBPParameters(threshold, total, Fraction(alpha))
        self.parameters.validate(field)
        self.threshold = threshold
        self.total = total
        self.field = field
        self.commitment_scheme = commitment_scheme
        self.vrf_scheme = vrf_scheme
        self.alpha = self.parameters.alpha
        self.performance_stats: List[PerformanceStats] = []

    def __str__(self) -> str:
        return f"SBP: n={self.total}, t={self.threshold}"

    def add_performance_stat(self, phase_name: str, duration: float, operations: Dict[str, int] | None = None) -> None:
        stat = PerformanceStats(phase_name, duration, operations or {})
        self.performance_stats.append(stat)

    def format_performance_report(self) -> str:
        """性能报告文本 / Render collected performance statistics."""
        lines = ["=" * 80, "***  SBP PERFORMANCE REPORT  ***".center(80), "=" * 80]
        total_time = sum(stat.duration for stat in self.performance_stats)

        for idx, stat in enumerate(self.performance_stats, 1):
            percentage = (stat.duration / total_time * 100) if total_time > 0 else 0
            lines.append(f"┌─ Phase {idx}: {stat.phase_name}")
            lines.append(f"│  Duration:    {stat.duration*1000:.4f} ms  ({percentage:.1f}% of total)")
            if stat.operations:
                lines.append("│  Operations:")
                for op_name, count in stat.operations.items():
                    lines.append(f"│     • {op_name}: {count:,}")
            lines.append(f"└{'─'*78}")

        lines.append("=" * 80)
        lines.append(f"TOTAL EXECUTION TIME: {total_time*1000:.4f} ms ({total_time:.6f} seconds)")
        lines.append("=" * 80)
        return "\n".join(lines)

    def print_performance_report(self) -> None:
        print("\n" + self.format_performance_report() + "\n")

    def share_indexes(self) -> List[Any]:
        return self.field.nonzero_elements(self.total)

    def deal(self, secret: Any, rng) -> List[Share]:
        """Split ``secret`` into ``total`` SBP shares."""
        return self.deal_with_round(secret, rng)[0]

    def deal_with_round(self, secret: Any, rng) -> Tuple[List[Share], int]:
        """Like :meth:`deal` but also returns the definitive round."""
        self.field.check(secret)
        start_time = time.time()
        indexes = self.share_indexes()

        commitment = self.commitment_scheme.create(secret, rng)

        public_keys: Dict[Any, Any] = {}
        private_keys: Dict[Any, Any] = {}
        for i in indexes:
            public_keys[i], private_keys[i] = self.vrf_scheme.create_keypair(rng)

        definitive_round = rng.geometric(self.alpha)

        points = shamir.create_shares(self.field, secret, self.threshold, self.total, rng)
        true_shares = {p.x: p.y for p in points}

        # Y[i] + VRF(G[i], r).value == S[i] exactly when r is the definitive round
        offsets = {
            i: true_shares[i] - self.vrf_scheme.generate(private_keys[i], definitive_round).value
            for i in indexes
        }

        public_view = MappingProxyType(public_keys)
        offset_view = MappingProxyType(offsets)
        shares = [Share(i, commitment, public_view, offset_view, private_keys[i]) for i in indexes]

        self.add_performance_stat("Deal", time.time() - start_time, {
            "VRF key pairs": self.total,
            "VRF evaluations": self.total,
            "Shamir shares": self.total,
        })
        logger.debug("Dealt %d shares (threshold %d)", self.total, self.threshold)
        return shares, definitive_round

    def _check_same_dealing(self, shares: Sequence[Share]) -> None:
        commitment = shares[0].commitment
        if any(s.commitment is not commitment for s in shares):
            raise InconsistentSharesError("Shares come from different dealings")
        if len({s.index for s in shares}) != len(shares):
            raise InconsistentSharesError("Duplicate share indexes")

    def coalition_combine(self, shares: Sequence[Share], max_rounds: Optional[int] = None) -> Any:
        """Recover the secret assuming every holder of ``shares`` cooperates."""
        shares = list(shares)
        if len(shares) < self.threshold:
            raise NotEnoughSharesError(f"Need {self.threshold} shares, got {len(shares)}")
        self._check_same_dealing(shares)

        start_time = time.time()
        commitment = shares[0].commitment
        round_number = 1
        while max_rounds is None or round_number <= max_rounds:
            points = [
                Point(s.index, self.vrf_scheme.generate(s.private_key, round_number).value + s.offsets[s.index])
                for s in shares
            ]
            secret = shamir.try_combine(self.field, self.threshold, points)
            if secret is not None and commitment.matches(secret):
                self.add_performance_stat("Coalition combine", time.time() - start_time, {
                    "Rounds": round_number,
                    "VRF evaluations": round_number * len(shares),
                })
                return secret
            round_number += 1
        raise InconsistentSharesError(f"No consistent secret within {max_rounds} rounds")

    def make_rational_player(self, share: Share) -> RationalPlayer:
        return RationalPlayer(share, self.threshold, self.field, self.vrf_scheme)

    def make_random_message_player(self, share: Share, rng) -> MaliciousPlayer:
        return MaliciousPlayer(share, self.vrf_scheme, rng)

    def make_silent_player(self, share: Share) -> MaliciousPlayer:
        return MaliciousPlayer(share, self.vrf_scheme, None)

    def run_protocol(self, players: Iterable[Participant]) -> ProtocolRun:
        """Drive ``players`` in lock-step rounds until every one of them is done."""
        players = list(players)
        start_time = time.time()
        network = NetworkSimulator()
        for player in players:
            network.register_participant(player.index)

        round_number = 1
        active = active_players(players)
        while active:
            active_indexes = {p.index for p in active}

            # 先收集所有消息再投递，保证同时广播语义
            outgoing = [(p.index, p.round_message(round_number), p.message_receivers()) for p in players]

            network.start_round(round_number)
            for sender, message, receivers in outgoing:
                if message is None:
                    continue
                network.send(sender, [r for r in receivers if r in active_indexes], message)
            network.end_round()

            for player in players:
                player.use_round_messages(round_number, network.receive_messages(player.index))
            logger.debug("Round %d complete, %d players were active", round_number, len(active_indexes))
            round_number += 1
            active = active_players(players)

        rounds = round_number - 1
        run = ProtocolRun(rounds=rounds)
        for player in players:
            reason = player.done_reason()
            run.outcomes[player.index] = PlayerOutcome(
                index=player.index,
                role=player.role,
                done_reason=reason.value if reason is not None else None,
                recovered_secret=player.recovered_secret,
            )

        self.add_performance_stat("Run protocol", time.time() - start_time, {
            "Rounds": rounds,
            "Messages delivered": network.delivered_count,
        })
        logger.info(
            "Protocol finished after %d rounds, %d of %d players recovered the secret",
            rounds, sum(o.recovered for o in run.outcomes.values()), len(players),
        )
        return run
