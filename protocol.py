"""High-level orchestration for running batches of SBP deals and simulations."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, List, Optional, Sequence

import numpy as np

from constants import DEFAULT_ALPHA, TEST_MODULUS
from crypto_manager import Ed25519VRFScheme, HashCommitmentScheme
from data_models import PerformanceStats
from field import FiniteField, ModIntField
from sbp_core import SBP
from secure_rng import SecureRandom

logger = logging.getLogger(__name__)


@dataclass
class TrialResult:
    """单次试验结果 / Outcome of one dealing followed by one protocol run."""

    secret: int
    threshold: int
    malicious_count: int
    noisy: bool
    definitive_round: int
    coalition_secret: int
    rounds: int
    rational_count: int
    recovered_count: int
    correct_count: int
    duration: float

    @property
    def expected_success(self) -> bool:
        return self.rational_count >= self.threshold

    @property
    def consistent(self) -> bool:
        """Every rational player recovered the right secret iff enough of them took part."""
        if self.coalition_secret != self.secret:
            return False
        if self.expected_success:
            return self.correct_count == self.rational_count
        return self.recovered_count == 0


@dataclass
class TrialReport:
    """批量试验汇总 / Results of a batch of trials plus aggregated phase timings."""

    threshold: int
    total: int
    modulus: int
    alpha: Fraction
    results: List[TrialResult] = field(default_factory=list)
    performance: List[PerformanceStats] = field(default_factory=list)

    @property
    def all_consistent(self) -> bool:
        return all(r.consistent for r in self.results)

    def summary(self) -> Dict[str, float]:
        if not self.results:
            return {'trials': 0}
        rounds = np.array([r.rounds for r in self.results], dtype=float)
        definitive = np.array([r.definitive_round for r in self.results], dtype=float)
        passing = [r for r in self.results if r.expected_success]
        failing = [r for r in self.results if not r.expected_success]
        success = np.array([r.correct_count == r.rational_count for r in passing], dtype=float)
        clean_failure = np.array([r.recovered_count == 0 for r in failing], dtype=float)
        return {
            'trials': len(self.results),
            'mean_rounds': float(np.mean(rounds)),
            'median_rounds': float(np.median(rounds)),
            'p90_rounds': float(np.percentile(rounds, 90)),
            'mean_definitive_round': float(np.mean(definitive)),
            'success_rate': float(np.mean(success)) if passing else float('nan'),
            'clean_failure_rate': float(np.mean(clean_failure)) if failing else float('nan'),
        }


def build_scheme(
    threshold: int,
    total: int,
    finite_field: FiniteField,
    alpha: Fraction = DEFAULT_ALPHA,
) -> SBP:
    """使用示例密码学组件构建SBP / SBP wired with the example VRF and commitment schemes."""
    return SBP(
        threshold,
        total,
        finite_field,
        HashCommitmentScheme(finite_field),
        Ed25519VRFScheme(finite_field),
        alpha,
    )


def run_trial(scheme: SBP, secret, malicious_count: int, rng: SecureRandom, noisy: bool = False) -> TrialResult:
    """Deal ``secret``, shuffle the shares and run the first ``malicious_count`` of them maliciously."""
    if not 0 <= malicious_count <= scheme.total:
        raise ValueError(f"malicious_count must lie in [0, {scheme.total}], got {malicious_count}")
    start_time = time.time()

    shares, definitive_round = scheme.deal_with_round(secret, rng)
    rng.shuffle(shares)
    coalition_secret = scheme.coalition_combine(shares)

    if noisy:
        malicious = [
            scheme.make_random_message_player(s, rng.derive_child(f"malicious-{int(s.index)}"))
            for s in shares[:malicious_count]
        ]
    else:
        malicious = [scheme.make_silent_player(s) for s in shares[:malicious_count]]
    rational = [scheme.make_rational_player(s) for s in shares[malicious_count:]]

    run = scheme.run_protocol(malicious + rational)
    outcomes = run.outcomes_for("rational")
    result = TrialResult(
        secret=scheme.field.to_int(secret),
        threshold=scheme.threshold,
        malicious_count=malicious_count,
        noisy=noisy,
        definitive_round=definitive_round,
        coalition_secret=scheme.field.to_int(coalition_secret),
        rounds=run.rounds,
        rational_count=len(rational),
        recovered_count=sum(o.recovered for o in outcomes),
        correct_count=sum(o.recovered_secret == secret for o in outcomes),
        duration=time.time() - start_time,
    )
    logger.debug(
        "Trial secret=%d malicious=%d: %d/%d rational players recovered after %d rounds",
        result.secret, malicious_count, result.recovered_count, result.rational_count, result.rounds,
    )
    return result


def _aggregate_performance(schemes: Sequence[SBP]) -> List[PerformanceStats]:
    """汇总所有试验的性能统计 / Sum durations and operation counts per phase across trials."""
    combined: Dict[str, PerformanceStats] = {}
    for scheme in schemes:
        for stat in scheme.performance_stats:
            entry = combined.setdefault(stat.phase_name, PerformanceStats(stat.phase_name, 0.0, {}))
            entry.duration += stat.duration
            for op_name, count in stat.operations.items():
                entry.operations[op_name] = entry.operations.get(op_name, 0) + count
    return list(combined.values())


def run_trials(
    secrets: Sequence[int],
    threshold: int = 6,
    total: int = 10,
    modulus: int = TEST_MODULUS,
    alpha: Fraction = DEFAULT_ALPHA,
    malicious_counts: Optional[Sequence[int]] = None,
    noisy: bool = False,
    seed: bytes | None = None,
    max_workers: int = 1,
) -> TrialReport:
    """Run one independent trial per secret, optionally on a thread pool.

    Without ``malicious_counts`` each trial draws its own count uniformly from
    ``[0, total)``. Every trial uses its own scheme and random stream, so a fixed
    ``seed`` gives the same report regardless of ``max_workers``.
    """
    if malicious_counts is not None and len(malicious_counts) != len(secrets):
        raise ValueError("malicious_counts must have one entry per secret")

    finite_field = ModIntField(modulus)
    root = SecureRandom("sbp-trials", seed)
    streams = [root.derive_child(f"trial-{idx}") for idx in range(len(secrets))]
    schemes = [build_scheme(threshold, total, finite_field, alpha) for _ in secrets]

    def _run(idx: int) -> TrialResult:
        rng = streams[idx]
        count = malicious_counts[idx] if malicious_counts is not None else rng.randbelow(total)
        return run_trial(schemes[idx], finite_field.from_int(secrets[idx]), count, rng, noisy)

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(_run, range(len(secrets))))
    else:
        results = [_run(idx) for idx in range(len(secrets))]

    report = TrialReport(
        threshold=threshold,
        total=total,
        modulus=modulus,
        alpha=Fraction(alpha),
        results=results,
        performance=_aggregate_performance(schemes),
    )
    logger.info("Ran %d trials, all consistent: %s", len(results), report.all_consistent)
    return report


def print_trial_report(report: TrialReport) -> None:
    """打印批量试验报告 / Pretty-print a trial report and its performance breakdown."""
    print("\n" + "=" * 80)
    print("***  SBP RATIONAL SECRET SHARING TRIALS  ***".center(80))
    print("=" * 80 + "\n")
    print(f"  • Threshold (t):        {report.threshold}")
    print(f"  • Shareholders (n):     {report.total}")
    print(f"  • Field:                {ModIntField(report.modulus)}")
    print(f"  • alpha:                {report.alpha}")
    print("-" * 80)

    for r in report.results:
        status = "✓" if r.consistent else "✗"
        print(
            f"  {status} secret={r.secret:<5} malicious={r.malicious_count:<3} "
            f"recovered={r.recovered_count}/{r.rational_count} rounds={r.rounds:<4} "
            f"definitive={r.definitive_round}"
        )

    print("-" * 80)
    for key, value in report.summary().items():
        print(f"  {key:<22} {value:.3f}" if isinstance(value, float) else f"  {key:<22} {value}")

    aggregated = build_scheme(report.threshold, report.total, ModIntField(report.modulus), report.alpha)
    for stat in report.performance:
        aggregated.add_performance_stat(stat.phase_name, stat.duration, stat.operations)
    aggregated.print_performance_report()
