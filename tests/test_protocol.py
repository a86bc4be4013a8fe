"""Tests for batch trial orchestration and reporting."""

import math

import pytest

from protocol import TrialReport, print_trial_report, run_trial, run_trials


class TestRunTrial:

    def test_within_tolerance(self, scheme, field, rng):
        result = run_trial(scheme, field.from_int(17), 2, rng)
        assert result.secret == 17
        assert result.coalition_secret == 17
        assert result.rational_count == 8
        assert result.expected_success
        assert result.correct_count == 8
        assert result.consistent

    def test_beyond_tolerance(self, scheme, field, rng):
        result = run_trial(scheme, field.from_int(17), 6, rng)
        assert not result.expected_success
        assert result.recovered_count == 0
        assert result.rounds == 1
        assert result.consistent

    def test_noisy(self, scheme, field, rng):
        result = run_trial(scheme, field.from_int(17), 3, rng, noisy=True)
        assert result.noisy
        assert result.consistent

    def test_invalid_malicious_count(self, scheme, field, rng):
        with pytest.raises(ValueError):
            run_trial(scheme, field.from_int(17), 11, rng)


class TestRunTrials:

    def test_fixed_counts(self):
        report = run_trials([1, 2, 3], malicious_counts=[0, 4, 6], seed=b"trials")
        assert [r.secret for r in report.results] == [1, 2, 3]
        assert [r.expected_success for r in report.results] == [True, True, False]
        assert report.all_consistent

    def test_random_counts(self):
        report = run_trials(list(range(5)), seed=b"trials")
        assert all(0 <= r.malicious_count < 10 for r in report.results)
        assert report.all_consistent

    def test_reproducible_across_workers(self):
        serial = run_trials([4, 5, 6, 7], seed=b"repro")
        pooled = run_trials([4, 5, 6, 7], seed=b"repro", max_workers=4)
        assert [r.definitive_round for r in serial.results] == [r.definitive_round for r in pooled.results]
        assert [r.malicious_count for r in serial.results] == [r.malicious_count for r in pooled.results]
        assert [r.rounds for r in serial.results] == [r.rounds for r in pooled.results]

    def test_mismatched_counts(self):
        with pytest.raises(ValueError):
            run_trials([1, 2], malicious_counts=[0])

    def test_performance_aggregated(self):
        report = run_trials([1, 2], malicious_counts=[0, 0], seed=b"perf")
        phases = {stat.phase_name: stat for stat in report.performance}
        assert set(phases) == {"Deal", "Coalition combine", "Run protocol"}
        assert phases["Deal"].operations["Shamir shares"] == 20


class TestReport:

    def test_summary(self):
        report = run_trials([1, 2, 3], malicious_counts=[0, 1, 7], seed=b"summary")
        summary = report.summary()
        assert summary['trials'] == 3
        assert summary['mean_rounds'] >= 1
        assert summary['success_rate'] == 1.0
        assert summary['clean_failure_rate'] == 1.0

    def test_summary_without_failures(self):
        report = run_trials([1], malicious_counts=[0], seed=b"summary")
        assert math.isnan(report.summary()['clean_failure_rate'])

    def test_empty(self):
        assert TrialReport(6, 10, 1009, 0.1).summary() == {'trials': 0}

    def test_print(self, capsys):
        report = run_trials([3], malicious_counts=[0], seed=b"print")
        print_trial_report(report)
        out = capsys.readouterr().out
        assert "SBP RATIONAL SECRET SHARING TRIALS" in out
        assert "SBP PERFORMANCE REPORT" in out
        assert "secret=3" in out
