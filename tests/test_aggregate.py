"""Tests for reducing trial results into summary records."""

import math
import random
import statistics

import pytest

from scatterbench.aggregate import TrialAccumulator, aggregate
from scatterbench.errors import ConfigurationError, EmptyInputError
from scatterbench.models.trial import TrialResult


class TestAggregate:
    """Tests for aggregate()."""

    def test_counts_and_success_rate(self, trial_factory):
        """Test sample_count and success rate over mixed outcomes."""
        trials = [trial_factory(converged=i % 4 != 0, seed=i) for i in range(20)]

        summary = aggregate(trials)

        assert summary.sample_count == 20
        assert summary.success_rate == 0.75
        assert summary.converged_count == 15

    def test_means(self, trial_factory):
        """Test means of runtimes and solution set size."""
        trials = [
            trial_factory(total=1.0, size=1),
            trial_factory(total=2.0, size=2),
            trial_factory(total=3.0, size=6),
        ]

        summary = aggregate(trials)

        assert summary.mean_total_runtime == pytest.approx(2.0)
        assert summary.mean_stage1_runtime == pytest.approx(0.5)
        assert summary.mean_stage2_runtime == pytest.approx(1.5)
        assert summary.mean_solution_set_size == pytest.approx(3.0)

    def test_sample_std_by_default(self, trial_factory):
        """Test std uses Bessel's correction unless asked otherwise."""
        totals = [0.5, 1.25, 2.0, 4.5]
        trials = [trial_factory(total=t) for t in totals]

        assert aggregate(trials).std_total_runtime == pytest.approx(statistics.stdev(totals))
        assert aggregate(trials, std_mode="population").std_total_runtime == pytest.approx(
            statistics.pstdev(totals)
        )

    def test_single_trial_has_zero_std(self, trial_factory):
        """Test N=1 gives std 0 in both modes."""
        for mode in ("sample", "population"):
            summary = aggregate([trial_factory(total=3.0, size=4)], std_mode=mode)
            assert summary.std_total_runtime == 0.0
            assert summary.std_solution_set_size == 0.0

    def test_empty_input_fails(self):
        """Test that no trials is an error, not a zero record."""
        with pytest.raises(EmptyInputError):
            aggregate([])

    def test_unknown_std_mode_fails(self, trial_factory):
        """Test unknown std mode is a configuration error."""
        with pytest.raises(ConfigurationError, match="std_mode"):
            aggregate([trial_factory()], std_mode="median")

    def test_accepts_generator(self, trial_factory):
        """Test results are consumed in a single pass."""
        summary = aggregate(trial_factory(seed=i) for i in range(5))

        assert summary.sample_count == 5

    def test_order_independent(self, trial_factory):
        """Test shuffling the input gives an identical record."""
        rng = random.Random(42)
        trials = [
            trial_factory(
                converged=rng.random() < 0.6,
                total=rng.uniform(0.001, 50.0),
                size=rng.randint(0, 9),
                seed=i,
                objective=rng.uniform(-1e6, 1e6),
            )
            for i in range(200)
        ]
        expected = aggregate(trials)

        for _ in range(5):
            rng.shuffle(trials)
            assert aggregate(trials) == expected

    def test_success_rate_bounds(self, trial_factory):
        """Test success rate stays in [0, 1] at the extremes."""
        assert aggregate([trial_factory(converged=False)] * 3).success_rate == 0.0
        assert aggregate([trial_factory(converged=True)] * 3).success_rate == 1.0

    def test_faults_counted(self):
        """Test failed and timed-out trials are counted and never converge."""
        trials = [
            TrialResult.from_fault(1, RuntimeError("boom")),
            TrialResult.from_timeout(2),
            TrialResult.from_timeout(3),
        ]

        summary = aggregate(trials)

        assert summary.failed_count == 1
        assert summary.timed_out_count == 2
        assert summary.success_rate == 0.0
        assert summary.mean_best_objective is None

    def test_mean_best_objective_skips_missing(self, trial_factory):
        """Test trials without an objective are left out of its mean."""
        trials = [
            trial_factory(objective=1.0),
            trial_factory(objective=3.0),
            trial_factory(objective=None),
            trial_factory(objective=math.inf),
        ]

        assert aggregate(trials).mean_best_objective == pytest.approx(2.0)


class TestTrialAccumulator:
    """Tests for the mergeable accumulator."""

    def test_merge_matches_single_pass(self, trial_factory):
        """Test merging partial accumulators equals one pass over everything."""
        trials = [trial_factory(converged=i % 3 == 0, total=0.1 * (i + 1), seed=i) for i in range(12)]

        left = TrialAccumulator()
        right = TrialAccumulator()
        for trial in trials[:5]:
            left.add(trial)
        for trial in trials[5:]:
            right.add(trial)
        left.merge(right)

        assert left.summary() == aggregate(trials)

    def test_empty_accumulator_fails(self):
        """Test summarizing an empty accumulator."""
        with pytest.raises(EmptyInputError):
            TrialAccumulator().summary()
