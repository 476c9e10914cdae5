# Copyright (c) Syntropy Systems
"""Reduction of trial results into per-cell summary records."""

from __future__ import annotations

import math
from fractions import Fraction
from typing import TYPE_CHECKING

from scatterbench.errors import ConfigurationError, EmptyInputError
from scatterbench.models.report import SummaryRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from scatterbench.models.report import StdMode
    from scatterbench.models.trial import TrialResult

STD_MODES = ("sample", "population")


class TrialAccumulator:
    """Single-pass accumulator over trial results.

    Keeps a fixed number of running sums, so memory does not grow with the
    number of trials. Sums are exact rationals: floats convert to fractions
    without rounding, which makes ``add`` and ``merge`` associative and
    commutative. Trials can be fed in any order, or split across workers and
    merged, and the resulting summary is bit-for-bit the same.
    """

    __slots__ = (
        "converged",
        "count",
        "failed",
        "objective_count",
        "sum_objective",
        "sum_size",
        "sum_size_sq",
        "sum_stage1",
        "sum_stage2",
        "sum_total",
        "sum_total_sq",
        "timed_out",
    )

    def __init__(self) -> None:
        self.count = 0
        self.converged = 0
        self.failed = 0
        self.timed_out = 0
        self.sum_total = Fraction(0)
        self.sum_total_sq = Fraction(0)
        self.sum_stage1 = Fraction(0)
        self.sum_stage2 = Fraction(0)
        self.sum_size = 0
        self.sum_size_sq = 0
        self.sum_objective = Fraction(0)
        self.objective_count = 0

    def add(self, trial: TrialResult) -> None:
        """Fold one trial into the running sums."""
        total = Fraction(trial.total_runtime)
        self.count += 1
        self.converged += int(trial.converged)
        self.failed += int(trial.failed)
        self.timed_out += int(trial.timed_out)
        self.sum_total += total
        self.sum_total_sq += total * total
        self.sum_stage1 += Fraction(trial.stage1_runtime)
        self.sum_stage2 += Fraction(trial.stage2_runtime)
        self.sum_size += trial.solution_set_size
        self.sum_size_sq += trial.solution_set_size * trial.solution_set_size
        # Non-finite objectives have no exact rational form; leave them out of the mean
        if trial.best_objective is not None and math.isfinite(trial.best_objective):
            self.sum_objective += Fraction(trial.best_objective)
            self.objective_count += 1

    def merge(self, other: TrialAccumulator) -> None:
        """Fold another accumulator's trials into this one."""
        self.count += other.count
        self.converged += other.converged
        self.failed += other.failed
        self.timed_out += other.timed_out
        self.sum_total += other.sum_total
        self.sum_total_sq += other.sum_total_sq
        self.sum_stage1 += other.sum_stage1
        self.sum_stage2 += other.sum_stage2
        self.sum_size += other.sum_size
        self.sum_size_sq += other.sum_size_sq
        self.sum_objective += other.sum_objective
        self.objective_count += other.objective_count

    def summary(self, std_mode: StdMode = "sample") -> SummaryRecord:
        """Produce the summary record for everything added so far.

        Raises:
            EmptyInputError: If no trial has been added.
            ConfigurationError: If ``std_mode`` is unknown.

        """
        if std_mode not in STD_MODES:
            msg = f"Unknown std_mode '{std_mode}', expected one of {', '.join(STD_MODES)}"
            raise ConfigurationError(msg)
        if self.count == 0:
            msg = "Cannot summarize zero trials"
            raise EmptyInputError(msg)

        n = self.count
        mean_objective = (
            float(self.sum_objective / self.objective_count)
            if self.objective_count
            else None
        )
        return SummaryRecord(
            success_rate=float(Fraction(self.converged, n)),
            mean_total_runtime=float(self.sum_total / n),
            std_total_runtime=_std(self.sum_total, self.sum_total_sq, n, std_mode),
            mean_stage1_runtime=float(self.sum_stage1 / n),
            mean_stage2_runtime=float(self.sum_stage2 / n),
            mean_solution_set_size=float(Fraction(self.sum_size, n)),
            std_solution_set_size=_std(
                Fraction(self.sum_size), Fraction(self.sum_size_sq), n, std_mode
            ),
            mean_best_objective=mean_objective,
            failed_count=self.failed,
            timed_out_count=self.timed_out,
            sample_count=n,
        )


def _std(total: Fraction, total_sq: Fraction, n: int, std_mode: StdMode) -> float:
    """Standard deviation from exact sums. Sample mode uses Bessel's correction."""
    if n == 1:
        return 0.0
    squared_deviation = total_sq - total * total / n
    divisor = n - 1 if std_mode == "sample" else n
    return math.sqrt(float(squared_deviation / divisor))


def aggregate(
    results: Iterable[TrialResult],
    *,
    std_mode: StdMode = "sample",
) -> SummaryRecord:
    """Reduce the trials of one cell into a summary record.

    ``results`` is consumed in a single pass, so a generator works without
    materializing the trials.

    Raises:
        EmptyInputError: If ``results`` yields nothing.

    """
    accumulator = TrialAccumulator()
    for trial in results:
        accumulator.add(trial)
    return accumulator.summary(std_mode)
