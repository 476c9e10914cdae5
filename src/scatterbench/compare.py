# Copyright (c) Syntropy Systems
"""Comparison of two suite reports (baseline vs. candidate)."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from typing_extensions import TypeAlias

from scatterbench.config import CompareThresholds
from scatterbench.driver import SuiteDriver, plan_cells
from scatterbench.models.report import (
    CellComparison,
    CellKey,
    ComparisonReport,
    ComparisonThresholdsSnapshot,
    MetricDelta,
)
from scatterbench.seeds import SeedSource

if TYPE_CHECKING:
    from threading import Event

    from scatterbench.config import SuiteConfig
    from scatterbench.models.report import SuiteReport, SummaryRecord
    from scatterbench.solver import Solver

logger = logging.getLogger(__name__)

MetricKind: TypeAlias = Literal["success", "runtime", "info"]

# Compared metrics and how a change in each is judged
COMPARED_METRICS: tuple[tuple[str, MetricKind], ...] = (
    ("success_rate", "success"),
    ("mean_total_runtime", "runtime"),
    ("mean_stage1_runtime", "runtime"),
    ("mean_stage2_runtime", "runtime"),
    ("mean_solution_set_size", "info"),
)


def metric_delta(
    metric: str,
    kind: MetricKind,
    baseline: float,
    candidate: float,
    thresholds: CompareThresholds,
) -> MetricDelta:
    """Signed delta of one metric with its regression and improvement flags.

    Success rate regresses when it drops by more than the absolute threshold.
    Runtimes regress when they grow by more than the relative threshold of
    the baseline value. Solution set size is informational and never flagged.
    """
    delta = candidate - baseline
    regressed = improved = False
    if kind == "success":
        regressed = delta < -thresholds.success_rate
        improved = delta > thresholds.success_rate
    elif kind == "runtime":
        allowance = thresholds.runtime_relative * baseline
        regressed = delta > allowance
        improved = delta < -allowance
    return MetricDelta(
        metric=metric,
        baseline=baseline,
        candidate=candidate,
        delta=delta,
        regressed=regressed,
        improved=improved,
        informational=kind == "info",
    )


def is_paired(baseline: SuiteReport, candidate: SuiteReport) -> bool:
    """True when both suites ran the same seeds for every shared cell."""
    return (
        baseline.metadata.base_seed is not None
        and baseline.metadata.base_seed == candidate.metadata.base_seed
        and baseline.metadata.runs_per_cell == candidate.metadata.runs_per_cell
    )


def compare_cell(
    key: CellKey,
    baseline: SummaryRecord,
    candidate: SummaryRecord,
    thresholds: CompareThresholds,
    *,
    paired: bool = False,
) -> CellComparison:
    """Compare the summaries of one cell present on both sides."""
    metrics = tuple(
        metric_delta(
            name,
            kind,
            float(getattr(baseline, name)),
            float(getattr(candidate, name)),
            thresholds,
        )
        for name, kind in COMPARED_METRICS
    )
    return CellComparison(
        function=key.function,
        dimension=key.dimension,
        matched=True,
        paired=paired and baseline.sample_count == candidate.sample_count,
        metrics=metrics,
    )


def compare(
    baseline: SuiteReport,
    candidate: SuiteReport,
    thresholds: CompareThresholds | None = None,
) -> ComparisonReport:
    """Compare every cell of ``baseline`` and ``candidate``.

    Cells present on one side only are reported as unmatched with their
    side. Entries are ordered by dimension, then function name. The result
    depends on the inputs alone.
    """
    if thresholds is None:
        thresholds = CompareThresholds()
    paired = is_paired(baseline, candidate)

    keys = sorted(
        set(baseline.keys()) | set(candidate.keys()),
        key=CellKey.sort_key,
    )
    entries: list[CellComparison] = []
    for key in keys:
        base = baseline.get(key)
        cand = candidate.get(key)
        if base is not None and cand is not None:
            entries.append(compare_cell(key, base, cand, thresholds, paired=paired))
        else:
            entries.append(
                CellComparison(
                    function=key.function,
                    dimension=key.dimension,
                    matched=False,
                    side="baseline" if base is not None else "candidate",
                )
            )

    return ComparisonReport(
        thresholds=ComparisonThresholdsSnapshot(
            success_rate=thresholds.success_rate,
            runtime_relative=thresholds.runtime_relative,
        ),
        entries=tuple(entries),
    )


def run_ab(
    config: SuiteConfig,
    baseline_solver: Solver,
    candidate_solver: Solver,
    thresholds: CompareThresholds | None = None,
    *,
    cancel: Event | None = None,
) -> tuple[SuiteReport, SuiteReport, ComparisonReport]:
    """Run the same suite with two solvers and compare them.

    Both suites share one seed source, so every cell is a paired comparison.
    The configuration is validated once, before either suite starts.

    Returns:
        (baseline report, candidate report, comparison report)

    """
    cells = plan_cells(config)
    seeds = SeedSource(config.base_seed)

    logger.info("Phase 1: baseline (%s)", getattr(baseline_solver, "name", "baseline"))
    baseline = SuiteDriver(config, baseline_solver, seeds).run(cells, cancel=cancel)

    logger.info("Phase 2: candidate (%s)", getattr(candidate_solver, "name", "candidate"))
    candidate = SuiteDriver(config, candidate_solver, seeds).run(cells, cancel=cancel)

    return baseline, candidate, compare(baseline, candidate, thresholds)
