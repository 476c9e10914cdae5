# Copyright (c) Syntropy Systems
"""Benchmark suite driver: functions x dimensions x runs."""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Thread
from typing import TYPE_CHECKING

from scatterbench.aggregate import STD_MODES, TrialAccumulator
from scatterbench.errors import ConfigurationError
from scatterbench.models.report import CellKey, SuiteMetadata, SuiteReport
from scatterbench.models.trial import TrialResult
from scatterbench.problems import get_problem, problem_names
from scatterbench.seeds import SeedSource, cell_index

if TYPE_CHECKING:
    from collections.abc import Callable
    from threading import Event

    from scatterbench.config import SuiteConfig
    from scatterbench.models.report import SummaryRecord
    from scatterbench.problems import Problem
    from scatterbench.solver import Solver

logger = logging.getLogger(__name__)


def utcnow() -> str:
    """Get current UTC time as ISO format string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Cell:
    """A planned (function, dimension) cell."""

    key: CellKey
    problem: Problem

    @property
    def index(self) -> int:
        """Seed-derivation index of this cell."""
        return cell_index(self.key.function, self.key.dimension)


def plan_cells(config: SuiteConfig) -> list[Cell]:
    """Validate ``config`` and return the cells to run, in run order.

    Planar problems run at their natural dimension only. A dimension
    restriction other than that dimension skips them.

    Raises:
        ConfigurationError: On any invalid setting, naming the offending key.

    """
    if config.runs_per_cell < 1:
        msg = f"runs_per_cell must be positive, got {config.runs_per_cell}"
        raise ConfigurationError(msg)
    if config.max_workers < 1:
        msg = f"max_workers must be positive, got {config.max_workers}"
        raise ConfigurationError(msg)
    if config.trial_timeout is not None and (
        not math.isfinite(config.trial_timeout) or config.trial_timeout <= 0
    ):
        msg = f"trial_timeout must be a positive finite number, got {config.trial_timeout}"
        raise ConfigurationError(msg)
    if config.std_mode not in STD_MODES:
        msg = f"std_mode must be one of {', '.join(STD_MODES)}, got '{config.std_mode}'"
        raise ConfigurationError(msg)
    if config.base_seed is not None and config.base_seed < 0:
        msg = f"base_seed must be non-negative, got {config.base_seed}"
        raise ConfigurationError(msg)
    if not config.dimensions:
        msg = "dimensions must not be empty"
        raise ConfigurationError(msg)
    for dimension in config.dimensions:
        if dimension < 1:
            msg = f"dimensions must be positive, got {dimension}"
            raise ConfigurationError(msg)

    names = list(config.functions) or problem_names()
    problems = [get_problem(name) for name in names]

    if config.restrict_to_function is not None:
        wanted = config.restrict_to_function.lower()
        problems = [p for p in problems if p.name.lower() == wanted]
        if not problems:
            # Distinguish an unknown name from a known one outside the configured set
            _ = get_problem(config.restrict_to_function)
            msg = (
                f"restrict_to_function '{config.restrict_to_function}' "
                "is not among the configured functions"
            )
            raise ConfigurationError(msg)

    dimensions = list(config.dimensions)
    if config.restrict_to_dimension is not None:
        if config.restrict_to_dimension not in dimensions:
            msg = (
                f"restrict_to_dimension {config.restrict_to_dimension} "
                f"is not among the configured dimensions {dimensions}"
            )
            raise ConfigurationError(msg)
        dimensions = [config.restrict_to_dimension]

    cells: list[Cell] = []
    seen: set[CellKey] = set()
    for problem in problems:
        for dimension in problem.supported_dimensions(dimensions):
            if (
                config.restrict_to_dimension is not None
                and dimension != config.restrict_to_dimension
            ):
                logger.info(
                    "Skipping %s: only runs at %dD", problem.name, dimension
                )
                continue
            key = CellKey(problem.name, dimension)
            if key in seen:
                continue
            seen.add(key)
            cells.append(Cell(key=key, problem=problem))

    if not cells:
        msg = "Configuration selects no (function, dimension) cells"
        raise ConfigurationError(msg)
    return cells


def run_trial(solver: Solver, problem: Problem, dimension: int, seed: int) -> TrialResult:
    """Run one trial, turning a solver fault into a failed trial."""
    try:
        result = solver.solve(problem, dimension, seed)
        if not isinstance(result, TrialResult):
            msg = f"solve() returned {type(result).__name__}, expected TrialResult"
            raise TypeError(msg)
    except Exception as exc:
        logger.warning(
            "Trial %s/%dD seed=%d failed: %s", problem.name, dimension, seed, exc
        )
        return TrialResult.from_fault(seed, exc)
    return result


def run_trial_with_timeout(
    solver: Solver,
    problem: Problem,
    dimension: int,
    seed: int,
    timeout: float,
) -> TrialResult:
    """Run one trial on its own thread, giving up after ``timeout`` seconds.

    A trial that overruns is recorded as timed out. Its thread cannot be
    stopped and is left to finish in the background as a daemon.
    """
    outcome: list[TrialResult] = []

    def target() -> None:
        outcome.append(run_trial(solver, problem, dimension, seed))

    thread = Thread(target=target, name=f"trial-{seed}", daemon=True)
    thread.start()
    thread.join(timeout=timeout)

    if thread.is_alive() or not outcome:
        logger.warning(
            "Trial %s/%dD seed=%d timed out after %.1fs",
            problem.name,
            dimension,
            seed,
            timeout,
        )
        return TrialResult.from_timeout(seed)
    return outcome[0]


class SuiteDriver:
    """Runs every planned cell and reduces its trials into a summary."""

    config: SuiteConfig
    solver: Solver
    seeds: SeedSource
    _executor: ThreadPoolExecutor | None

    def __init__(
        self,
        config: SuiteConfig,
        solver: Solver,
        seeds: SeedSource | None = None,
    ) -> None:
        """Initialize a driver.

        Args:
            config: What to run
            solver: Solver invoked for every trial
            seeds: Seed source; defaults to one built from ``config.base_seed``

        """
        self.config = config
        self.solver = solver
        self.seeds = seeds if seeds is not None else SeedSource(config.base_seed)
        self._executor = None

    def run(
        self,
        cells: list[Cell],
        cancel: Event | None = None,
        on_cell: Callable[[CellKey, SummaryRecord], None] | None = None,
    ) -> SuiteReport:
        """Run ``cells`` in order. Cancellation is checked between cells."""
        results: dict[CellKey, SummaryRecord] = {}
        partial = False

        if self.config.max_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix="scatterbench-trial",
            )
        try:
            for position, cell in enumerate(cells, 1):
                if cancel is not None and cancel.is_set():
                    logger.warning(
                        "Suite cancelled after %d of %d cells", len(results), len(cells)
                    )
                    partial = True
                    break

                logger.info(
                    "[%d/%d] %s: %d runs",
                    position,
                    len(cells),
                    cell.key.label(),
                    self.config.runs_per_cell,
                )
                summary = self.run_cell(cell)
                results[cell.key] = summary
                logger.info(
                    "  SR: %.2f, Avg T: %.4fs, Avg SolSize: %.1f",
                    summary.success_rate,
                    summary.mean_total_runtime,
                    summary.mean_solution_set_size,
                )
                if on_cell is not None:
                    on_cell(cell.key, summary)
        finally:
            if self._executor is not None:
                # Timed-out trials may still hold threads; do not wait on them
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

        metadata = SuiteMetadata(
            runs_per_cell=self.config.runs_per_cell,
            dimensions=tuple(self.config.dimensions),
            functions=tuple(sorted({cell.key.function for cell in cells})),
            base_seed=self.seeds.base_seed,
            std_mode=self.config.std_mode,
            solver=getattr(self.solver, "name", type(self.solver).__name__),
            created_at=utcnow(),
        )
        return SuiteReport.from_cells(results, metadata, partial=partial)

    def run_cell(self, cell: Cell) -> SummaryRecord:
        """Run exactly ``runs_per_cell`` trials of one cell and summarize them."""
        seeds = self.seeds.run_seeds(self.config.runs_per_cell, cell.index)
        accumulator = TrialAccumulator()

        if self._executor is None:
            for seed in seeds:
                accumulator.add(self._trial(cell, seed))
        else:
            futures = [self._executor.submit(self._trial, cell, seed) for seed in seeds]
            # Reduction is order-independent, so fold in completion order
            for future in as_completed(futures):
                accumulator.add(future.result())

        return accumulator.summary(self.config.std_mode)

    def _trial(self, cell: Cell, seed: int) -> TrialResult:
        if self.config.trial_timeout is None:
            return run_trial(self.solver, cell.problem, cell.key.dimension, seed)
        return run_trial_with_timeout(
            self.solver,
            cell.problem,
            cell.key.dimension,
            seed,
            self.config.trial_timeout,
        )


def run_suite(
    config: SuiteConfig,
    solver: Solver,
    *,
    seeds: SeedSource | None = None,
    cancel: Event | None = None,
    on_cell: Callable[[CellKey, SummaryRecord], None] | None = None,
) -> SuiteReport:
    """Benchmark ``solver`` over every configured cell.

    The configuration is validated before any trial runs. Solver faults and
    timeouts become non-converged trials; they never abort the suite. Setting
    ``cancel`` stops the suite at the next cell boundary and returns a report
    marked ``partial``.

    Raises:
        ConfigurationError: If the configuration is invalid.

    """
    cells = plan_cells(config)
    driver = SuiteDriver(config, solver, seeds)
    return driver.run(cells, cancel=cancel, on_cell=on_cell)
