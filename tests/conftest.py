# Copyright (c) Syntropy Systems
"""Pytest fixtures for scatterbench tests."""

import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from fake_solvers import FakeSolver
from scatterbench.models.report import (
    CellKey,
    SuiteMetadata,
    SuiteReport,
    SummaryRecord,
)
from scatterbench.models.trial import TrialResult

# Store original cwd at module load time
_original_cwd = Path.cwd()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def bench_project(temp_dir: Path) -> Generator[Path, None, None]:
    """A working directory with a small, fast scatterbench.yaml."""
    (temp_dir / "scatterbench.yaml").write_text(
        "functions: [Sphere, Ackley]\n"
        "dimensions: [2, 3]\n"
        "runs: 4\n"
        "base_seed: 7\n"
    )
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def fake_solver() -> FakeSolver:
    """A solver that always converges in about half a second of fake time."""
    return FakeSolver()


def make_trial(
    converged: bool = True,
    total: float = 1.0,
    size: int = 1,
    seed: int = 0,
    objective: float | None = 0.0,
) -> TrialResult:
    """A trial whose stages split the total runtime 1:3."""
    return TrialResult(
        converged=converged,
        total_runtime=total,
        stage1_runtime=total / 4,
        stage2_runtime=total * 3 / 4,
        solution_set_size=size,
        seed=seed,
        best_objective=objective,
    )


def make_summary(
    success_rate: float = 1.0,
    runtime: float = 1.0,
    solution_set_size: float = 1.0,
    sample_count: int = 20,
) -> SummaryRecord:
    return SummaryRecord(
        success_rate=success_rate,
        mean_total_runtime=runtime,
        std_total_runtime=0.1,
        mean_stage1_runtime=runtime / 4,
        mean_stage2_runtime=runtime * 3 / 4,
        mean_solution_set_size=solution_set_size,
        sample_count=sample_count,
    )


def make_report(
    cells: dict[tuple[str, int], SummaryRecord],
    base_seed: int | None = 1,
    runs_per_cell: int = 20,
    partial: bool = False,
) -> SuiteReport:
    metadata = SuiteMetadata(
        runs_per_cell=runs_per_cell,
        dimensions=tuple(sorted({dim for _, dim in cells})),
        functions=tuple(sorted({name for name, _ in cells})),
        base_seed=base_seed,
        solver="fake",
        created_at="2024-01-01T00:00:00Z",
    )
    return SuiteReport.from_cells(
        {CellKey(*key): summary for key, summary in cells.items()},
        metadata,
        partial=partial,
    )


@pytest.fixture
def trial_factory() -> Callable[..., TrialResult]:
    """Build trial results with sensible defaults."""
    return make_trial


@pytest.fixture
def summary_factory() -> Callable[..., SummaryRecord]:
    """Build summary records with sensible defaults."""
    return make_summary


@pytest.fixture
def report_factory() -> Callable[..., SuiteReport]:
    """Build suite reports from a {(function, dim): summary} mapping."""
    return make_report
