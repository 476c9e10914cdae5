# Copyright (c) Syntropy Systems
"""A/B command - benchmark two solvers on identical seeds and compare."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from scatterbench import codec
from scatterbench.cli.run import build_suite_config, cancel_on_interrupt
from scatterbench.cli.tables import comparison_table, print_comparison_summary, suite_table
from scatterbench.compare import run_ab
from scatterbench.config import load_config
from scatterbench.errors import ConfigurationError, MalformedFileError
from scatterbench.solver import load_solver

console = Console()


def ab(
    baseline_solver: str = typer.Argument(..., help="Baseline solver as module:attribute"),
    candidate_solver: str = typer.Argument(..., help="Candidate solver as module:attribute"),
    function: str | None = typer.Option(
        None, "--function", "-f", help="Benchmark only this function"
    ),
    dim: int | None = typer.Option(None, "--dim", "-d", help="Run only this dimension"),
    runs: int | None = typer.Option(None, "--runs", "-r", help="Runs per cell"),
    base_seed: int | None = typer.Option(
        None, "--base-seed", "-s", help="Base seed shared by both solvers"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Trials to run in parallel"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Seconds before a trial counts as timed out"
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Write baseline.json, candidate.json and comparison.json here",
    ),
    fail_on_regression: bool = typer.Option(
        False, "--fail-on-regression", help="Exit 1 when any cell regressed"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="Path to scatterbench.yaml"
    ),
) -> None:
    """Run the same suite with two solver implementations and compare them.

    Both solvers see identical seeds, so every cell is a paired comparison.

    Example:
        scatterbench ab scatterbench.solver:ScatterSearchSolver mypkg.fast:Solver

    """
    try:
        bench = load_config(config_file)
        suite_config = build_suite_config(
            bench,
            function=function,
            dim=dim,
            runs=runs,
            base_seed=base_seed,
            workers=workers,
            timeout=timeout,
        )
        baseline = load_solver(baseline_solver)
        candidate = load_solver(candidate_solver)
        with cancel_on_interrupt() as cancel:
            baseline_report, candidate_report, report = run_ab(
                suite_config, baseline, candidate, bench.thresholds, cancel=cancel
            )
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(suite_table(baseline_report, title=f"Baseline: {baseline.name}"))
    console.print(suite_table(candidate_report, title=f"Candidate: {candidate.name}"))
    console.print()
    console.print(comparison_table(report))
    print_comparison_summary(console, report)

    if output_dir is not None:
        try:
            codec.save(baseline_report, output_dir / "baseline.json")
            codec.save(candidate_report, output_dir / "candidate.json")
            codec.save_comparison(report, output_dir / "comparison.json")
        except MalformedFileError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        console.print(f"Saved results to {output_dir}")

    if fail_on_regression and report.has_regression:
        raise typer.Exit(1)
