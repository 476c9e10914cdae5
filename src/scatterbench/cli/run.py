# Copyright (c) Syntropy Systems
"""Run command - benchmark the solver over functions and dimensions."""
from __future__ import annotations

import contextlib
import signal
from dataclasses import replace
from pathlib import Path
from threading import Event
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from scatterbench import codec
from scatterbench.cli.tables import comparison_table, print_comparison_summary, suite_table
from scatterbench.compare import compare
from scatterbench.config import BenchConfig, SuiteConfig, load_config
from scatterbench.driver import run_suite
from scatterbench.errors import ConfigurationError, MalformedFileError
from scatterbench.solver import ScatterSearchSolver, Solver, load_solver

if TYPE_CHECKING:
    from collections.abc import Iterator

    from scatterbench.models.report import CellKey, SummaryRecord

console = Console()


def build_suite_config(
    bench: BenchConfig,
    *,
    function: str | None,
    dim: int | None,
    runs: int | None,
    base_seed: int | None,
    workers: int | None,
    timeout: float | None,
) -> SuiteConfig:
    """Apply command-line overrides on top of the file defaults.

    ``--dim`` replaces the dimension list; ``--function`` narrows the
    configured functions to one.
    """
    suite = bench.suite
    if function is not None:
        suite = replace(suite, restrict_to_function=function)
    if dim is not None:
        suite = replace(suite, dimensions=(dim,))
    if runs is not None:
        suite = replace(suite, runs_per_cell=runs)
    if base_seed is not None:
        suite = replace(suite, base_seed=base_seed)
    if workers is not None:
        suite = replace(suite, max_workers=workers)
    if timeout is not None:
        suite = replace(suite, trial_timeout=timeout)
    return suite


def resolve_solver(spec: str | None) -> Solver:
    """The reference solver, or one imported from ``module:attribute``."""
    if spec is None:
        return ScatterSearchSolver()
    return load_solver(spec)


@contextlib.contextmanager
def cancel_on_interrupt() -> Iterator[Event]:
    """Turn Ctrl-C into a cooperative cancel checked between cells."""
    cancel = Event()

    def _signal_handler(signum: int, frame: object) -> None:
        console.print("\n[yellow]Interrupted - finishing current cell...[/yellow]")
        cancel.set()

    previous = signal.signal(signal.SIGINT, _signal_handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


def _print_cell(key: CellKey, summary: SummaryRecord) -> None:
    console.print(
        f"  {key.label()}: SR {summary.success_rate:.2f}, "
        f"Avg T {summary.mean_total_runtime:.4f}s, "
        f"Avg SolSize {summary.mean_solution_set_size:.1f}"
    )


def run(
    function: str | None = typer.Option(
        None, "--function", "-f", help="Benchmark only this function"
    ),
    dim: int | None = typer.Option(
        None, "--dim", "-d", help="Run only this dimension (default: 10, 50, 100)"
    ),
    runs: int | None = typer.Option(
        None, "--runs", "-r", help="Runs per (function, dimension) cell (default: 20)"
    ),
    base_seed: int | None = typer.Option(
        None, "--base-seed", "-s", help="Base seed for reproducible runs"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Trials to run in parallel"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Seconds before a trial counts as timed out"
    ),
    solver_spec: str | None = typer.Option(
        None, "--solver", help="Solver to benchmark as module:attribute"
    ),
    save_json: Path | None = typer.Option(
        None, "--save-json", help="Save the results to a JSON file"
    ),
    load_baseline: Path | None = typer.Option(
        None, "--load-baseline", help="Compare against a saved baseline JSON file"
    ),
    fail_on_regression: bool = typer.Option(
        False, "--fail-on-regression", help="Exit 1 when the baseline comparison regresses"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="Path to scatterbench.yaml"
    ),
) -> None:
    """Benchmark the solver over every function and dimension.

    Examples:
        scatterbench run --runs 20 --save-json baseline.json
        scatterbench run --function ackley --dim 10 --load-baseline baseline.json

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
        solver = resolve_solver(solver_spec)
        # Read the baseline before running so a bad file fails fast
        baseline = codec.load(load_baseline) if load_baseline is not None else None
    except (ConfigurationError, MalformedFileError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if baseline is not None:
        console.print(f"Loaded baseline stats from {load_baseline}")

    try:
        with cancel_on_interrupt() as cancel:
            report = run_suite(suite_config, solver, cancel=cancel, on_cell=_print_cell)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print()
    console.print(suite_table(report))
    console.print(f"  [dim]base seed:[/dim] {report.metadata.base_seed}")

    if save_json is not None:
        try:
            codec.save(report, save_json)
        except MalformedFileError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        console.print(f"Saved stats to {save_json}")

    if baseline is not None:
        comparison = compare(baseline, report, bench.thresholds)
        console.print()
        console.print(comparison_table(comparison))
        print_comparison_summary(console, comparison)
        if fail_on_regression and comparison.has_regression:
            raise typer.Exit(1)
