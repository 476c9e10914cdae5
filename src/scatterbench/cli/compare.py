# Copyright (c) Syntropy Systems
"""Compare command - compare two saved benchmark results."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from scatterbench import codec
from scatterbench.cli.tables import comparison_table, print_comparison_summary
from scatterbench.compare import compare as compare_reports
from scatterbench.config import CompareThresholds, load_config
from scatterbench.errors import ConfigurationError, MalformedFileError

console = Console()


def compare(
    baseline_path: Path = typer.Argument(..., help="Baseline results JSON"),
    candidate_path: Path = typer.Argument(..., help="Candidate results JSON"),
    sr_threshold: float | None = typer.Option(
        None,
        "--sr-threshold",
        help="Success-rate drop that counts as a regression (default: 0.02)",
    ),
    runtime_threshold: float | None = typer.Option(
        None,
        "--runtime-threshold",
        help="Relative slowdown that counts as a regression (default: 0.10)",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the comparison report as JSON"
    ),
    fail_on_regression: bool = typer.Option(
        False, "--fail-on-regression", help="Exit 1 when any cell regressed"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="Path to scatterbench.yaml"
    ),
) -> None:
    """Compare a candidate's results against a baseline.

    Example:
        scatterbench compare baseline.json candidate.json --fail-on-regression

    """
    try:
        defaults = load_config(config_file).thresholds
        thresholds = CompareThresholds(
            success_rate=sr_threshold if sr_threshold is not None else defaults.success_rate,
            runtime_relative=(
                runtime_threshold if runtime_threshold is not None else defaults.runtime_relative
            ),
        )
        baseline = codec.load(baseline_path)
        candidate = codec.load(candidate_path)
    except (ConfigurationError, MalformedFileError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    # Basic info table
    info_table = Table(show_header=True, header_style="bold")
    info_table.add_column("", style="dim")
    info_table.add_column("baseline", style="cyan")
    info_table.add_column("candidate", style="cyan")
    info_table.add_row("Solver", baseline.metadata.solver, candidate.metadata.solver)
    info_table.add_row(
        "Runs/cell",
        str(baseline.metadata.runs_per_cell),
        str(candidate.metadata.runs_per_cell),
    )
    info_table.add_row(
        "Base seed",
        str(baseline.metadata.base_seed),
        str(candidate.metadata.base_seed),
    )
    info_table.add_row("Cells", str(len(baseline)), str(len(candidate)))
    info_table.add_row(
        "Created", baseline.metadata.created_at or "-", candidate.metadata.created_at or "-"
    )
    info_table.add_row(
        "Partial",
        "yes" if baseline.partial else "no",
        "yes" if candidate.partial else "no",
    )
    console.print(info_table)

    report = compare_reports(baseline, candidate, thresholds)
    console.print()
    console.print(comparison_table(report))
    print_comparison_summary(console, report)

    if output is not None:
        try:
            codec.save_comparison(report, output)
        except MalformedFileError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        console.print(f"Saved comparison to {output}")

    if fail_on_regression and report.has_regression:
        raise typer.Exit(1)
