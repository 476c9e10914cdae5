# Copyright (c) Syntropy Systems
"""Rich tables shared by the CLI commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

if TYPE_CHECKING:
    from rich.console import Console

    from scatterbench.models.report import ComparisonReport, SuiteReport

METRIC_LABELS = {
    "success_rate": "SR",
    "mean_total_runtime": "Total (s)",
    "mean_stage1_runtime": "Stage 1 (s)",
    "mean_stage2_runtime": "Stage 2 (s)",
    "mean_solution_set_size": "SolSize",
}


def suite_table(report: SuiteReport, title: str = "Benchmark results") -> Table:
    """One row per cell with the headline summary fields."""
    if report.partial:
        title = f"{title} [yellow](partial)[/yellow]"
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Function")
    table.add_column("Dim", justify="right")
    table.add_column("N", justify="right", style="dim")
    table.add_column("SR", justify="right")
    table.add_column("Avg T (s)", justify="right")
    table.add_column("Std T (s)", justify="right", style="dim")
    table.add_column("Stage 1 (s)", justify="right", style="dim")
    table.add_column("Stage 2 (s)", justify="right", style="dim")
    table.add_column("SolSize", justify="right")
    table.add_column("Faults", justify="right")

    for entry in report.entries:
        s = entry.summary
        faults = s.failed_count + s.timed_out_count
        table.add_row(
            entry.function,
            str(entry.dimension),
            str(s.sample_count),
            f"{s.success_rate:.2f}",
            f"{s.mean_total_runtime:.4f}",
            f"{s.std_total_runtime:.4f}",
            f"{s.mean_stage1_runtime:.4f}",
            f"{s.mean_stage2_runtime:.4f}",
            f"{s.mean_solution_set_size:.1f}",
            f"[red]{faults}[/red]" if faults else "-",
        )
    return table


def _styled_delta(metric: str, delta: float, regressed: bool, improved: bool) -> str:
    text = f"{delta:+.2f}" if metric == "success_rate" else f"{delta:+.4f}"
    if regressed:
        return f"[red]{text}[/red]"
    if improved:
        return f"[green]{text}[/green]"
    return text


def comparison_table(report: ComparisonReport, title: str = "Baseline vs. candidate") -> Table:
    """One row per cell: deltas colored red for regressions, green for improvements."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Function")
    table.add_column("Dim", justify="right")
    for label in METRIC_LABELS.values():
        table.add_column(f"Δ {label}", justify="right")
    table.add_column("Verdict")

    for entry in report.entries:
        if not entry.matched:
            table.add_row(
                entry.function,
                str(entry.dimension),
                *["-" for _ in METRIC_LABELS],
                f"[dim]only in {entry.side}[/dim]",
            )
            continue

        cells = [
            _styled_delta(
                metric,
                entry.metric(metric).delta,
                entry.metric(metric).regressed,
                entry.metric(metric).improved,
            )
            for metric in METRIC_LABELS
        ]
        if entry.regressed:
            verdict = "[red]regressed[/red]"
        elif entry.improved:
            verdict = "[green]improved[/green]"
        else:
            verdict = "unchanged"
        if entry.paired:
            verdict += " [dim](paired)[/dim]"
        table.add_row(entry.function, str(entry.dimension), *cells, verdict)
    return table


def print_comparison_summary(console: Console, report: ComparisonReport) -> None:
    """Headline counts under the comparison table."""
    regressions = report.regressions
    unmatched = report.unmatched
    console.print(
        f"  [dim]thresholds:[/dim] SR -{report.thresholds.success_rate:.2f}, "
        f"runtime +{report.thresholds.runtime_relative:.0%}"
    )
    if unmatched:
        console.print(f"  [yellow]unmatched:[/yellow] {len(unmatched)} cells")
    if regressions:
        labels = ", ".join(entry.key.label() for entry in regressions)
        console.print(f"[red]Regressions in {len(regressions)} cells:[/red] {labels}")
    else:
        console.print("[green]No regressions[/green]")
