# Copyright (c) Syntropy Systems
"""Functions command - list registered benchmark problems."""
from __future__ import annotations

from rich.console import Console
from rich.table import Table

from scatterbench.problems import PROBLEMS

console = Console()


def functions() -> None:
    """List the benchmark functions and their search boxes."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Function")
    table.add_column("Dimension")
    table.add_column("Bounds")
    table.add_column("Optimum", justify="right")

    for problem in PROBLEMS.values():
        if problem.natural_dimension is None:
            dimension = "any"
            lo, hi = problem.domain[0]
            bounds = f"[{lo:g}, {hi:g}]^d"
        else:
            dimension = str(problem.natural_dimension)
            bounds = " x ".join(f"[{lo:g}, {hi:g}]" for lo, hi in problem.domain)
        table.add_row(problem.name, dimension, bounds, f"{problem.known_optimum:g}")

    console.print(table)
