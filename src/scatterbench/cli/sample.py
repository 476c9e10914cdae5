# Copyright (c) Syntropy Systems
"""Sample command - Stage 1 populations on a 2D landscape."""
from __future__ import annotations

from pathlib import Path

import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.table import Table

from scatterbench.cli.run import resolve_solver
from scatterbench.errors import ScatterbenchError
from scatterbench.models.base import JSONValue
from scatterbench.sampler import DEFAULT_RESOLUTION, landscape_grid, sample_population
from scatterbench.seeds import SeedSource

console = Console()
_EXPORT_ADAPTER = TypeAdapter(dict[str, JSONValue])


def sample(
    function: str = typer.Argument(..., help="2D function to sample"),
    runs: int = typer.Option(6, "--runs", "-r", help="Independent runs to sample"),
    base_seed: int | None = typer.Option(
        None, "--base-seed", "-s", help="Base seed for reproducible runs"
    ),
    resolution: int = typer.Option(
        DEFAULT_RESOLUTION, "--resolution", help="Contour grid points per axis"
    ),
    solver_spec: str | None = typer.Option(
        None, "--solver", help="Solver to sample as module:attribute"
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write samples and contour grid as JSON for plotting",
    ),
) -> None:
    """Collect Stage 1 exploration points of several runs on a 2D function.

    Example:
        scatterbench sample sixhumpcamel --runs 6 -o plots/sixhumpcamel.json

    """
    try:
        solver = resolve_solver(solver_spec)
        samples = sample_population(
            function, runs, solver=solver, seeds=SeedSource(base_seed)
        )
        grid = landscape_grid(function, resolution=resolution)
    except ScatterbenchError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    table = Table(title=f"{grid.function} - Stage 1 population ({runs} runs)")
    table.add_column("Run", style="dim")
    table.add_column("Seed")
    table.add_column("Points", justify="right")
    table.add_column("x range", justify="right")
    table.add_column("y range", justify="right")
    for i, population in enumerate(samples, 1):
        xs, ys = population.xs, population.ys
        x_range = f"{min(xs):.3g} .. {max(xs):.3g}" if xs else "-"
        y_range = f"{min(ys):.3g} .. {max(ys):.3g}" if ys else "-"
        table.add_row(str(i), str(population.seed), str(len(population)), x_range, y_range)
    console.print(table)

    if output is not None:
        data: dict[str, JSONValue] = {
            "function": grid.function,
            "grid": grid.model_dump(mode="json"),
            "samples": [population.model_dump(mode="json") for population in samples],
        }
        output.parent.mkdir(parents=True, exist_ok=True)
        _ = output.write_bytes(_EXPORT_ADAPTER.dump_json(data, indent=2))
        console.print(f"  Saved samples to {output}")
