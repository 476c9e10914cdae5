# Copyright (c) Syntropy Systems
"""Main CLI entry point for scatterbench."""

import logging

import typer
from rich.logging import RichHandler

from scatterbench.cli.ab import ab
from scatterbench.cli.compare import compare
from scatterbench.cli.functions import functions
from scatterbench.cli.run import run
from scatterbench.cli.sample import sample

app = typer.Typer(
    name="scatterbench",
    help=(
        "Benchmark a two-stage global optimizer. Run suites, "
        "compare results, catch regressions."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
    )


# Register commands
_ = app.command()(run)
_ = app.command()(compare)
_ = app.command()(ab)
_ = app.command()(sample)
_ = app.command()(functions)


if __name__ == "__main__":
    app()
