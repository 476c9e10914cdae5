# Copyright (c) Syntropy Systems
"""Pydantic models for single solver runs."""

from __future__ import annotations

from pydantic import Field, model_validator
from typing_extensions import Self

from .base import FrozenModel


class TrialResult(FrozenModel):
    """Outcome of one stochastic solver run on one (function, dimension) cell.

    Durations are in seconds. A run that did not converge still reports its
    timing; runs that crashed or timed out carry zero timing and never count
    as converged.
    """

    converged: bool
    total_runtime: float = Field(ge=0.0, allow_inf_nan=False)
    stage1_runtime: float = Field(ge=0.0, allow_inf_nan=False)
    stage2_runtime: float = Field(ge=0.0, allow_inf_nan=False)
    solution_set_size: int = Field(ge=0)
    seed: int = Field(ge=0)
    best_objective: float | None = None
    timed_out: bool = False
    error: str | None = None

    @model_validator(mode="after")
    def _faults_never_converge(self) -> Self:
        if self.converged and (self.timed_out or self.error is not None):
            msg = "A failed or timed-out trial cannot be converged"
            raise ValueError(msg)
        return self

    @property
    def failed(self) -> bool:
        """True when the solver raised instead of returning a result."""
        return self.error is not None

    @classmethod
    def from_fault(cls, seed: int, exc: BaseException) -> TrialResult:
        """Record a hard solver fault as a non-converged trial."""
        message = str(exc) or type(exc).__name__
        return cls(
            converged=False,
            total_runtime=0.0,
            stage1_runtime=0.0,
            stage2_runtime=0.0,
            solution_set_size=0,
            seed=seed,
            error=message,
        )

    @classmethod
    def from_timeout(cls, seed: int) -> TrialResult:
        """Record a trial that exceeded the per-trial timeout."""
        return cls(
            converged=False,
            total_runtime=0.0,
            stage1_runtime=0.0,
            stage2_runtime=0.0,
            solution_set_size=0,
            seed=seed,
            timed_out=True,
        )


class PopulationSample(FrozenModel):
    """Stage 1 exploration points of one run, in visiting order."""

    seed: int
    points: tuple[tuple[float, float], ...]

    def __len__(self) -> int:
        return len(self.points)

    @property
    def xs(self) -> list[float]:
        """First coordinate of every point."""
        return [p[0] for p in self.points]

    @property
    def ys(self) -> list[float]:
        """Second coordinate of every point."""
        return [p[1] for p in self.points]


class LandscapeGrid(FrozenModel):
    """Objective values sampled on a regular grid, ``z[row][col]`` at ``(x[col], y[row])``."""

    function: str
    x: tuple[float, ...]
    y: tuple[float, ...]
    z: tuple[tuple[float, ...], ...]
