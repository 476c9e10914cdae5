# Copyright (c) Syntropy Systems
"""Exception taxonomy for scatterbench."""

from __future__ import annotations


class ScatterbenchError(Exception):
    """Base class for all scatterbench errors."""


class ConfigurationError(ScatterbenchError):
    """Invalid suite or sampler configuration. Raised before any run starts."""


class EmptyInputError(ScatterbenchError):
    """Aggregation was asked to summarize zero trials."""


class UnsupportedDimensionError(ScatterbenchError):
    """Population sampling was requested for a problem that is not planar."""


class BoundsViolationError(ScatterbenchError):
    """The solver produced an exploration point outside the problem bounds."""

    def __init__(self, point: tuple[float, float], seed: int, bounds: list[list[float]]) -> None:
        self.point = point
        self.seed = seed
        self.bounds = bounds
        super().__init__(
            f"Point ({point[0]:.6g}, {point[1]:.6g}) from seed {seed} "
            f"lies outside bounds {bounds}"
        )


class SolverContractError(ScatterbenchError):
    """A solver returned output of the wrong shape or type."""


class MalformedFileError(ScatterbenchError):
    """A persisted report could not be read or is structurally invalid."""
