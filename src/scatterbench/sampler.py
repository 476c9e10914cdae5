# Copyright (c) Syntropy Systems
"""Stage 1 population sampling on planar problems, for landscape plots."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from scatterbench.errors import (
    BoundsViolationError,
    ConfigurationError,
    SolverContractError,
    UnsupportedDimensionError,
)
from scatterbench.models.trial import LandscapeGrid, PopulationSample
from scatterbench.problems import PLANAR, Problem, get_problem
from scatterbench.seeds import SeedSource, cell_index

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from scatterbench.solver import Solver

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION = 80

# Slack for float noise at the box edges
BOUNDS_EPSILON = 1e-12


def _planar_problem(function_id: str | Problem) -> Problem:
    """Resolve a problem that can be drawn in the plane.

    Scalable problems are instantiated in 2D; fixed-dimension problems must
    be 2D already.
    """
    problem = function_id if isinstance(function_id, Problem) else get_problem(function_id)
    if problem.natural_dimension not in (None, PLANAR):
        msg = (
            f"Population sampling needs a 2D problem; '{problem.name}' "
            f"is {problem.natural_dimension}-dimensional"
        )
        raise UnsupportedDimensionError(msg)
    return problem


def _resolve_bounds(problem: Problem, bounds: ArrayLike | None) -> NDArray[np.float64]:
    if bounds is None:
        return problem.view_bounds()
    box = np.asarray(bounds, dtype=np.float64)
    if box.shape != (PLANAR, 2) or not np.all(box[:, 0] < box[:, 1]):
        msg = f"bounds must be [[x_lo, x_hi], [y_lo, y_hi]] with lo < hi, got {box.tolist()}"
        raise ConfigurationError(msg)
    return box


def sample_population(
    function_id: str | Problem,
    run_count: int,
    bounds: ArrayLike | None = None,
    *,
    solver: Solver,
    seeds: SeedSource | None = None,
) -> list[PopulationSample]:
    """Collect the Stage 1 points of ``run_count`` independent solver runs.

    Points are checked against ``bounds`` (the problem's own box by default)
    but never clipped: a point outside means the solver broke its contract.

    Raises:
        UnsupportedDimensionError: If the problem is not planar.
        ConfigurationError: If ``run_count`` or ``bounds`` is invalid.
        BoundsViolationError: If the solver sampled outside ``bounds``.
        SolverContractError: If the solver returned points that are not 2D.

    """
    problem = _planar_problem(function_id)
    if run_count < 1:
        msg = f"run_count must be positive, got {run_count}"
        raise ConfigurationError(msg)
    box = _resolve_bounds(problem, bounds)
    search = problem.restricted_to(box)
    if seeds is None:
        seeds = SeedSource()

    samples: list[PopulationSample] = []
    for seed in seeds.run_seeds(run_count, cell_index(problem.name, PLANAR)):
        points = np.asarray(solver.explore(search, PLANAR, seed), dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != PLANAR:
            msg = (
                f"Exploration for seed {seed} returned shape {points.shape}, "
                f"expected (n, {PLANAR})"
            )
            raise SolverContractError(msg)
        outside = np.any(
            (points < box[:, 0] - BOUNDS_EPSILON) | (points > box[:, 1] + BOUNDS_EPSILON),
            axis=1,
        )
        if np.any(outside):
            first = points[int(np.argmax(outside))]
            raise BoundsViolationError(
                (float(first[0]), float(first[1])), seed, box.tolist()
            )
        samples.append(
            PopulationSample(
                seed=seed,
                points=tuple((float(x), float(y)) for x, y in points),
            )
        )
        logger.debug("%s seed=%d: %d points", problem.name, seed, len(points))

    return samples


def landscape_grid(
    function_id: str | Problem,
    bounds: ArrayLike | None = None,
    resolution: int = DEFAULT_RESOLUTION,
) -> LandscapeGrid:
    """Evaluate a planar objective on a ``resolution x resolution`` grid."""
    problem = _planar_problem(function_id)
    if resolution < 2:
        msg = f"resolution must be at least 2, got {resolution}"
        raise ConfigurationError(msg)
    box = _resolve_bounds(problem, bounds)

    xs = np.linspace(box[0, 0], box[0, 1], resolution)
    ys = np.linspace(box[1, 0], box[1, 1], resolution)
    grid_x, grid_y = np.meshgrid(xs, ys)
    z = problem.objective(np.stack([grid_x, grid_y], axis=-1))

    return LandscapeGrid(
        function=problem.name,
        x=tuple(xs.tolist()),
        y=tuple(ys.tolist()),
        z=tuple(tuple(row) for row in z.tolist()),
    )
