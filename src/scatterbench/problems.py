# Copyright (c) Syntropy Systems
"""Benchmark problem definitions.

Objectives take points with shape ``(..., d)`` and reduce over the last axis,
so a single call evaluates one point or a whole grid.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np

from scatterbench.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import ArrayLike, NDArray

PLANAR = 2
DEFAULT_TOLERANCE = 1e-4


def sphere(x: ArrayLike) -> NDArray[np.float64]:
    """Sum of squares. Minimum 0 at the origin."""
    x = np.asarray(x, dtype=np.float64)
    return np.sum(x**2, axis=-1)


def rosenbrock(x: ArrayLike) -> NDArray[np.float64]:
    """Rosenbrock valley. Minimum 0 at (1, ..., 1)."""
    x = np.asarray(x, dtype=np.float64)
    head = x[..., :-1]
    tail = x[..., 1:]
    return np.sum(100.0 * (tail - head**2) ** 2 + (1.0 - head) ** 2, axis=-1)


def rastrigin(x: ArrayLike) -> NDArray[np.float64]:
    """Rastrigin. Minimum 0 at the origin."""
    x = np.asarray(x, dtype=np.float64)
    d = x.shape[-1]
    return 10.0 * d + np.sum(x**2 - 10.0 * np.cos(2.0 * np.pi * x), axis=-1)


def ackley(x: ArrayLike) -> NDArray[np.float64]:
    """Ackley with a=20, b=0.2, c=2*pi. Minimum 0 at the origin."""
    x = np.asarray(x, dtype=np.float64)
    d = x.shape[-1]
    square_term = -20.0 * np.exp(-0.2 * np.sqrt(np.sum(x**2, axis=-1) / d))
    cos_term = -np.exp(np.sum(np.cos(2.0 * np.pi * x), axis=-1) / d)
    return square_term + cos_term + 20.0 + np.e


def griewank(x: ArrayLike) -> NDArray[np.float64]:
    """Griewank. Minimum 0 at the origin."""
    x = np.asarray(x, dtype=np.float64)
    index = np.sqrt(np.arange(1, x.shape[-1] + 1, dtype=np.float64))
    total = np.sum(x**2, axis=-1) / 4000.0
    product = np.prod(np.cos(x / index), axis=-1)
    return total - product + 1.0


def levy(x: ArrayLike) -> NDArray[np.float64]:
    """Levy. Minimum 0 at (1, ..., 1)."""
    x = np.asarray(x, dtype=np.float64)
    w = 1.0 + (x - 1.0) / 4.0
    first = np.sin(np.pi * w[..., 0]) ** 2
    head = w[..., :-1]
    middle = np.sum((head - 1.0) ** 2 * (1.0 + 10.0 * np.sin(np.pi * head + 1.0) ** 2), axis=-1)
    last = w[..., -1]
    tail = (last - 1.0) ** 2 * (1.0 + np.sin(2.0 * np.pi * last) ** 2)
    return first + middle + tail


def six_hump_camel(x: ArrayLike) -> NDArray[np.float64]:
    """Six-hump camel back. Two global minima of about -1.0316."""
    x = np.asarray(x, dtype=np.float64)
    x1 = x[..., 0]
    x2 = x[..., 1]
    return (
        (4.0 - 2.1 * x1**2 + x1**4 / 3.0) * x1**2
        + x1 * x2
        + (-4.0 + 4.0 * x2**2) * x2**2
    )


def cross_in_tray(x: ArrayLike) -> NDArray[np.float64]:
    """Cross-in-tray. Four global minima of about -2.06261."""
    x = np.asarray(x, dtype=np.float64)
    x1 = x[..., 0]
    x2 = x[..., 1]
    radius = np.sqrt(x1**2 + x2**2)
    inner = np.abs(np.sin(x1) * np.sin(x2) * np.exp(np.abs(100.0 - radius / np.pi)))
    return -0.0001 * (inner + 1.0) ** 0.1


@dataclass(frozen=True)
class Problem:
    """A benchmark problem: objective, search box and success criterion.

    Scalable problems (``natural_dimension is None``) repeat ``domain[0]`` in
    every coordinate. Planar problems list one interval per coordinate.
    """

    name: str
    objective: Callable[[ArrayLike], NDArray[np.float64]]
    domain: tuple[tuple[float, float], ...]
    known_optimum: float
    natural_dimension: int | None = None
    tolerance: float = DEFAULT_TOLERANCE

    # Planar box for landscape views when it differs from the 2D search box
    view_domain: tuple[tuple[float, float], tuple[float, float]] | None = None

    def bounds(self, dimension: int) -> NDArray[np.float64]:
        """Return the search box as a ``(dimension, 2)`` array of [lower, upper]."""
        if self.natural_dimension is not None:
            if dimension != self.natural_dimension:
                msg = (
                    f"Problem '{self.name}' is {self.natural_dimension}-dimensional, "
                    f"got dimension {dimension}"
                )
                raise ConfigurationError(msg)
            return np.array(self.domain, dtype=np.float64)
        if dimension < 1:
            msg = f"Dimension must be positive, got {dimension}"
            raise ConfigurationError(msg)
        return np.tile(np.array(self.domain[0], dtype=np.float64), (dimension, 1))

    def view_bounds(self) -> NDArray[np.float64]:
        """The 2D box used for population sampling and landscape grids."""
        if self.view_domain is not None:
            return np.array(self.view_domain, dtype=np.float64)
        return self.bounds(PLANAR)

    def restricted_to(self, box: NDArray[np.float64]) -> Problem:
        """Planar copy of this problem searching ``box`` (shape ``(2, 2)``)."""
        (x_lo, x_hi), (y_lo, y_hi) = np.asarray(box, dtype=np.float64).tolist()
        return replace(
            self,
            domain=((x_lo, x_hi), (y_lo, y_hi)),
            natural_dimension=PLANAR,
            view_domain=None,
        )

    def evaluate(self, x: ArrayLike) -> float:
        """Evaluate the objective at a single point."""
        return float(self.objective(x))

    def is_success(self, value: float) -> bool:
        """True when ``value`` is within tolerance of the known optimum."""
        return bool(abs(value - self.known_optimum) < self.tolerance)

    def supported_dimensions(self, requested: list[int]) -> list[int]:
        """Dimensions this problem runs at, given the requested ones."""
        if self.natural_dimension is not None:
            return [self.natural_dimension]
        return list(requested)


PROBLEMS: dict[str, Problem] = {
    problem.name.lower(): problem
    for problem in (
        Problem("Sphere", sphere, ((-5.12, 5.12),), 0.0),
        Problem(
            "Rosenbrock",
            rosenbrock,
            ((-5.0, 10.0),),
            0.0,
            view_domain=((-2.0, 2.0), (-1.0, 3.0)),
        ),
        # Shifted boxes keep the optimum off the center of the search space
        Problem("Rastrigin", rastrigin, ((-5.12 + 1.0, 5.12 + 1.0),), 0.0),
        Problem(
            "Ackley",
            ackley,
            ((-32.768 + 1.0, 32.768 + 1.0),),
            0.0,
            view_domain=((-4.0, 6.0), (-4.0, 6.0)),
        ),
        Problem("Griewank", griewank, ((-600.0 + 1.0, 600.0 + 1.0),), 0.0),
        Problem("Levy", levy, ((-10.0, 10.0),), 0.0),
        Problem(
            "SixHumpCamel",
            six_hump_camel,
            ((-3.0, 3.0), (-2.0, 2.0)),
            -1.0316284535,
            natural_dimension=PLANAR,
        ),
        Problem(
            "CrossInTray",
            cross_in_tray,
            ((-10.0, 10.0), (-10.0, 10.0)),
            -2.0626118708,
            natural_dimension=PLANAR,
        ),
    )
}


def get_problem(name: str) -> Problem:
    """Look up a registered problem by case-insensitive name."""
    problem = PROBLEMS.get(name.lower())
    if problem is None:
        msg = f"Unknown function '{name}'. Available: {', '.join(problem_names())}"
        raise ConfigurationError(msg)
    return problem


def problem_names() -> list[str]:
    """Names of all registered problems, in registration order."""
    return [problem.name for problem in PROBLEMS.values()]
