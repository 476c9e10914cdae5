# Copyright (c) Syntropy Systems
"""Solver interface and the reference two-stage scatter search solver."""

from __future__ import annotations

import importlib
import inspect
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np
from scipy.optimize import minimize

from scatterbench.errors import ConfigurationError
from scatterbench.models.trial import TrialResult

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from scatterbench.problems import Problem


@runtime_checkable
class Solver(Protocol):
    """Anything that can run the optimizer on a problem for a given seed.

    Implementations must be deterministic for a fixed seed and must not share
    mutable state between concurrent calls.
    """

    name: str

    def solve(self, problem: Problem, dimension: int, seed: int) -> TrialResult:
        """Run both stages and report timing, convergence and solution count."""
        ...

    def explore(self, problem: Problem, dimension: int, seed: int) -> NDArray[np.float64]:
        """Run Stage 1 only and return every sampled point, shape ``(n, dimension)``."""
        ...


@dataclass(frozen=True)
class ScatterSearchParams:
    """Tuning knobs of the reference solver."""

    population_size: int = 200
    reference_set_size: int = 10
    iterations: int = 3
    local_starts: int = 5
    local_max_iterations: int = 500
    solution_tolerance: float = 1e-4
    distinct_distance: float = 1e-3

    def __post_init__(self) -> None:
        if self.population_size < self.reference_set_size:
            msg = "population_size must be at least reference_set_size"
            raise ConfigurationError(msg)
        if self.reference_set_size < 2:
            msg = "reference_set_size must be at least 2"
            raise ConfigurationError(msg)
        if self.local_starts < 1:
            msg = "local_starts must be positive"
            raise ConfigurationError(msg)


class ScatterSearchSolver:
    """Two-stage global optimizer.

    Stage 1 covers the box with a Latin hypercube population, keeps a
    reference set of good and diverse points, and combines reference pairs
    for a few rounds. Stage 2 runs bounded L-BFGS-B from the best reference
    points and keeps the distinct minima within ``solution_tolerance`` of the
    best one.
    """

    name: str
    params: ScatterSearchParams

    def __init__(self, params: ScatterSearchParams | None = None, name: str = "scatter-search") -> None:
        self.params = params or ScatterSearchParams()
        self.name = name

    def explore(self, problem: Problem, dimension: int, seed: int) -> NDArray[np.float64]:
        """Stage 1 only: every point sampled, in visiting order."""
        points, _ = self._stage1(problem, dimension, np.random.default_rng(seed))
        return points

    def solve(self, problem: Problem, dimension: int, seed: int) -> TrialResult:
        """Run both stages and time them."""
        rng = np.random.default_rng(seed)
        bounds = problem.bounds(dimension)

        start = time.perf_counter()
        _, reference = self._stage1(problem, dimension, rng)
        stage1_done = time.perf_counter()
        solutions = self._stage2(problem, bounds, reference)
        end = time.perf_counter()

        best = min(value for _, value in solutions)
        return TrialResult(
            converged=problem.is_success(best),
            total_runtime=end - start,
            stage1_runtime=stage1_done - start,
            stage2_runtime=end - stage1_done,
            solution_set_size=len(solutions),
            seed=seed,
            best_objective=best,
        )

    def _stage1(
        self,
        problem: Problem,
        dimension: int,
        rng: np.random.Generator,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return (all sampled points, reference set ordered best first)."""
        bounds = problem.bounds(dimension)
        lower = bounds[:, 0]
        upper = bounds[:, 1]

        population = _latin_hypercube(rng, self.params.population_size, lower, upper)
        values = problem.objective(population)
        sampled = [population]

        reference, reference_values = _select_reference(
            population, values, self.params.reference_set_size
        )
        for _ in range(self.params.iterations):
            children = _combine(reference, rng, lower, upper)
            sampled.append(children)
            child_values = problem.objective(children)
            pool = np.vstack([reference, children])
            pool_values = np.concatenate([reference_values, child_values])
            reference, reference_values = _select_reference(
                pool, pool_values, self.params.reference_set_size
            )

        order = np.argsort(reference_values, kind="stable")
        return np.vstack(sampled), reference[order]

    def _stage2(
        self,
        problem: Problem,
        bounds: NDArray[np.float64],
        reference: NDArray[np.float64],
    ) -> list[tuple[NDArray[np.float64], float]]:
        """Refine the best reference points and keep distinct near-best minima."""
        minima: list[tuple[NDArray[np.float64], float]] = []
        for start in reference[: self.params.local_starts]:
            result = minimize(
                problem.evaluate,
                start,
                method="L-BFGS-B",
                bounds=bounds,
                options={"maxiter": self.params.local_max_iterations},
            )
            point = np.clip(np.asarray(result.x, dtype=np.float64), bounds[:, 0], bounds[:, 1])
            minima.append((point, problem.evaluate(point)))

        best = min(value for _, value in minima)
        solutions: list[tuple[NDArray[np.float64], float]] = []
        for point, value in sorted(minima, key=lambda item: item[1]):
            if value > best + self.params.solution_tolerance:
                continue
            if any(
                np.linalg.norm(point - kept) <= self.params.distinct_distance
                for kept, _ in solutions
            ):
                continue
            solutions.append((point, value))
        return solutions


def _latin_hypercube(
    rng: np.random.Generator,
    count: int,
    lower: NDArray[np.float64],
    upper: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Stratified sample: every coordinate hits each of ``count`` strata once."""
    dimension = lower.shape[0]
    strata = np.argsort(rng.random((count, dimension)), axis=0)
    unit = (strata + rng.random((count, dimension))) / count
    return lower + unit * (upper - lower)


def _select_reference(
    points: NDArray[np.float64],
    values: NDArray[np.float64],
    size: int,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Half best-by-objective, half most distant from those already chosen."""
    order = np.argsort(values, kind="stable")
    quality = max(1, size // 2)
    chosen = list(order[:quality])
    remaining = list(order[quality:])
    while len(chosen) < size and remaining:
        distances = np.min(
            np.linalg.norm(points[remaining][:, None, :] - points[chosen][None, :, :], axis=-1),
            axis=1,
        )
        chosen.append(remaining.pop(int(np.argmax(distances))))
    index = np.array(chosen)
    return points[index], values[index]


def _combine(
    reference: NDArray[np.float64],
    rng: np.random.Generator,
    lower: NDArray[np.float64],
    upper: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Line combinations of every reference pair, kept inside the box."""
    first, second = np.triu_indices(reference.shape[0], k=1)
    direction = reference[second] - reference[first]
    inner = reference[first] + rng.random((first.size, 1)) * direction
    outer = reference[first] - rng.random((first.size, 1)) * direction * 0.5
    return np.clip(np.vstack([inner, outer]), lower, upper)


def load_solver(spec: str) -> Solver:
    """Import a solver from ``package.module:attribute``.

    The attribute may be a solver instance or a zero-argument factory
    (a class or function) returning one.
    """
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        msg = f"Solver must be given as 'module:attribute', got '{spec}'"
        raise ConfigurationError(msg)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"Cannot import solver module '{module_name}': {e}"
        raise ConfigurationError(msg) from e

    target = getattr(module, attribute, None)
    if target is None:
        msg = f"Module '{module_name}' has no attribute '{attribute}'"
        raise ConfigurationError(msg)

    if inspect.isclass(target) or (callable(target) and not isinstance(target, Solver)):
        solver = target()
    else:
        solver = target
    if not isinstance(solver, Solver):
        msg = f"'{spec}' is not a solver (needs name, solve and explore)"
        raise ConfigurationError(msg)
    return solver
