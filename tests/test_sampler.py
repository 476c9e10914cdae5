"""Tests for Stage 1 population sampling and landscape grids."""

import numpy as np
import pytest

from fake_solvers import FakeSolver, StrayingSolver, WideExplorer
from scatterbench.errors import (
    BoundsViolationError,
    ConfigurationError,
    SolverContractError,
    UnsupportedDimensionError,
)
from scatterbench.problems import Problem, get_problem, sphere
from scatterbench.sampler import landscape_grid, sample_population
from scatterbench.seeds import SeedSource


def _cube_3d() -> Problem:
    return Problem("Cube3D", sphere, ((-1.0, 1.0),) * 3, 0.0, natural_dimension=3)


class TestSamplePopulation:
    """Tests for sample_population()."""

    def test_one_sample_per_run(self):
        """Test every run contributes its seed and points."""
        solver = FakeSolver(points=25)

        samples = sample_population("SixHumpCamel", 6, solver=solver, seeds=SeedSource(4))

        assert len(samples) == 6
        assert all(len(sample) == 25 for sample in samples)
        assert len({sample.seed for sample in samples}) == 6

    def test_points_inside_default_bounds(self):
        """Test points stay inside the problem's box."""
        samples = sample_population("CrossInTray", 3, solver=FakeSolver(), seeds=SeedSource(1))

        for sample in samples:
            assert all(-10.0 <= x <= 10.0 for x in sample.xs)
            assert all(-10.0 <= y <= 10.0 for y in sample.ys)

    def test_reproducible(self):
        """Test the same base seed gives the same points."""
        first = sample_population("SixHumpCamel", 2, solver=FakeSolver(), seeds=SeedSource(8))
        second = sample_population("SixHumpCamel", 2, solver=FakeSolver(), seeds=SeedSource(8))

        assert first == second

    def test_custom_bounds_restrict_search(self):
        """Test custom bounds are what the solver explores."""
        samples = sample_population(
            "Rastrigin",
            2,
            [[0.0, 1.0], [2.0, 3.0]],
            solver=FakeSolver(),
            seeds=SeedSource(3),
        )

        for sample in samples:
            assert all(0.0 <= x <= 1.0 for x in sample.xs)
            assert all(2.0 <= y <= 3.0 for y in sample.ys)

    def test_three_dimensional_problem_rejected(self):
        """Test a 3D problem fails before any run."""
        solver = FakeSolver()

        with pytest.raises(UnsupportedDimensionError):
            sample_population(_cube_3d(), 4, solver=solver, seeds=SeedSource(1))

    def test_out_of_bounds_point_raises(self):
        """Test a stray point is reported, not clipped."""
        with pytest.raises(BoundsViolationError) as excinfo:
            sample_population("SixHumpCamel", 2, solver=StrayingSolver(), seeds=SeedSource(1))

        assert excinfo.value.point == (4.0, 3.0)

    def test_wrong_point_shape_raises(self):
        """Test 3-column exploration output is rejected, not reshaped."""
        with pytest.raises(SolverContractError, match=r"\(10, 3\)"):
            sample_population("SixHumpCamel", 1, solver=WideExplorer(), seeds=SeedSource(1))

    @pytest.mark.parametrize("run_count", [0, -2])
    def test_run_count_must_be_positive(self, run_count):
        """Test a non-positive run count."""
        with pytest.raises(ConfigurationError, match="run_count"):
            sample_population("SixHumpCamel", run_count, solver=FakeSolver(), seeds=SeedSource(1))

    @pytest.mark.parametrize(
        "bounds",
        [[[0.0, 1.0]], [[1.0, 0.0], [0.0, 1.0]], [[0.0, 1.0], [0.0, 1.0], [0.0, 1.0]]],
    )
    def test_bad_bounds(self, bounds):
        """Test bounds must be a 2x2 box with lo < hi."""
        with pytest.raises(ConfigurationError, match="bounds"):
            sample_population("SixHumpCamel", 1, bounds, solver=FakeSolver(), seeds=SeedSource(1))

    def test_unknown_function(self):
        """Test an unregistered name."""
        with pytest.raises(ConfigurationError, match="Unknown function"):
            sample_population("NoSuchFunction", 1, solver=FakeSolver(), seeds=SeedSource(1))


class TestLandscapeGrid:
    """Tests for landscape_grid()."""

    def test_grid_shape_and_values(self):
        """Test z[row][col] is the objective at (x[col], y[row])."""
        grid = landscape_grid("SixHumpCamel", resolution=11)
        problem = get_problem("SixHumpCamel")

        assert len(grid.x) == 11
        assert len(grid.y) == 11
        assert len(grid.z) == 11
        assert grid.x[0] == -3.0
        assert grid.x[-1] == 3.0
        assert grid.z[2][7] == pytest.approx(problem.evaluate(np.array([grid.x[7], grid.y[2]])))

    def test_view_bounds_used_by_default(self):
        """Test problems with a viewing box plot that box."""
        grid = landscape_grid("Rosenbrock", resolution=5)

        assert (grid.x[0], grid.x[-1]) == (-2.0, 2.0)
        assert (grid.y[0], grid.y[-1]) == (-1.0, 3.0)

    def test_minimum_on_grid(self):
        """Test the grid sees the optimum of a centered bowl."""
        grid = landscape_grid("Sphere", [[-1.0, 1.0], [-1.0, 1.0]], resolution=21)

        assert min(min(row) for row in grid.z) == pytest.approx(0.0)

    def test_ackley_view_box(self):
        """Test Ackley is plotted around its optimum, not over the whole search box."""
        grid = landscape_grid("Ackley", resolution=5)

        assert (grid.x[0], grid.x[-1]) == (-4.0, 6.0)
        assert (grid.y[0], grid.y[-1]) == (-4.0, 6.0)

    def test_resolution_too_small(self):
        """Test a grid needs at least two points per axis."""
        with pytest.raises(ConfigurationError, match="resolution"):
            landscape_grid("Sphere", resolution=1)

    def test_three_dimensional_problem_rejected(self):
        """Test a 3D problem has no planar landscape."""
        with pytest.raises(UnsupportedDimensionError):
            landscape_grid(_cube_3d())
