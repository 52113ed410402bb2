import numpy as np
import pytest

from newton_fractal.compute import (
    ITERATIONS,
    ROOT,
    SQRT_ROOT,
    UNWRITTEN,
    allocate_results,
    classify_point,
    compute_light,
    grid_point,
    iterate_point,
    run_lines,
)
from newton_fractal.settings import Grid


class TestClassify:
    def test_exact_roots(self):
        assert classify_point(1.0, 0.0) == 1
        assert classify_point(-0.5, 0.8660254) == 2
        assert classify_point(-0.5, -0.8660254) == 3

    def test_within_tolerance(self):
        assert classify_point(1.0, 5e-8) == 1
        assert classify_point(-0.5 + 5e-8, float(SQRT_ROOT)) == 2
        assert classify_point(-0.5, -float(SQRT_ROOT) + 5e-8) == 3

    def test_far_from_roots(self):
        assert classify_point(0.0, 0.0) == 0
        assert classify_point(1.0, 1e-3) == 0
        assert classify_point(-0.5, 0.0) == 0

    def test_lower_root_wins_when_tolerances_overlap(self):
        # (-0.5, 0) is within 2.0 of all three roots
        assert classify_point(-0.5, 0.0, tol=2.0) == 1
        # ... and within 1.0 of roots 2 and 3 only
        assert classify_point(-0.5, 0.0, tol=1.0) == 2

    @pytest.mark.parametrize("x, y", [(0.3, -0.7), (2.0, 2.0), (-1.0, 0.25), (np.inf, 0.0), (np.nan, np.nan)])
    def test_result_is_a_root_id(self, x, y):
        assert classify_point(x, y) in (0, 1, 2, 3)


class TestIterate:
    def test_fixed_point_at_root_one(self):
        assert iterate_point(1.0, 0.0) == (1, 1)

    def test_origin_never_converges(self):
        # 1 / 0 gives inf, 0 * inf gives NaN, NaN never classifies
        assert iterate_point(0.0, 0.0, max_iter=1024) == (0, 1024)

    def test_zero_iterations(self):
        assert iterate_point(0.3, 0.4, max_iter=0) == (0, 0)
        assert iterate_point(1.0, 0.0, max_iter=0) == (0, 0)

    def test_real_axis_stays_real(self):
        # y stays exactly 0, so only root 1 is reachable
        root, itercount = iterate_point(2.0, 0.0)
        assert root in (0, 1)
        assert itercount > 1

    def test_idempotent(self):
        assert iterate_point(-0.73, 0.41) == iterate_point(-0.73, 0.41)

    @pytest.mark.parametrize("x, y", [(-1.0, 0.5), (-0.25, 0.75), (0.5, 0.5), (-0.9, 0.1)])
    def test_conjugate_symmetry(self, x, y):
        # Negating y negates every term of the imaginary update exactly
        swap = {0: 0, 1: 1, 2: 3, 3: 2}
        root, itercount = iterate_point(x, y)
        mirrored = iterate_point(x, -y)
        assert mirrored == (swap[root], itercount)

    def test_iteration_bound(self):
        root, itercount = iterate_point(-0.5, 0.3, max_iter=3)
        assert 0 <= itercount <= 3
        if root == 0:
            assert itercount == 3


class TestGridMapping:
    def test_cell_size(self):
        grid = Grid(4, -1.0, -1.0, 2.0)
        assert grid.h == np.float32(0.5)

    def test_to_point(self):
        grid = Grid(4, -1.0, -1.0, 2.0)
        assert grid.to_point(0, 0) == (-1.0, -1.0)
        assert grid.to_point(2, 2) == (0.0, 0.0)
        assert grid.to_point(3, 1) == (0.5, -0.5)

    def test_kernel_matches_grid(self):
        grid = Grid(16, -1.0, -1.0, 2.0)
        for row, col in [(0, 0), (5, 11), (15, 15)]:
            x, y = grid_point(row, col, grid.from_x, grid.from_y, grid.h)
            assert (x, y) == grid.to_point(row, col)

    def test_origin_cell_scenario(self):
        grid = Grid(4, -1.0, -1.0, 2.0)
        x, y = grid.to_point(2, 2)
        assert iterate_point(x, y) == (0, 1024)


class TestLight:
    @pytest.mark.parametrize("itercount, light", [(0, 0), (1, 16), (15, 240), (16, 255), (1024, 255)])
    def test_compute_light(self, itercount, light):
        assert compute_light(itercount) == light


class TestRunLines:
    def _run(self, grid, results, line_from, line_to, max_iter=1024):
        run_lines(results, line_from, line_to, grid.n, grid.from_x, grid.from_y,
                  grid.h, max_iter, np.float32(1e-7))

    def test_fills_every_cell(self):
        grid = Grid(8)
        results = allocate_results(grid.n)
        self._run(grid, results, 0, grid.n)
        assert not np.any(results == UNWRITTEN)
        assert set(np.unique(results[:, ROOT])) <= {0, 1, 2, 3}

    def test_matches_single_point(self):
        grid = Grid(8)
        results = allocate_results(grid.n)
        self._run(grid, results, 0, grid.n)
        for row in range(grid.n):
            for col in range(grid.n):
                x, y = grid.to_point(row, col)
                cell = results[row * grid.n + col]
                assert (cell[ROOT], cell[ITERATIONS]) == iterate_point(x, y)

    def test_partial_range(self):
        grid = Grid(8)
        results = allocate_results(grid.n)
        self._run(grid, results, 3, 5)
        written = results[3 * grid.n:5 * grid.n]
        assert not np.any(written == UNWRITTEN)
        assert np.all(results[:3 * grid.n] == UNWRITTEN)
        assert np.all(results[5 * grid.n:] == UNWRITTEN)

    def test_zero_iterations(self):
        grid = Grid(8)
        results = allocate_results(grid.n)
        self._run(grid, results, 0, grid.n, max_iter=0)
        assert np.all(results == 0)
