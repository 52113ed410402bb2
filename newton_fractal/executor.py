"""
Execution strategies for populating a Newton fractal result buffer.

Two interchangeable strategies share one contract,
execute(results, line_from, line_to):
- ReferenceStrategy: Numba thread pool, one task per row (compute.run_lines)
- AcceleratedStrategy: PyTorch worker tiles with a grid-stride loop
  (compute_gpu.GPUCompute.run_lines)

Both write every cell of rows [line_from, line_to) exactly once and leave
every other cell untouched, so they can be compared index-for-index.

ParallelExecutor validates the buffer and row range once, then hands the
work to whichever strategy it is given. Strategies are picked by name
from the STRATEGIES registry; nothing here keeps a "current strategy".
"""

import numpy as np

from .compute import run_lines, allocate_results, UNWRITTEN, ROOT
from .compute_gpu import GPUCompute, LaunchGeometry
from .settings import Grid, solver_constants


class ReferenceStrategy:
    """
    Multi-core CPU strategy: rows are fanned out over Numba's prange pool.

    Attributes:
        grid: Grid being computed
        max_iter: Maximum Newton steps per cell
        tol: Classification tolerance (float32)
    """

    name = 'reference'

    def __init__(self, grid, max_iter=1024, tol=1e-7):
        self.grid = grid
        self.max_iter = int(max_iter)
        self.tol = np.float32(tol)

    def execute(self, results, line_from, line_to):
        grid = self.grid
        run_lines(results, line_from, line_to, grid.n,
                  grid.from_x, grid.from_y, grid.h, self.max_iter, self.tol)

    def describe(self):
        return "CPU (Numba prange)"


class AcceleratedStrategy:
    """
    Wide-parallel strategy: a launch geometry of worker tiles on PyTorch.

    Attributes:
        grid: Grid being computed
        max_iter: Maximum Newton steps per cell
        tol: Classification tolerance (float32)
        launch: LaunchGeometry (worker groups x worker block)
        gpu: GPUCompute bound to the selected device
    """

    name = 'accelerated'

    def __init__(self, grid, max_iter=1024, tol=1e-7, launch=None, prefer_gpu=True,
                 gpu=None):
        self.grid = grid
        self.max_iter = int(max_iter)
        self.tol = np.float32(tol)
        self.launch = launch or LaunchGeometry()
        self.gpu = gpu or GPUCompute(prefer_gpu=prefer_gpu)

    def execute(self, results, line_from, line_to):
        self.gpu.run_lines(results, line_from, line_to, self.grid,
                           self.max_iter, self.tol, self.launch)
        self.gpu.synchronize()

    def describe(self):
        return f"{self.gpu.get_device_info()} {self.launch}"


# Registry of all available strategies.
# Keys are the names used in settings.json.
STRATEGIES = {
    ReferenceStrategy.name: ReferenceStrategy,
    AcceleratedStrategy.name: AcceleratedStrategy,
}


def list_strategy_names():
    """Get list of available strategy names."""
    return list(STRATEGIES.keys())


def create_strategy(name, settings, grid=None):
    """
    Build a strategy from its name and the loaded settings.

    Args:
        name: Key from STRATEGIES
        settings: dict as returned by settings.load_settings()
        grid: Optional Grid (default: built from settings)

    Returns:
        ReferenceStrategy or AcceleratedStrategy instance

    Raises:
        ValueError if name is unknown or a setting is invalid
    """
    if name not in STRATEGIES:
        raise ValueError(
            f"Unknown strategy {name!r}, expected one of {list_strategy_names()}")
    grid = grid or Grid.from_settings(settings)
    max_iter, tol = solver_constants(settings)
    if name == AcceleratedStrategy.name:
        return AcceleratedStrategy(grid, max_iter, tol,
                                   launch=LaunchGeometry.from_settings(settings),
                                   prefer_gpu=settings.get('prefer_gpu', True))
    return ReferenceStrategy(grid, max_iter, tol)


class ParallelExecutor:
    """
    Runs the Newton kernel over every cell of a row range.

    Usage:
        executor = ParallelExecutor(grid)
        results = executor.allocate()
        executor.execute(results, 0, grid.n, strategy)
    """

    def __init__(self, grid):
        self.grid = grid

    def allocate(self):
        """Fresh result buffer for this grid, every cell UNWRITTEN."""
        return allocate_results(self.grid.n)

    def check_buffer(self, results):
        """
        Check that a result buffer fits this grid.

        Raises:
            ValueError on wrong type, dtype or shape
        """
        if not isinstance(results, np.ndarray):
            raise ValueError("Result buffer must be a numpy array")
        if results.dtype != np.int32:
            raise ValueError(f"Result buffer must be int32, got {results.dtype}")
        expected = (self.grid.cells, 2)
        if results.shape != expected:
            raise ValueError(
                f"Result buffer shape {results.shape} does not match grid {expected}")
        if not results.flags['C_CONTIGUOUS'] or not results.flags['WRITEABLE']:
            raise ValueError("Result buffer must be a writeable C-contiguous array")

    def check_range(self, line_from, line_to):
        if not 0 <= line_from <= line_to <= self.grid.n:
            raise ValueError(
                f"Row range [{line_from}, {line_to}) outside grid [0, {self.grid.n})")

    def execute(self, results, line_from, line_to, strategy):
        """
        Populate rows [line_from, line_to) of results with the given strategy.

        Returns once every cell of the range has been written.

        Args:
            results: int32 buffer of shape (n * n, 2), modified in place
            line_from, line_to: Row range to compute
            strategy: ReferenceStrategy or AcceleratedStrategy for this grid

        Raises:
            ValueError if the buffer, range or strategy does not fit the grid
        """
        line_from = int(line_from)
        line_to = int(line_to)
        self.check_buffer(results)
        self.check_range(line_from, line_to)
        if strategy.grid != self.grid:
            raise ValueError("Strategy was built for a different grid")
        if line_from == line_to:
            return
        strategy.execute(results, line_from, line_to)

    def execute_all(self, strategy):
        """Allocate a buffer and populate the full grid."""
        results = self.allocate()
        self.execute(results, 0, self.grid.n, strategy)
        return results


def is_complete(results, line_from=0, line_to=None, n=None):
    """
    True if every cell of rows [line_from, line_to) has been written.

    Args:
        results: Result buffer of shape (n * n, 2)
        line_from, line_to: Row range (default: all rows)
        n: Grid side (default: derived from the buffer size)
    """
    if n is None:
        n = int(round(np.sqrt(results.shape[0])))
    if line_to is None:
        line_to = n
    block = results[line_from * n:line_to * n, ROOT]
    return bool(np.all(block != UNWRITTEN))
