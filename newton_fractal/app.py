"""
Main application module for the Newton fractal renderer.

Contains the NewtonApp class which handles:
- Loading settings and building the grid and strategies
- JIT / device warm-up
- Benchmarking each execution strategy (MPixels/s)
- Cross-checking that the strategies agree cell-for-cell
- Rendering, saving and optionally showing the image
"""

import time
import numpy as np

from .compute import warmup_jit, ROOT, ITERATIONS
from .executor import ParallelExecutor, AcceleratedStrategy, create_strategy, is_complete
from .renderer import NewtonRenderer
from .settings import Grid, load_settings, solver_constants


class NewtonApp:
    """
    Main application class for the Newton fractal renderer.

    Runs every configured strategy over the full grid, reports its
    throughput, compares the buffers and renders the last one.
    """

    def __init__(self, settings=None):
        """
        Initialize the application.

        Args:
            settings: dict from settings.load_settings() (default: load
                settings.json)
        """
        self.settings = settings or load_settings()
        self.grid = Grid.from_settings(self.settings)
        self.max_iter, self.tol = solver_constants(self.settings)
        self.redo = max(1, int(self.settings['redo']))

        self.executor = ParallelExecutor(self.grid)
        self.strategies = [create_strategy(name, self.settings, self.grid)
                           for name in self.settings['strategies']]
        if not self.strategies:
            raise ValueError("At least one strategy must be configured")
        self.renderer = NewtonRenderer(self.grid.n)

        # Latest buffer per strategy name
        self.results = {}
        self.timings = {}

    def warmup(self):
        """Compile the Numba kernels and wake up the PyTorch device."""
        warmup_jit(self.max_iter, self.tol)
        for strategy in self.strategies:
            if isinstance(strategy, AcceleratedStrategy):
                strategy.gpu.warmup(tol=self.tol)

    def benchmark(self, strategy):
        """
        Run a strategy redo times over the full grid.

        For the accelerated strategy the first call is not timed (device
        and kernel setup), so it runs redo + 1 times.

        Returns:
            Throughput in MPixels/s
        """
        runs = self.redo
        if isinstance(strategy, AcceleratedStrategy):
            self.results[strategy.name] = self.executor.execute_all(strategy)

        results = self.executor.allocate()
        start = time.perf_counter()
        for _ in range(runs):
            self.executor.execute(results, 0, self.grid.n, strategy)
        elapsed = time.perf_counter() - start

        if not is_complete(results, n=self.grid.n):
            raise RuntimeError(f"{strategy.name} left cells unwritten")

        self.results[strategy.name] = results
        mpixels = 1.0e-6 * self.grid.cells * runs / max(elapsed, 1e-9)
        self.timings[strategy.name] = mpixels
        return mpixels

    def compare(self):
        """
        Compare every strategy's buffer against the first one.

        Returns:
            dict mapping strategy name to the number of differing cells
        """
        names = [s.name for s in self.strategies if s.name in self.results]
        if not names:
            return {}
        baseline = self.results[names[0]]
        mismatches = {}
        for name in names[1:]:
            other = self.results[name]
            diff = (baseline[:, ROOT] != other[:, ROOT]) | \
                   (baseline[:, ITERATIONS] != other[:, ITERATIONS])
            mismatches[name] = int(np.count_nonzero(diff))
        return mismatches

    def run(self):
        """Benchmark, compare, render and save."""
        print(f"Grid: {self.grid.n}x{self.grid.n}, max_iter={self.max_iter}, "
              f"tol={float(self.tol):g}")
        self.warmup()

        for strategy in self.strategies:
            mpixels = self.benchmark(strategy)
            print(f"{strategy.name:<12} MPixels/s : {mpixels:.3f}  [{strategy.describe()}]")

        for name, count in self.compare().items():
            if count:
                print(f"Warning: {name} differs from {self.strategies[0].name} "
                      f"in {count} cells")
            else:
                print(f"{name} matches {self.strategies[0].name}")

        last = self.strategies[-1].name
        rgb = self.renderer.render(self.results[last])
        if self.settings.get('output'):
            self.renderer.save(rgb, self.settings['output'])
        if self.settings.get('show'):
            self.renderer.show(rgb)
        return rgb


def run(settings_path=None):
    """
    Run the Newton fractal renderer.

    Args:
        settings_path: JSON settings file (default: package settings.json)
    """
    app = NewtonApp(load_settings(settings_path))
    try:
        app.run()
    except KeyboardInterrupt:
        print("\nInterrupted")
    return app
