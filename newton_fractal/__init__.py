"""
Newton Fractal Package

Renders the Newton fractal of z³ - 1: every cell of an N x N grid runs
Newton's method, is classified against the three cube roots of unity,
and records the root and the number of steps it took. Two execution
strategies produce identical buffers:
- reference: Numba JIT kernels, rows spread over CPU cores
- accelerated: PyTorch tiles on CUDA, MPS or CPU

Quick Start:
    from newton_fractal import run
    run()

Or from command line:
    python -m newton_fractal [settings.json]

Package Structure:
    - compute.py: JIT-compiled Newton iteration, classification and coloring
    - compute_gpu.py: PyTorch accelerated strategy and launch geometry
    - executor.py: Strategy registry and the validating ParallelExecutor
    - renderer.py: Result buffer to RGB image, PNG saving, viewer window
    - settings.py: settings.json loading and the Grid description
    - app.py: Benchmark / compare / render application
"""

from .app import run, NewtonApp
from .compute import (
    iterate_point,
    classify_point,
    compute_light,
    allocate_results,
    UNWRITTEN,
)
from .compute_gpu import GPUCompute, LaunchGeometry
from .executor import (
    ParallelExecutor,
    ReferenceStrategy,
    AcceleratedStrategy,
    STRATEGIES,
    create_strategy,
    is_complete,
)
from .renderer import NewtonRenderer
from .settings import Grid, load_settings

__version__ = "1.0.0"
__all__ = [
    "run",
    "NewtonApp",
    "iterate_point",
    "classify_point",
    "compute_light",
    "allocate_results",
    "UNWRITTEN",
    "GPUCompute",
    "LaunchGeometry",
    "ParallelExecutor",
    "ReferenceStrategy",
    "AcceleratedStrategy",
    "STRATEGIES",
    "create_strategy",
    "is_complete",
    "NewtonRenderer",
    "Grid",
    "load_settings",
]
