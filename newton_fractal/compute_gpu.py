"""
GPU-accelerated Newton fractal computation using PyTorch.

This module provides the accelerated execution strategy. It auto-detects
available hardware:
- CUDA (NVIDIA GPUs)
- MPS (Apple Silicon)
- CPU fallback via PyTorch (still vectorized)

Work is distributed the way a CUDA kernel launch would distribute it: a
launch geometry of worker groups x worker blocks defines a tile of
(grid_y * block_y) rows by (grid_x * block_x) columns. Each lane of the
tile is one worker; the whole tile advances over the requested rows and
all columns with a grid-stride loop, so lane (ty, tx) handles rows
line_from + ty, line_from + ty + stride_y, ... and columns tx,
tx + stride_x, ... Lanes never share a cell.

Arithmetic is float32 on every device and follows exactly the operation
order of compute.iter_count, so results match the Numba kernels
cell-for-cell.

Usage:
    from compute_gpu import GPUCompute, LaunchGeometry

    gpu = GPUCompute()
    gpu.run_lines(results, 0, grid.n, grid, max_iter, tol, LaunchGeometry())
"""

import numpy as np
import torch

from .compute import (
    ROOT,
    ITERATIONS,
    ROOT_NONE,
    ROOT_ONE,
    ROOT_UP,
    ROOT_DOWN,
    SQRT_ROOT,
)


class LaunchGeometry:
    """
    Worker-group count and worker-block size for the accelerated strategy.

    Attributes:
        grid_dim: (x, y) number of worker groups
        block_dim: (x, y) workers per group
    """

    def __init__(self, grid_dim=(4, 5), block_dim=(8, 128)):
        grid_dim = tuple(int(v) for v in grid_dim)
        block_dim = tuple(int(v) for v in block_dim)
        if len(grid_dim) != 2 or len(block_dim) != 2:
            raise ValueError("Launch geometry needs 2D grid_dim and block_dim")
        if min(grid_dim + block_dim) <= 0:
            raise ValueError(
                f"Launch geometry must be positive, got {grid_dim} x {block_dim}")
        self.grid_dim = grid_dim
        self.block_dim = block_dim

    def __repr__(self):
        return f"LaunchGeometry(grid_dim={self.grid_dim}, block_dim={self.block_dim})"

    @property
    def stride_x(self):
        """Column stride: total workers along x."""
        return self.grid_dim[0] * self.block_dim[0]

    @property
    def stride_y(self):
        """Row stride: total workers along y."""
        return self.grid_dim[1] * self.block_dim[1]

    @classmethod
    def from_settings(cls, settings):
        launch = settings['launch']
        return cls(launch['grid_dim'], launch['block_dim'])


class GPUCompute:
    """
    GPU-accelerated Newton fractal computation class.

    Automatically detects and uses the best available device:
    - CUDA for NVIDIA GPUs
    - MPS for Apple Silicon
    - CPU as fallback (still uses PyTorch vectorization)

    Always float32, even on devices with float64 support, so
    classification matches the reference strategy.
    """

    # Exact float32 value as a Python float; tensor ops keep it in float32
    _sqrt_root = float(SQRT_ROOT)

    def __init__(self, prefer_gpu=True):
        """
        Initialize GPU compute.

        Args:
            prefer_gpu: If False, force CPU even if GPU available
        """
        self.device = torch.device("cpu")
        self.device_name = "CPU (PyTorch)"
        self.is_gpu = False
        self.is_cuda = False
        self.is_mps = False
        self.dtype = torch.float32

        if prefer_gpu:
            if torch.cuda.is_available():
                self.device = torch.device("cuda")
                self.device_name = torch.cuda.get_device_name(0)
                self.is_gpu = True
                self.is_cuda = True
            elif hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
                self.device = torch.device("mps")
                self.device_name = "Apple Silicon GPU (MPS)"
                self.is_gpu = True
                self.is_mps = True

    def get_device_info(self):
        """Return a string describing the compute device."""
        return f"{self.device_name} [{self.device}]"

    def _root_find(self, x, y, tol):
        """
        Vectorized root classification.

        Masks are applied from root 3 down to root 1 so that a lower ID
        overwrites a higher one, which gives the same precedence as the
        if/elif chain of compute.root_find.
        """
        r1 = (torch.abs(x - 1.0) < tol) & (torch.abs(y) < tol)
        r2 = (torch.abs(x + 0.5) < tol) & (torch.abs(y - self._sqrt_root) < tol)
        r3 = (torch.abs(x + 0.5) < tol) & (torch.abs(y + self._sqrt_root) < tol)

        root = torch.full(x.shape, ROOT_NONE, dtype=torch.int32, device=self.device)
        root = root.masked_fill(r3, ROOT_DOWN)
        root = root.masked_fill(r2, ROOT_UP)
        root = root.masked_fill(r1, ROOT_ONE)
        return root

    def _newton_step(self, x, y):
        """One Newton step for z³ - 1, same operation order as iter_count."""
        xx = x * x
        yy = y * y
        xxx = xx * x
        yyy = yy * y
        xxxx = xx * xx
        yyyy = yy * yy
        xxxxx = xxx * xx

        invdenom = 1.0 / (3.0 * xxxx + 6.0 * xx * yy + 3.0 * yyyy)

        numreal = 2.0 * xxxxx + 4.0 * xxx * yy + xx + 2.0 * x * yyyy - yy
        numim = 2.0 * xxxx * y + 4.0 * xx * yyy - 2.0 * x * y + 2.0 * yyy * yy

        return numreal * invdenom, numim * invdenom

    def iter_count(self, cx, cy, max_iter, tol):
        """
        Run Newton's method on a whole tile of starting points at once.

        Each lane keeps iterating until it is classified or max_iter is
        reached; classified lanes are frozen and stop counting.

        Args:
            cx, cy: float32 tensors of starting coordinates
            max_iter: Maximum Newton steps
            tol: Classification tolerance

        Returns:
            (root, itercount) int32 tensors shaped like cx
        """
        tol = float(np.float32(tol))
        x = cx.clone()
        y = cy.clone()
        root = torch.full(cx.shape, ROOT_NONE, dtype=torch.int32, device=self.device)
        itercount = torch.zeros(cx.shape, dtype=torch.int32, device=self.device)
        active = torch.ones(cx.shape, dtype=torch.bool, device=self.device)

        # Checking for completion forces a device sync, so only do it periodically
        check_interval = max(1, min(16, max_iter // 16))

        for iteration in range(max_iter):
            new_x, new_y = self._newton_step(x, y)
            x = torch.where(active, new_x, x)
            y = torch.where(active, new_y, y)
            itercount += active.to(torch.int32)

            found = self._root_find(x, y, tol)
            root = torch.where(active, found, root)
            active = active & (found == ROOT_NONE)

            if (iteration + 1) % check_interval == 0 and not bool(active.any()):
                break

        return root, itercount

    def run_lines(self, results, line_from, line_to, grid, max_iter, tol, launch):
        """
        Populate rows [line_from, line_to) of a result buffer.

        The launch geometry's worker tile is stepped over the row range and
        all columns (grid-stride loop); every cell is written exactly once.

        Args:
            results: int32 numpy array of shape (n * n, 2), modified in place
            line_from, line_to: Row range to compute
            grid: settings.Grid describing the domain
            max_iter: Maximum Newton steps per cell
            tol: Classification tolerance
            launch: LaunchGeometry
        """
        n = grid.n
        from_x = float(grid.from_x)
        from_y = float(grid.from_y)
        h = float(grid.h)

        for row0 in range(line_from, line_to, launch.stride_y):
            row1 = min(row0 + launch.stride_y, line_to)
            rows = torch.arange(row0, row1, device=self.device, dtype=self.dtype)

            for col0 in range(0, n, launch.stride_x):
                col1 = min(col0 + launch.stride_x, n)
                cols = torch.arange(col0, col1, device=self.device, dtype=self.dtype)

                cx = (from_x + rows * h).unsqueeze(1).expand(-1, col1 - col0).contiguous()
                cy = (from_y + cols * h).unsqueeze(0).expand(row1 - row0, -1).contiguous()

                root, itercount = self.iter_count(cx, cy, max_iter, tol)

                index = (np.arange(row0, row1)[:, None] * n + np.arange(col0, col1)[None, :]).ravel()
                results[index, ROOT] = root.cpu().numpy().ravel()
                results[index, ITERATIONS] = itercount.cpu().numpy().ravel()

    def synchronize(self):
        """Wait for queued device work to finish (for timing)."""
        if self.is_cuda:
            torch.cuda.synchronize()
        elif self.is_mps:
            torch.mps.synchronize()

    def warmup(self, max_iter=16, tol=1e-7):
        """
        Warm up the device by running a tiny tile.

        The first call on a device pays for context creation and kernel
        loading; benchmarks skip it.
        """
        cx = torch.zeros((4, 4), device=self.device, dtype=self.dtype)
        cy = torch.ones((4, 4), device=self.device, dtype=self.dtype)
        self.iter_count(cx, cy, max_iter, tol)
        self.synchronize()

