"""
Newton fractal computation functions using Numba JIT compilation.

This module contains the performance-critical kernels for the reference
(multi-core CPU) execution strategy:
- Root classification against the three cube roots of unity
- Newton iteration for f(z) = z³ - 1 in real arithmetic
- Grid mapping from (row, col) to the starting coordinate
- Row-parallel population of a result buffer
- Light (brightness) mapping and per-root coloring

All arithmetic is single precision. Every literal used inside a kernel is
a module-level np.float32 so Numba keeps the expression graph in float32,
and no kernel is compiled with fastmath: the rounding of each product
decides which root a near-boundary point lands on, so the operation order
below is part of the contract.

error_model='numpy' lets a zero denominator (z = 0) produce Inf/NaN
instead of raising ZeroDivisionError; such points simply never converge.
"""

import numpy as np
from numba import jit, prange


# Result buffer layout: one (root, iterations) pair per cell
ROOT = 0
ITERATIONS = 1
UNWRITTEN = -1  # Sentinel for cells no strategy has written yet

# Root IDs
ROOT_NONE = 0   # Did not converge within max_iter
ROOT_ONE = 1    # (1, 0)
ROOT_UP = 2     # (-1/2, +√3/2)
ROOT_DOWN = 3   # (-1/2, -√3/2)

# float32 constants used inside the kernels
F_ONE = np.float32(1.0)
F_TWO = np.float32(2.0)
F_THREE = np.float32(3.0)
F_FOUR = np.float32(4.0)
F_SIX = np.float32(6.0)
F_HALF = np.float32(0.5)

# √3/2 as a literal: computing it with sqrt takes a different rounding path
SQRT_ROOT = np.float32(0.86602540378443864676372317075294)

LIGHT_STEP = 16
LIGHT_MAX = 255


@jit(nopython=True, cache=True)
def root_find(x, y, tol):
    """
    Classify a point against the three cube roots of unity.

    Roots are tested in a fixed order (1, then 2, then 3), so if the
    tolerance boxes ever overlapped the lower ID would win.

    Args:
        x, y: Point to classify (float32)
        tol: Absolute tolerance on each component (float32)

    Returns:
        1, 2 or 3 for the matching root, 0 if none matches
    """
    if abs(x - F_ONE) < tol and abs(y) < tol:
        return ROOT_ONE
    elif abs(x + F_HALF) < tol and abs(y - SQRT_ROOT) < tol:
        return ROOT_UP
    elif abs(x + F_HALF) < tol and abs(y + SQRT_ROOT) < tol:
        return ROOT_DOWN
    return ROOT_NONE


@jit(nopython=True, cache=True, error_model='numpy')
def iter_count(cx, cy, max_iter, tol):
    """
    Run Newton's method for z³ - 1 from (cx, cy).

    The update z <- z - (z³ - 1) / (3z²) is expanded into real and
    imaginary parts over the powers of x and y. The point is classified
    after every step and the loop stops at the first match.

    Args:
        cx, cy: Starting point (float32)
        max_iter: Maximum number of Newton steps
        tol: Classification tolerance (float32)

    Returns:
        (root, itercount): root in {0, 1, 2, 3}; itercount is the step at
        which the root was detected, or max_iter if none was.
    """
    itercount = 0
    root = ROOT_NONE
    x = cx
    y = cy
    while itercount < max_iter:
        xx = x * x
        yy = y * y
        xxx = xx * x
        yyy = yy * y
        xxxx = xx * xx
        yyyy = yy * yy
        xxxxx = xxx * xx

        invdenom = F_ONE / (F_THREE * xxxx + F_SIX * xx * yy + F_THREE * yyyy)

        numreal = F_TWO * xxxxx + F_FOUR * xxx * yy + xx + F_TWO * x * yyyy - yy
        numim = F_TWO * xxxx * y + F_FOUR * xx * yyy - F_TWO * x * y + F_TWO * yyy * yy

        x = numreal * invdenom
        y = numim * invdenom
        itercount += 1

        root = root_find(x, y, tol)
        if root > 0:
            break

    return root, itercount


@jit(nopython=True, cache=True)
def grid_point(row, col, from_x, from_y, h):
    """Map cell (row, col) to its float32 starting coordinate."""
    return from_x + np.float32(row) * h, from_y + np.float32(col) * h


@jit(nopython=True, parallel=True, cache=True, error_model='numpy')
def run_lines(results, line_from, line_to, n, from_x, from_y, h, max_iter, tol):
    """
    Populate rows [line_from, line_to) of a result buffer.

    Rows are distributed over Numba's thread pool; each row is processed
    sequentially over all n columns. Every worker writes only the cells
    of its own rows, so no synchronization is needed.

    Args:
        results: int32 array of shape (n * n, 2), modified in place
        line_from, line_to: Row range to compute
        n: Grid side length
        from_x, from_y, h: Grid origin and cell size (float32)
        max_iter: Maximum Newton steps per cell
        tol: Classification tolerance (float32)
    """
    for i in prange(line_from, line_to):
        for j in range(n):
            x, y = grid_point(i, j, from_x, from_y, h)
            root, itercount = iter_count(x, y, max_iter, tol)
            results[i * n + j, ROOT] = root
            results[i * n + j, ITERATIONS] = itercount


@jit(nopython=True, cache=True)
def compute_light(itercount):
    """Brightness for an iteration count: min(itercount * 16, 255)."""
    return min(itercount * LIGHT_STEP, LIGHT_MAX)


@jit(nopython=True, parallel=True, cache=True)
def apply_root_colors(results, n, out):
    """
    Color a result buffer: one channel per root, black where none.

    Pixel (x=row, y=col) of the image is cell (row, col), so the output
    is indexed out[col, row] (height first, like any RGB array).

    Args:
        results: int32 array of shape (n * n, 2) with roots in {0..3}
        n: Grid side length
        out: uint8 array of shape (n, n, 3), modified in place
    """
    for i in prange(n):
        for j in range(n):
            root = results[i * n + j, ROOT]
            light = compute_light(results[i * n + j, ITERATIONS])
            out[j, i, 0] = 0
            out[j, i, 1] = 0
            out[j, i, 2] = 0
            if root == ROOT_ONE:
                out[j, i, 0] = light
            elif root == ROOT_UP:
                out[j, i, 2] = light
            elif root == ROOT_DOWN:
                out[j, i, 1] = light


def allocate_results(n):
    """Allocate a result buffer for an n x n grid, filled with UNWRITTEN."""
    return np.full((n * n, 2), UNWRITTEN, dtype=np.int32)


def iterate_point(cx, cy, max_iter=1024, tol=1e-7):
    """
    Run the Newton kernel for a single starting point.

    Converts the inputs to float32 first so the result matches what the
    grid kernels produce for the same coordinate.

    Returns:
        (root, itercount) tuple of ints
    """
    root, itercount = iter_count(np.float32(cx), np.float32(cy),
                                 int(max_iter), np.float32(tol))
    return int(root), int(itercount)


def classify_point(x, y, tol=1e-7):
    """Classify a single point (float32) against the three roots."""
    return int(root_find(np.float32(x), np.float32(y), np.float32(tol)))


def warmup_jit(max_iter=1024, tol=1e-7):
    """
    Warm up JIT compilation with a tiny grid.

    Call this once at startup so the first timed run does not include
    compilation.
    """
    n = 4
    h = np.float32(2.0) / np.float32(n)
    results = allocate_results(n)
    run_lines(results, 0, n, n, np.float32(-1.0), np.float32(-1.0), h,
              int(max_iter), np.float32(tol))
    out = np.zeros((n, n, 3), dtype=np.uint8)
    apply_root_colors(results, n, out)
