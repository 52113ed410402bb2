"""
Configuration for the Newton fractal renderer.

Settings are read from settings.json (next to this file by default) and
merged over DEFAULT_SETTINGS. The grid description is turned into a
Grid object; every value that reaches a kernel is stored as float32 so
both execution strategies see bit-identical constants.
"""

import json
import os
import numpy as np


SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')

DEFAULT_SETTINGS = {
    'max_iter': 1024,
    'n': 2048,
    'from_x': -1.0,
    'from_y': -1.0,
    'size': 2.0,
    'tol': 1e-7,
    'strategies': ['reference', 'accelerated'],
    'launch': {
        'grid_dim': [4, 5],
        'block_dim': [8, 128],
    },
    'prefer_gpu': True,
    'redo': 10,
    'output': 'newton.png',
    'show': False,
}


def load_settings(path=None):
    """
    Load settings from a JSON file, merged over the defaults.

    A missing or malformed file is not fatal: a warning is printed and
    the defaults are used.

    Args:
        path: JSON file to read (default: settings.json in this package)

    Returns:
        dict with every key of DEFAULT_SETTINGS
    """
    settings_path = path or SETTINGS_PATH
    settings = dict(DEFAULT_SETTINGS)
    settings['launch'] = dict(DEFAULT_SETTINGS['launch'])
    try:
        with open(settings_path, 'r') as f:
            loaded = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Warning: Could not load {os.path.basename(settings_path)}: {e}")
        return settings

    launch = loaded.pop('launch', None)
    settings.update(loaded)
    if launch:
        settings['launch'].update(launch)
    return settings


class Grid:
    """
    Immutable N x N sample domain.

    Cell (row, col) starts Newton's method at
    (from_x + row * h, from_y + col * h) with h = size / N.

    Attributes:
        n: Side length in cells
        from_x, from_y: Origin of the domain (float32)
        size: Side length of the domain (float32)
        h: Cell size (float32)
    """

    def __init__(self, n=2048, from_x=-1.0, from_y=-1.0, size=2.0):
        if int(n) <= 0:
            raise ValueError(f"Grid side must be positive, got {n}")
        if not size > 0:
            raise ValueError(f"Grid size must be positive, got {size}")
        self._n = int(n)
        self._from_x = np.float32(from_x)
        self._from_y = np.float32(from_y)
        self._size = np.float32(size)
        self._h = self._size / np.float32(self._n)

    @property
    def n(self):
        return self._n

    @property
    def from_x(self):
        return self._from_x

    @property
    def from_y(self):
        return self._from_y

    @property
    def size(self):
        return self._size

    @property
    def h(self):
        return self._h

    def _key(self):
        return (self._n, self._from_x, self._from_y, self._size)

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"Grid(n={self.n}, from_x={self.from_x}, from_y={self.from_y}, "
                f"size={self.size})")

    @property
    def cells(self):
        """Total number of cells (N * N)."""
        return self.n * self.n

    def to_point(self, row, col):
        """Starting coordinate of cell (row, col) as a float32 pair."""
        x = self.from_x + np.float32(row) * self.h
        y = self.from_y + np.float32(col) * self.h
        return x, y

    @classmethod
    def from_settings(cls, settings):
        return cls(settings['n'], settings['from_x'], settings['from_y'], settings['size'])


def solver_constants(settings):
    """
    Validate and return (max_iter, tol) for the Newton kernels.

    tol is returned as float32 to match the kernels' arithmetic.
    """
    max_iter = int(settings['max_iter'])
    if max_iter < 0:
        raise ValueError(f"max_iter must be >= 0, got {max_iter}")
    tol = np.float32(settings['tol'])
    if not tol > 0:
        raise ValueError(f"tol must be positive, got {settings['tol']}")
    return max_iter, tol
