import os

# pygame must not try to open a real display during tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

from newton_fractal.compute_gpu import GPUCompute
from newton_fractal.settings import DEFAULT_SETTINGS, Grid


@pytest.fixture
def grid():
    return Grid(8, -1.0, -1.0, 2.0)


@pytest.fixture(scope="session")
def cpu_gpu():
    """GPUCompute pinned to the CPU so results do not depend on the machine."""
    return GPUCompute(prefer_gpu=False)


@pytest.fixture
def small_settings(tmp_path):
    settings = dict(DEFAULT_SETTINGS)
    settings.update({
        'n': 8,
        'redo': 1,
        'prefer_gpu': False,
        'output': str(tmp_path / "newton.png"),
        'show': False,
        'launch': {'grid_dim': [2, 1], 'block_dim': [2, 4]},
    })
    return settings
