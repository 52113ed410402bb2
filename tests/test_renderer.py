import numpy as np
import pygame
import pytest

from newton_fractal.compute import UNWRITTEN
from newton_fractal.renderer import NewtonRenderer


@pytest.fixture
def results():
    # Cells (0,0) (0,1) (1,0) (1,1) of a 2x2 grid
    return np.array([[1, 1], [2, 15], [3, 16], [0, 5]], dtype=np.int32)


class TestRender:
    def test_root_channels(self, results):
        rgb = NewtonRenderer(2).render(results)
        assert rgb.shape == (2, 2, 3)
        assert rgb.dtype == np.uint8
        # rgb is indexed [col, row]
        assert rgb[0, 0].tolist() == [16, 0, 0]
        assert rgb[1, 0].tolist() == [0, 0, 240]
        assert rgb[0, 1].tolist() == [0, 255, 0]
        assert rgb[1, 1].tolist() == [0, 0, 0]

    def test_render_into_buffer(self, results):
        out = np.full((2, 2, 3), 7, dtype=np.uint8)
        rgb = NewtonRenderer(2).render(results, out)
        assert rgb is out
        assert out[1, 1].tolist() == [0, 0, 0]

    @pytest.mark.parametrize("bad_root", [4, -2, UNWRITTEN])
    def test_invalid_root(self, results, bad_root):
        results[2, 0] = bad_root
        with pytest.raises(RuntimeError, match=r"cell \(1, 0\)"):
            NewtonRenderer(2).render(results)

    def test_wrong_shape(self, results):
        with pytest.raises(ValueError):
            NewtonRenderer(3).render(results)


class TestSave:
    def test_png_round_trip(self, results, tmp_path, capsys):
        renderer = NewtonRenderer(2)
        path = renderer.save(renderer.render(results), str(tmp_path / "out" / "newton.png"))
        assert "Image saved" in capsys.readouterr().out

        surface = pygame.image.load(path)
        assert surface.get_size() == (2, 2)
        # Surface x is the grid row, y the grid column
        assert tuple(surface.get_at((0, 0)))[:3] == (16, 0, 0)
        assert tuple(surface.get_at((1, 0)))[:3] == (0, 255, 0)
        assert tuple(surface.get_at((0, 1)))[:3] == (0, 0, 240)
        assert tuple(surface.get_at((1, 1)))[:3] == (0, 0, 0)
