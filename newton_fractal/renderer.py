"""
Renderer for Newton fractal result buffers.

The NewtonRenderer class handles:
- Validation that every cell holds a known root (0..3)
- Per-root coloring with iteration-based brightness (compute.apply_root_colors)
- Saving the image as PNG through pygame
- An optional window to look at the result
"""

import os
import numpy as np
import pygame

from .compute import apply_root_colors, ROOT, ROOT_NONE, ROOT_DOWN


class NewtonRenderer:
    """
    Turns a populated result buffer into an RGB image.

    Root 1 is drawn in red, root 2 in blue, root 3 in green, each with a
    brightness of min(iterations * 16, 255); root 0 is black.

    Usage:
        renderer = NewtonRenderer(grid.n)
        rgb = renderer.render(results)
        renderer.save(rgb, "newton.png")

    Attributes:
        n: Grid side length (the image is n x n pixels)
    """

    WINDOW_CAPTION = "Newton fractal z³ - 1"

    def __init__(self, n):
        self.n = int(n)

    def check_roots(self, results):
        """
        Make sure every cell holds a root the renderer knows how to draw.

        Raises:
            RuntimeError if any root lies outside {0, 1, 2, 3}, which also
            catches cells left UNWRITTEN by an incomplete execution
        """
        if results.shape != (self.n * self.n, 2):
            raise ValueError(
                f"Result buffer shape {results.shape} does not match {self.n}x{self.n} image")
        roots = results[:, ROOT]
        bad = (roots < ROOT_NONE) | (roots > ROOT_DOWN)
        if bad.any():
            index = int(np.argmax(bad))
            row, col = divmod(index, self.n)
            raise RuntimeError(
                f"Invalid root {int(roots[index])} at cell ({row}, {col})")

    def render(self, results, out=None):
        """
        Color a result buffer.

        Args:
            results: int32 array of shape (n * n, 2)
            out: Optional uint8 array (n, n, 3) to fill in place

        Returns:
            uint8 RGB array of shape (n, n, 3), indexed [y, x] where
            x is the grid row and y the grid column
        """
        self.check_roots(results)
        if out is None:
            out = np.zeros((self.n, self.n, 3), dtype=np.uint8)
        apply_root_colors(results, self.n, out)
        return out

    def make_surface(self, rgb):
        """Create a pygame surface from an (height, width, 3) RGB array."""
        return pygame.surfarray.make_surface(rgb.swapaxes(0, 1))

    def save(self, rgb, filename):
        """
        Save an RGB image as PNG.

        Returns:
            Absolute path of the written file
        """
        filename = os.path.abspath(filename)
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        pygame.image.save(self.make_surface(rgb), filename)
        print(f"Image saved to: {filename}")
        return filename

    def show(self, rgb, max_size=1024):
        """
        Display an RGB image in a window until it is closed (or ESC).

        Images larger than max_size are scaled down to fit.
        """
        pygame.init()
        try:
            surface = self.make_surface(rgb)
            size = min(max_size, self.n)
            screen = pygame.display.set_mode((size, size))
            pygame.display.set_caption(self.WINDOW_CAPTION)
            if size != self.n:
                surface = pygame.transform.smoothscale(surface, (size, size))
            screen.blit(surface, (0, 0))
            pygame.display.flip()

            clock = pygame.time.Clock()
            running = True
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        running = False
                clock.tick(30)
        finally:
            pygame.quit()
