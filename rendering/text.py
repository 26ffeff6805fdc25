"""HUD overlay: stacked text lines drawn in pixel space over the unit-square scene."""

import pygame
from OpenGL.GL import *

from config import boids as config


class TextRenderer:
    """
    Renders HUD lines with pygame fonts and glDrawPixels.

    Most HUD lines repeat frame to frame, so rasterized strings are cached
    and only changed lines are re-rendered by pygame.
    """

    MAX_CACHED = 64

    def __init__(self, font_name: str = "monospace", font_size: int = 18, line_spacing: int = 25):
        pygame.font.init()
        self.font = pygame.font.SysFont(font_name, font_size)
        self.color = tuple(int(c * 255) for c in config.COLORS["text"])
        self.line_spacing = line_spacing
        self._cache = {}

    def _rasterize(self, text: str):
        cached = self._cache.get(text)
        if cached is None:
            if len(self._cache) >= self.MAX_CACHED:
                self._cache.clear()
            surface = self.font.render(text, True, self.color)
            w, h = surface.get_size()
            cached = (pygame.image.tostring(surface, "RGBA", True), w, h)
            self._cache[text] = cached
        return cached

    def draw_lines(self, lines, x: int, y: int, screen_size: tuple):
        """
        Draw lines top-down starting at (x, y).

        Args:
            lines: Strings to draw, one per row
            x: X position from left edge
            y: Y position of the first row from top edge
            screen_size: (width, height) of the screen
        """
        # Pixel-space projection; the scene itself uses the unit square
        glMatrixMode(GL_PROJECTION)
        glPushMatrix()
        glLoadIdentity()
        glOrtho(0, screen_size[0], 0, screen_size[1], -1, 1)
        glMatrixMode(GL_MODELVIEW)
        glPushMatrix()
        glLoadIdentity()

        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)
        for row, text in enumerate(lines):
            if not text:
                continue
            data, w, h = self._rasterize(text)
            glRasterPos2f(x, screen_size[1] - (y + row * self.line_spacing) - h)
            glDrawPixels(w, h, GL_RGBA, GL_UNSIGNED_BYTE, data)
        glDisable(GL_BLEND)

        glPopMatrix()
        glMatrixMode(GL_PROJECTION)
        glPopMatrix()
        glMatrixMode(GL_MODELVIEW)
