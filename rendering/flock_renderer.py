"""Draws flock export views as heading-oriented line sprites using VBOs."""

import numpy as np
from numba import njit
from OpenGL.GL import *
from OpenGL.arrays import vbo

from config import boids as config


@njit(cache=True)
def build_heading_lines(
    xy: np.ndarray,
    heading: np.ndarray,
    depth: np.ndarray,
    vertices: np.ndarray,
    colors: np.ndarray,
    base_color: np.ndarray,
    length: float,
    count: int
):
    """Two vertices per agent: tail at the position, head along the heading. Depth dims the color."""
    for i in range(count):
        x = xy[2 * i]
        y = xy[2 * i + 1]
        hx = heading[2 * i]
        hy = heading[2 * i + 1]
        shade = 0.45 + 0.55 * depth[i]

        base = 2 * i
        vertices[base, 0] = x - hx * length
        vertices[base, 1] = y - hy * length
        vertices[base + 1, 0] = x + hx * length
        vertices[base + 1, 1] = y + hy * length

        for c in range(3):
            colors[base, c] = base_color[c] * shade * 0.35
            colors[base + 1, c] = base_color[c] * shade


class FlockRenderer:
    """
    Turns the flock's position, heading and depth views into GL_LINES.

    Vertex arrays are sized for the flock capacity up front and regrown only
    if a larger view arrives.
    """

    def __init__(self, capacity: int):
        self.length = np.float32(config.RENDER["heading_length"])
        self.point_size = config.RENDER["point_size"]
        self.base_color = np.array(config.COLORS["boid"], dtype=np.float32)
        self._allocate(capacity)

        # VBOs for GPU-side storage
        self._vbo_vertices = None
        self._vbo_colors = None
        self._vbos_initialized = False

    def _allocate(self, capacity: int):
        self.capacity = capacity
        self._vertices = np.zeros((capacity * 2, 2), dtype=np.float32)
        self._colors = np.zeros((capacity * 2, 3), dtype=np.float32)

    def _init_vbos(self):
        """Initialize VBOs for fast GPU rendering."""
        if self._vbos_initialized:
            return

        try:
            self._vbo_vertices = vbo.VBO(self._vertices, usage=GL_DYNAMIC_DRAW)
            self._vbo_colors = vbo.VBO(self._colors, usage=GL_DYNAMIC_DRAW)
            self._vbos_initialized = True
        except Exception as e:
            print(f"[Render] VBOs unavailable, using client arrays: {e}")
            self._vbos_initialized = False

    def draw(self, positions_view, heading_view, depth_view):
        """Render one frame from freshly acquired export views."""
        xy = positions_view.array
        heading = heading_view.array
        depth = depth_view.array
        count = len(depth)
        if count == 0:
            return
        if count > self.capacity:
            self.release()
            self._allocate(count)

        if not self._vbos_initialized:
            self._init_vbos()

        build_heading_lines(xy, heading, depth, self._vertices, self._colors,
                            self.base_color, float(self.length), count)
        total_verts = count * 2

        glPointSize(self.point_size)
        if self._vbos_initialized and self._vbo_vertices is not None:
            # VBO rendering path (faster)
            self._vbo_vertices.set_array(self._vertices[:total_verts])
            self._vbo_colors.set_array(self._colors[:total_verts])

            self._vbo_vertices.bind()
            glEnableClientState(GL_VERTEX_ARRAY)
            glVertexPointer(2, GL_FLOAT, 0, None)

            self._vbo_colors.bind()
            glEnableClientState(GL_COLOR_ARRAY)
            glColorPointer(3, GL_FLOAT, 0, None)

            glDrawArrays(GL_LINES, 0, total_verts)

            self._vbo_vertices.unbind()
            self._vbo_colors.unbind()
            glDisableClientState(GL_VERTEX_ARRAY)
            glDisableClientState(GL_COLOR_ARRAY)
        else:
            # Fallback to client-side arrays
            glEnableClientState(GL_VERTEX_ARRAY)
            glEnableClientState(GL_COLOR_ARRAY)

            glVertexPointer(2, GL_FLOAT, 0, self._vertices[:total_verts])
            glColorPointer(3, GL_FLOAT, 0, self._colors[:total_verts])
            glDrawArrays(GL_LINES, 0, total_verts)

            glDisableClientState(GL_VERTEX_ARRAY)
            glDisableClientState(GL_COLOR_ARRAY)

    def release(self):
        """Free GPU buffers."""
        if self._vbos_initialized:
            self._vbo_vertices.delete()
            self._vbo_colors.delete()
        self._vbo_vertices = None
        self._vbo_colors = None
        self._vbos_initialized = False
