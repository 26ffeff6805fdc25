"""Uniform-grid spatial index with linked-list buckets.

Each step the grid is rebuilt from scratch into two preallocated arrays:
``head`` holds the first agent index in every cell and ``next`` chains agents
that share a cell. Nothing agent-sized is allocated after construction.
"""

import math
import numpy as np
from numba import njit

from config import boids as config
from .math_strategy import wrapped_delta


MAX_GRID_CELLS = config.SIM["max_grid_cells"]
MAX_AXIS_CELLS_2D = config.SIM["max_axis_cells_2d"]
MAX_AXIS_CELLS_3D = config.SIM["max_axis_cells_3d"]


# ============================================================================
# NUMBA JIT-COMPILED GRID FUNCTIONS
# ============================================================================

@njit(cache=True)
def cell_coord(p: float, width: float, dim: int) -> int:
    c = int(p / width)
    return max(0, min(c, dim - 1))


@njit(cache=True)
def axis_span(c: int, reach: int, dim: int, wrap: bool):
    """(start, count) of cells to visit on one axis; wrapped starts may be negative."""
    if wrap:
        if 2 * reach + 1 >= dim:
            return 0, dim
        return c - reach, 2 * reach + 1
    lo = max(0, c - reach)
    hi = min(dim - 1, c + reach)
    return lo, hi - lo + 1


@njit(cache=True)
def build_grid(
    positions: np.ndarray,
    head: np.ndarray,
    nxt: np.ndarray,
    dims: np.ndarray,
    cell_w: np.ndarray,
    active_count: int
):
    """Insert active agents into buckets. Descending insertion keeps each bucket index-ascending."""
    nx, ny, nz = dims[0], dims[1], dims[2]
    for c in range(nx * ny * nz):
        head[c] = -1
    for i in range(active_count - 1, -1, -1):
        cx = cell_coord(positions[i, 0], cell_w[0], nx)
        cy = cell_coord(positions[i, 1], cell_w[1], ny)
        cz = cell_coord(positions[i, 2], cell_w[2], nz)
        cell = cx + nx * (cy + ny * cz)
        nxt[i] = head[cell]
        head[cell] = i


@njit(cache=True)
def gather_neighbors(
    i: int,
    positions: np.ndarray,
    head: np.ndarray,
    nxt: np.ndarray,
    dims: np.ndarray,
    cell_w: np.ndarray,
    extents: np.ndarray,
    wrap: np.ndarray,
    z_enabled: bool,
    radius: float,
    max_count: int,
    out: np.ndarray
) -> int:
    """
    Write indices of other agents within radius of agent i into out.

    Cells are visited z, y, x outermost to innermost. Stops once max_count
    neighbors are collected when max_count > 0. Returns the neighbor count.
    """
    nx, ny, nz = dims[0], dims[1], dims[2]
    px, py, pz = positions[i, 0], positions[i, 1], positions[i, 2]
    r_sq = radius * radius

    cx = cell_coord(px, cell_w[0], nx)
    cy = cell_coord(py, cell_w[1], ny)
    sx, count_x = axis_span(cx, int(math.ceil(radius / cell_w[0])), nx, wrap[0])
    sy, count_y = axis_span(cy, int(math.ceil(radius / cell_w[1])), ny, wrap[1])
    if z_enabled:
        cz = cell_coord(pz, cell_w[2], nz)
        sz, count_z = axis_span(cz, int(math.ceil(radius / cell_w[2])), nz, wrap[2])
    else:
        sz, count_z = 0, 1

    found = 0
    for oz in range(count_z):
        gz = (sz + oz) % nz
        for oy in range(count_y):
            gy = (sy + oy) % ny
            row = nx * (gy + ny * gz)
            for ox in range(count_x):
                gx = (sx + ox) % nx
                j = head[row + gx]
                while j != -1:
                    if j != i:
                        dx = wrapped_delta(positions[j, 0] - px, extents[0], wrap[0])
                        dy = wrapped_delta(positions[j, 1] - py, extents[1], wrap[1])
                        dz = 0.0
                        if z_enabled:
                            dz = wrapped_delta(positions[j, 2] - pz, extents[2], wrap[2])
                        if dx * dx + dy * dy + dz * dz <= r_sq:
                            out[found] = j
                            found += 1
                            if max_count > 0 and found >= max_count:
                                return found
                    j = nxt[j]
    return found


# ============================================================================
# SPATIAL INDEX CLASS
# ============================================================================

class SpatialIndex:
    """Grid geometry plus bucket storage, rebuilt every step from current positions."""

    def __init__(self, capacity: int):
        self.head = np.full(MAX_GRID_CELLS, -1, dtype=np.int32)
        self.next = np.full(capacity, -1, dtype=np.int32)
        self._query = np.zeros(capacity, dtype=np.int32)

        self.dims = np.ones(3, dtype=np.int64)
        self.cell_w = np.ones(3, dtype=np.float64)
        self.extents = np.ones(3, dtype=np.float64)
        self.wrap = np.ones(3, dtype=np.bool_)
        self.z_enabled = False
        self.active_count = 0
        self.positions = None

    def configure(self, cell_size: float, extents, wrap, z_enabled: bool):
        """Size cells to at least cell_size, capped so the cell count fits the head array."""
        cap = MAX_AXIS_CELLS_3D if z_enabled else MAX_AXIS_CELLS_2D
        cell_size = max(float(cell_size), 1e-6)
        for axis in range(3):
            extent = float(extents[axis])
            if axis == 2 and not z_enabled:
                dim = 1
            else:
                dim = max(1, min(int(extent / cell_size), cap))
            self.dims[axis] = dim
            self.cell_w[axis] = extent / dim
            self.extents[axis] = extent
            self.wrap[axis] = bool(wrap[axis])
        self.z_enabled = bool(z_enabled)

    @property
    def num_cells(self) -> int:
        return int(self.dims[0] * self.dims[1] * self.dims[2])

    def build(self, positions: np.ndarray, active_count: int):
        active_count = max(0, min(int(active_count), len(self.next)))
        build_grid(positions, self.head, self.next, self.dims, self.cell_w, active_count)
        self.positions = positions
        self.active_count = active_count

    def gather(self, index: int, radius: float, max_count: int, out: np.ndarray) -> int:
        return gather_neighbors(
            index, self.positions, self.head, self.next,
            self.dims, self.cell_w, self.extents, self.wrap, self.z_enabled,
            float(radius), int(max_count), out
        )

    def for_each_neighbor(self, index: int, radius: float, max_count: int, callback) -> int:
        """Call callback(j) for each neighbor of index within radius. Returns the visit count."""
        found = self.gather(index, radius, max_count, self._query)
        for k in range(found):
            callback(int(self._query[k]))
        return found

    def grow(self, capacity: int):
        self.next = np.full(capacity, -1, dtype=np.int32)
        self._query = np.zeros(capacity, dtype=np.int32)
