"""Float32 render export buffers and the views hosts borrow from them."""

import numpy as np
from numba import njit

from .errors import StaleViewError


@njit(cache=True)
def sync_render_buffers(
    positions: np.ndarray,
    velocities: np.ndarray,
    headings: np.ndarray,
    extents: np.ndarray,
    render_xy: np.ndarray,
    render_z: np.ndarray,
    render_heading: np.ndarray,
    active_count: int
):
    """Copy normalized [0, 1] positions, depth and XY heading of active agents."""
    for i in range(active_count):
        base = 2 * i
        render_xy[base] = min(max(positions[i, 0] / extents[0], 0.0), 1.0)
        render_xy[base + 1] = min(max(positions[i, 1] / extents[1], 0.0), 1.0)
        render_z[i] = min(max(positions[i, 2] / extents[2], 0.0), 1.0)

        vx, vy = velocities[i, 0], velocities[i, 1]
        len_sq = vx * vx + vy * vy
        if len_sq <= 1e-12:
            vx, vy = headings[i, 0], headings[i, 1]
            len_sq = vx * vx + vy * vy
        if len_sq <= 1e-12:
            render_heading[base] = 1.0
            render_heading[base + 1] = 0.0
        else:
            inv = 1.0 / np.sqrt(len_sq)
            render_heading[base] = vx * inv
            render_heading[base + 1] = vy * inv


class BufferView:
    """
    Read-only borrow of an export buffer, valid until the next grow() or close().

    Attributes:
        address: raw pointer of the first element, for hosts that map memory directly
        length: number of float32 elements covered by the view
        stride: floats per agent (2 for xy pairs, 1 for depth)
    """

    def __init__(self, owner: "RenderExportBuffer", name: str, array: np.ndarray, stride: int):
        self._owner = owner
        self._generation = owner.generation
        self._array = array
        self.name = name
        self.stride = stride
        self.length = int(array.shape[0])
        self.address = int(array.ctypes.data)

    @property
    def valid(self) -> bool:
        return self._owner.generation == self._generation

    @property
    def array(self) -> np.ndarray:
        if not self.valid:
            raise StaleViewError(f"{self.name} view outlived its buffer; acquire a new view")
        return self._array

    def __array__(self, dtype=None, copy=None):
        arr = self.array
        return arr if dtype is None else arr.astype(dtype)

    def __len__(self) -> int:
        return self.length

    def __getitem__(self, item):
        return self.array[item]


class RenderExportBuffer:
    """Owns render_xy (2 per agent), render_z (1) and render_heading (2), all float32."""

    def __init__(self, capacity: int):
        self.generation = 0
        self._allocate(capacity)

    def _allocate(self, capacity: int):
        self.render_xy = np.zeros(capacity * 2, dtype=np.float32)
        self.render_z = np.zeros(capacity, dtype=np.float32)
        self.render_heading = np.zeros(capacity * 2, dtype=np.float32)
        self.render_heading[0::2] = 1.0

    def sync(self, state, extents: np.ndarray):
        sync_render_buffers(
            state.positions, state.velocities, state.headings, extents,
            self.render_xy, self.render_z, self.render_heading,
            state.active_count
        )

    def grow(self, capacity: int):
        """Reallocate with room for capacity agents, keeping existing values. Invalidates views."""
        old_xy, old_z, old_heading = self.render_xy, self.render_z, self.render_heading
        self._allocate(capacity)
        self.render_xy[:old_xy.shape[0]] = old_xy
        self.render_z[:old_z.shape[0]] = old_z
        self.render_heading[:old_heading.shape[0]] = old_heading
        self.generation += 1

    def release(self):
        self.render_xy = self.render_z = self.render_heading = None
        self.generation += 1

    def _view(self, name: str, source: np.ndarray, stride: int, active_count: int) -> BufferView:
        arr = source[:active_count * stride]
        arr.flags.writeable = False
        return BufferView(self, name, arr, stride)

    def positions_view(self, active_count: int) -> BufferView:
        return self._view("positions", self.render_xy, 2, active_count)

    def depth_view(self, active_count: int) -> BufferView:
        return self._view("depth", self.render_z, 1, active_count)

    def heading_view(self, active_count: int) -> BufferView:
        return self._view("heading", self.render_heading, 2, active_count)
