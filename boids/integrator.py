"""Position integration with per-axis wrap or bounce, plus the hard-distance floor."""

import math
import numpy as np
from numba import njit

from config import boids as config
from .math_strategy import EPSILON, hash_jitter, normalize_or_default, wrapped_delta
from .spatial import gather_neighbors


HARD_RELAXATION = config.SIM["hard_relaxation"]
HARD_MAX_PUSH = config.SIM["hard_max_push"]
MAX_REFLECTIONS = 4


@njit(cache=True)
def wrap_position(p: float, extent: float) -> float:
    p = p - extent * math.floor(p / extent)
    if p >= extent or p < 0.0:
        p = 0.0
    return p


@njit(cache=True)
def project_axis_position(p: float, extent: float, bounce: bool) -> float:
    if bounce:
        return min(max(p, 0.0), extent)
    return wrap_position(p, extent)


@njit(cache=True)
def integrate_axis(position: float, velocity: float, dt: float, extent: float, bounce: bool):
    """Advance one axis. Returns (position, velocity); bounce reflects up to 4 times then clamps."""
    nxt = position + velocity * dt
    if not bounce:
        return wrap_position(nxt, extent), velocity

    for _ in range(MAX_REFLECTIONS):
        if 0.0 <= nxt <= extent:
            break
        if nxt < 0.0:
            nxt = -nxt
            velocity = -velocity
        elif nxt > extent:
            nxt = 2.0 * extent - nxt
            velocity = -velocity
    return min(max(nxt, 0.0), extent), velocity


@njit(cache=True)
def integrate_positions(
    positions: np.ndarray,
    velocities: np.ndarray,
    headings: np.ndarray,
    extents: np.ndarray,
    bounce: np.ndarray,
    z_enabled: bool,
    z_layer: float,
    dt: float,
    active_count: int
):
    """
    Move active agents by their velocities. With 3D off, Z is pinned to the mid layer.

    A bounce that reverses a velocity component reverses the matching heading
    component too, so heading-driven models leave the wall.
    """
    for i in range(active_count):
        x, vx = integrate_axis(positions[i, 0], velocities[i, 0], dt, extents[0], bounce[0])
        y, vy = integrate_axis(positions[i, 1], velocities[i, 1], dt, extents[1], bounce[1])
        if z_enabled:
            z, vz = integrate_axis(positions[i, 2], velocities[i, 2], dt, extents[2], bounce[2])
        else:
            z, vz = z_layer * extents[2], 0.0
        if vx * velocities[i, 0] < 0.0:
            headings[i, 0] = -headings[i, 0]
        if vy * velocities[i, 1] < 0.0:
            headings[i, 1] = -headings[i, 1]
        if vz * velocities[i, 2] < 0.0:
            headings[i, 2] = -headings[i, 2]
        positions[i, 0] = x
        positions[i, 1] = y
        positions[i, 2] = z
        velocities[i, 0] = vx
        velocities[i, 1] = vy
        velocities[i, 2] = vz


@njit(cache=True)
def refresh_headings(velocities: np.ndarray, headings: np.ndarray, active_count: int, mode: int):
    """Point headings along velocity, keeping the previous heading when velocity is near zero."""
    for i in range(active_count):
        hx, hy, hz = normalize_or_default(
            velocities[i, 0], velocities[i, 1], velocities[i, 2],
            headings[i, 0], headings[i, 1], headings[i, 2], mode
        )
        headings[i, 0] = hx
        headings[i, 1] = hy
        headings[i, 2] = hz


@njit(cache=True)
def resolve_hard_min_distance(
    positions: np.ndarray,
    head: np.ndarray,
    nxt: np.ndarray,
    dims: np.ndarray,
    cell_w: np.ndarray,
    extents: np.ndarray,
    wrap: np.ndarray,
    z_enabled: bool,
    hard_min_distance: float,
    step_index: int,
    scratch: np.ndarray,
    active_count: int
) -> int:
    """
    One relaxation pass pushing overlapping pairs apart symmetrically.

    Each pair (i, j > i) closer than hard_min_distance moves by at most
    HARD_MAX_PUSH. Coincident pairs separate along a hashed direction.
    Returns the number of corrected pairs.
    """
    min_dist_sq = hard_min_distance * hard_min_distance
    corrected = 0
    for i in range(active_count):
        found = gather_neighbors(
            i, positions, head, nxt, dims, cell_w, extents, wrap, z_enabled,
            hard_min_distance, 0, scratch
        )
        for k in range(found):
            j = scratch[k]
            if j <= i:
                continue
            dx = wrapped_delta(positions[j, 0] - positions[i, 0], extents[0], wrap[0])
            dy = wrapped_delta(positions[j, 1] - positions[i, 1], extents[1], wrap[1])
            dz = 0.0
            if z_enabled:
                dz = wrapped_delta(positions[j, 2] - positions[i, 2], extents[2], wrap[2])
            dist_sq = dx * dx + dy * dy + dz * dz
            if dist_sq >= min_dist_sq:
                continue

            if dist_sq > EPSILON * EPSILON:
                dist = math.sqrt(dist_sq)
                nx, ny, nz = dx / dist, dy / dist, dz / dist
            else:
                dist = 0.0
                nx = hash_jitter(step_index, float(i), 0)
                ny = hash_jitter(step_index, float(j), 1)
                nz = 0.0
                if z_enabled:
                    nz = hash_jitter(step_index, float(i + j), 2)
                nx, ny, nz = normalize_or_default(nx, ny, nz, 1.0, 0.0, 0.0, 0)

            push = min((hard_min_distance - dist) * 0.5 * HARD_RELAXATION, HARD_MAX_PUSH)
            if push <= 0.0:
                continue

            positions[i, 0] = project_axis_position(positions[i, 0] - nx * push, extents[0], not wrap[0])
            positions[i, 1] = project_axis_position(positions[i, 1] - ny * push, extents[1], not wrap[1])
            positions[j, 0] = project_axis_position(positions[j, 0] + nx * push, extents[0], not wrap[0])
            positions[j, 1] = project_axis_position(positions[j, 1] + ny * push, extents[1], not wrap[1])
            if z_enabled:
                positions[i, 2] = project_axis_position(positions[i, 2] - nz * push, extents[2], not wrap[2])
                positions[j, 2] = project_axis_position(positions[j, 2] + nz * push, extents[2], not wrap[2])
            corrected += 1
    return corrected
