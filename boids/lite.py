"""Lite social models: capped neighbor sampling, vector-sum targets and a scalar speed proxy."""

import numpy as np
from numba import njit

from config import boids as config
from .classic import nearest_shape_direction
from .math_strategy import EPSILON, length3, normalize_or_default, wrapped_delta
from .spatial import gather_neighbors


LITE_MAX_NEIGHBORS = config.SIM["lite_max_neighbors"]
LITE_DRAG_SCALE = config.SIM["lite_drag_scale"]
LITE_CLIMB_SCALE = config.SIM["lite_climb_scale"]


@njit(cache=True)
def compute_lite_headings(
    positions: np.ndarray,
    velocities: np.ndarray,
    headings: np.ndarray,
    out_headings: np.ndarray,
    head: np.ndarray,
    nxt: np.ndarray,
    dims: np.ndarray,
    cell_w: np.ndarray,
    extents: np.ndarray,
    wrap: np.ndarray,
    z_enabled: bool,
    scratch: np.ndarray,
    avoid_weight: float,
    align_weight: float,
    cohesion_weight: float,
    boundary_weight: float,
    boundary_count: int,
    neighbor_radius: float,
    topological: int,
    fov_cos: float,
    reaction_gain: float,
    centroid_x: float,
    centroid_y: float,
    centroid_z: float,
    mode: int,
    active_count: int
) -> int:
    """Blend each heading toward a weighted sum of unit targets. Returns neighbors used."""
    cap = max(1, min(topological, LITE_MAX_NEIGHBORS))
    visited = 0

    for i in range(active_count):
        px, py, pz = positions[i, 0], positions[i, 1], positions[i, 2]
        hz = headings[i, 2] if z_enabled else 0.0
        fx, fy, fz = normalize_or_default(headings[i, 0], headings[i, 1], hz, 1.0, 0.0, 0.0, mode)

        found = gather_neighbors(
            i, positions, head, nxt, dims, cell_w, extents, wrap, z_enabled,
            neighbor_radius, cap, scratch
        )

        sep_x, sep_y, sep_z = 0.0, 0.0, 0.0
        align_x, align_y, align_z = 0.0, 0.0, 0.0
        coh_x, coh_y, coh_z = 0.0, 0.0, 0.0
        visible = 0
        for n in range(found):
            j = scratch[n]
            dx = wrapped_delta(positions[j, 0] - px, extents[0], wrap[0])
            dy = wrapped_delta(positions[j, 1] - py, extents[1], wrap[1])
            dz = 0.0
            if z_enabled:
                dz = wrapped_delta(positions[j, 2] - pz, extents[2], wrap[2])
            dist_sq = dx * dx + dy * dy + dz * dz
            if dist_sq <= EPSILON * EPSILON:
                continue
            ux, uy, uz = normalize_or_default(dx, dy, dz, 0.0, 0.0, 0.0, mode)
            if fx * ux + fy * uy + fz * uz < fov_cos:
                continue
            visible += 1

            inv_dsq = 1.0 / max(dist_sq, 1e-4)
            sep_x -= ux * inv_dsq
            sep_y -= uy * inv_dsq
            sep_z -= uz * inv_dsq

            vz = velocities[j, 2] if z_enabled else 0.0
            ax, ay, az = normalize_or_default(velocities[j, 0], velocities[j, 1], vz, 0.0, 0.0, 0.0, mode)
            align_x += ax
            align_y += ay
            align_z += az
            coh_x += ux
            coh_y += uy
            coh_z += uz
        visited += visible

        if visible > 0:
            inv_n = 1.0 / visible
            align_x *= inv_n
            align_y *= inv_n
            align_z *= inv_n
            coh_x *= inv_n
            coh_y *= inv_n
            coh_z *= inv_n

        tx = sep_x * avoid_weight + align_x * align_weight + coh_x * cohesion_weight
        ty = sep_y * avoid_weight + align_y * align_weight + coh_y * cohesion_weight
        tz = sep_z * avoid_weight + align_z * align_weight + coh_z * cohesion_weight

        if boundary_count > 0 and visible < boundary_count:
            ratio = (boundary_count - visible) / boundary_count
            bx = wrapped_delta(centroid_x - px, extents[0], wrap[0])
            by = wrapped_delta(centroid_y - py, extents[1], wrap[1])
            bz = 0.0
            if z_enabled:
                bz = wrapped_delta(centroid_z - pz, extents[2], wrap[2])
            bx, by, bz = normalize_or_default(bx, by, bz, 0.0, 0.0, 0.0, mode)
            tx += bx * boundary_weight * ratio
            ty += by * boundary_weight * ratio
            tz += bz * boundary_weight * ratio

        if not z_enabled:
            tz = 0.0
        tx, ty, tz = normalize_or_default(tx, ty, tz, fx, fy, fz, mode)
        nx, ny, nz = normalize_or_default(
            fx * (1.0 - reaction_gain) + tx * reaction_gain,
            fy * (1.0 - reaction_gain) + ty * reaction_gain,
            fz * (1.0 - reaction_gain) + tz * reaction_gain,
            fx, fy, fz, mode
        )
        out_headings[i, 0] = nx
        out_headings[i, 1] = ny
        out_headings[i, 2] = nz if z_enabled else 0.0

    return visited


@njit(cache=True)
def apply_lite_motion(
    positions: np.ndarray,
    velocities: np.ndarray,
    headings: np.ndarray,
    next_headings: np.ndarray,
    extents: np.ndarray,
    wrap: np.ndarray,
    z_enabled: bool,
    shape_points: np.ndarray,
    num_shape_points: int,
    shape_weight: float,
    with_flight: bool,
    drag_factor: float,
    thrust: float,
    min_speed: float,
    max_speed: float,
    gravity: float,
    world_scale: float,
    dt: float,
    mode: int,
    active_count: int
):
    """velocity = heading * speed, where flight nudges speed by thrust, drag and climb losses."""
    for i in range(active_count):
        hx, hy, hz = next_headings[i, 0], next_headings[i, 1], next_headings[i, 2]
        headings[i, 0] = hx
        headings[i, 1] = hy
        headings[i, 2] = hz

        vz = velocities[i, 2] if z_enabled else 0.0
        speed = max(length3(velocities[i, 0], velocities[i, 1], vz, mode) / world_scale, min_speed)
        if with_flight:
            drag_loss = LITE_DRAG_SCALE * drag_factor * speed * speed
            climb_loss = LITE_CLIMB_SCALE * gravity * max(hy, 0.0)
            speed += (thrust - drag_loss - climb_loss) * dt
        speed = min(max(speed, min_speed), max_speed)

        vx, vy, vz = hx * speed, hy * speed, hz * speed
        if shape_weight > 0.0 and num_shape_points > 0:
            sx, sy, sz = nearest_shape_direction(
                positions[i, 0], positions[i, 1], positions[i, 2],
                shape_points, num_shape_points, extents, wrap, z_enabled, mode
            )
            vx += sx * shape_weight * dt / world_scale
            vy += sy * shape_weight * dt / world_scale
            vz += sz * shape_weight * dt / world_scale
        if not z_enabled:
            vz = 0.0

        final = min(max(length3(vx, vy, vz, mode), min_speed), max_speed)
        dx, dy, dz = normalize_or_default(vx, vy, vz, hx, hy, hz, mode)
        velocities[i, 0] = dx * final * world_scale
        velocities[i, 1] = dy * final * world_scale
        velocities[i, 2] = dz * final * world_scale
