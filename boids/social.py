"""Orientation-based social steering with an optional aerodynamic flight integrator.

Each agent proposes a new heading from unit targets (avoid the nearest
neighbor, align with and move toward its k nearest visible neighbors, drift
toward the flock when isolated). Targets are blended as rotation vectors
around the current heading, so weights trade angles rather than forces.
Flight speeds are in m/s; stored velocities are world units per second.
"""

import math
import numpy as np
from numba import njit

from config import boids as config
from .classic import nearest_shape_direction
from .math_strategy import (
    EPSILON, angle_between_units, cross3, heading_basis, length3,
    normalize_or_default, rotate_around_axis, wrapped_delta,
)
from .spatial import gather_neighbors


MAX_TOPOLOGICAL = config.SIM["max_topological"]


@njit(cache=True)
def active_centroid(positions: np.ndarray, z_enabled: bool, z_mid: float, active_count: int):
    cx, cy, cz = 0.0, 0.0, 0.0
    for i in range(active_count):
        cx += positions[i, 0]
        cy += positions[i, 1]
        cz += positions[i, 2] if z_enabled else z_mid
    inv = 1.0 / max(active_count, 1)
    return cx * inv, cy * inv, cz * inv


@njit(cache=True)
def _ranks_before(d: float, j: int, other_d: float, other_j: int) -> bool:
    return d < other_d or (d == other_d and j < other_j)


@njit(cache=True)
def insert_nearest(best_d: np.ndarray, best_j: np.ndarray, count: int, k: int, d: float, j: int) -> int:
    """Insert (d, j) into the sorted k-nearest buffers. Returns the new count."""
    if count < k:
        pos = count
        count += 1
    elif _ranks_before(d, j, best_d[k - 1], best_j[k - 1]):
        pos = k - 1
    else:
        return count
    while pos > 0 and _ranks_before(d, j, best_d[pos - 1], best_j[pos - 1]):
        best_d[pos] = best_d[pos - 1]
        best_j[pos] = best_j[pos - 1]
        pos -= 1
    best_d[pos] = d
    best_j[pos] = j
    return count


@njit(cache=True)
def accumulate_turn(wx, wy, wz, fx, fy, fz, tx, ty, tz, weight, ax0, ay0, az0, mode):
    """Add weight * angle(f, t) around axis f x t to the rotation vector (wx, wy, wz)."""
    if weight <= 0.0:
        return wx, wy, wz
    if tx * tx + ty * ty + tz * tz <= EPSILON * EPSILON:
        return wx, wy, wz
    angle = angle_between_units(fx, fy, fz, tx, ty, tz)
    if angle <= 1e-9:
        return wx, wy, wz
    cx, cy, cz = cross3(fx, fy, fz, tx, ty, tz)
    # Anti-parallel targets turn around the fallback axis
    cx, cy, cz = normalize_or_default(cx, cy, cz, ax0, ay0, az0, mode)
    s = angle * weight
    return wx + cx * s, wy + cy * s, wz + cz * s


@njit(cache=True)
def compute_social_headings(
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
    active_count: int,
    best_d: np.ndarray,
    best_j: np.ndarray
) -> int:
    """
    Write each agent's next unit heading into out_headings. Returns visible neighbors counted.

    best_d and best_j hold at least MAX_TOPOLOGICAL entries and are overwritten.
    """
    k = max(1, min(topological, MAX_TOPOLOGICAL))
    visited = 0

    for i in range(active_count):
        px, py, pz = positions[i, 0], positions[i, 1], positions[i, 2]
        hz = headings[i, 2] if z_enabled else 0.0
        fx, fy, fz = normalize_or_default(headings[i, 0], headings[i, 1], hz, 1.0, 0.0, 0.0, mode)
        if z_enabled:
            _, _, _, ax0, ay0, az0 = heading_basis(fx, fy, fz, mode)
        else:
            ax0, ay0, az0 = 0.0, 0.0, 1.0

        found = gather_neighbors(
            i, positions, head, nxt, dims, cell_w, extents, wrap, z_enabled,
            neighbor_radius, 0, scratch
        )

        visible = 0
        count = 0
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
            inv = 1.0 / math.sqrt(dist_sq)
            if (fx * dx + fy * dy + fz * dz) * inv < fov_cos:
                continue
            visible += 1
            count = insert_nearest(best_d, best_j, count, k, dist_sq, j)
        visited += visible

        wx, wy, wz = 0.0, 0.0, 0.0

        if count > 0:
            # Avoid the single nearest visible neighbor
            j = best_j[0]
            dx = wrapped_delta(positions[j, 0] - px, extents[0], wrap[0])
            dy = wrapped_delta(positions[j, 1] - py, extents[1], wrap[1])
            dz = 0.0
            if z_enabled:
                dz = wrapped_delta(positions[j, 2] - pz, extents[2], wrap[2])
            tx, ty, tz = normalize_or_default(-dx, -dy, -dz, 0.0, 0.0, 0.0, mode)
            wx, wy, wz = accumulate_turn(wx, wy, wz, fx, fy, fz, tx, ty, tz, avoid_weight, ax0, ay0, az0, mode)

            avx, avy, avz = 0.0, 0.0, 0.0
            apx, apy, apz = 0.0, 0.0, 0.0
            for n in range(count):
                j = best_j[n]
                avx += velocities[j, 0]
                avy += velocities[j, 1]
                apx += wrapped_delta(positions[j, 0] - px, extents[0], wrap[0])
                apy += wrapped_delta(positions[j, 1] - py, extents[1], wrap[1])
                if z_enabled:
                    avz += velocities[j, 2]
                    apz += wrapped_delta(positions[j, 2] - pz, extents[2], wrap[2])
            tx, ty, tz = normalize_or_default(avx, avy, avz, 0.0, 0.0, 0.0, mode)
            wx, wy, wz = accumulate_turn(wx, wy, wz, fx, fy, fz, tx, ty, tz, align_weight, ax0, ay0, az0, mode)
            tx, ty, tz = normalize_or_default(apx, apy, apz, 0.0, 0.0, 0.0, mode)
            wx, wy, wz = accumulate_turn(wx, wy, wz, fx, fy, fz, tx, ty, tz, cohesion_weight, ax0, ay0, az0, mode)

        if boundary_count > 0 and visible < boundary_count:
            ratio = (boundary_count - visible) / boundary_count
            bx = wrapped_delta(centroid_x - px, extents[0], wrap[0])
            by = wrapped_delta(centroid_y - py, extents[1], wrap[1])
            bz = 0.0
            if z_enabled:
                bz = wrapped_delta(centroid_z - pz, extents[2], wrap[2])
            tx, ty, tz = normalize_or_default(bx, by, bz, 0.0, 0.0, 0.0, mode)
            wx, wy, wz = accumulate_turn(
                wx, wy, wz, fx, fy, fz, tx, ty, tz, boundary_weight * ratio, ax0, ay0, az0, mode
            )

        nx, ny, nz = fx, fy, fz
        turn = length3(wx, wy, wz, mode)
        if turn > EPSILON:
            turn_angle = min(turn * reaction_gain, math.pi)
            nx, ny, nz = rotate_around_axis(fx, fy, fz, wx / turn, wy / turn, wz / turn, turn_angle)
        if not z_enabled:
            nz = 0.0
        nx, ny, nz = normalize_or_default(nx, ny, nz, fx, fy, fz, mode)
        out_headings[i, 0] = nx
        out_headings[i, 1] = ny
        out_headings[i, 2] = nz

    return visited


@njit(cache=True)
def apply_social_motion(
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
    dynamic_stability: float,
    mass: float,
    wing_area: float,
    lift_factor: float,
    drag_factor: float,
    thrust: float,
    min_speed: float,
    max_speed: float,
    gravity: float,
    air_density: float,
    world_scale: float,
    dt: float,
    mode: int,
    active_count: int
):
    """Adopt the proposed headings and update velocity, either heading * speed or aerodynamically."""
    gravity_force = gravity * mass
    stability_gain = min(max(dynamic_stability * dt * 60.0, 0.0), 1.0)

    for i in range(active_count):
        hx, hy, hz = next_headings[i, 0], next_headings[i, 1], next_headings[i, 2]
        headings[i, 0] = hx
        headings[i, 1] = hy
        headings[i, 2] = hz

        vx = velocities[i, 0] / world_scale
        vy = velocities[i, 1] / world_scale
        vz = velocities[i, 2] / world_scale if z_enabled else 0.0
        speed = length3(vx, vy, vz, mode)
        if speed <= EPSILON:
            speed = min_speed
        speed = min(max(speed, min_speed), max_speed)

        if with_flight:
            axx, axy, axz = normalize_or_default(vx, vy, vz, hx, hy, hz, mode)
            _, _, _, ux, uy, uz = heading_basis(hx, hy, hz, mode)
            q = 0.5 * air_density * max(speed, min_speed) ** 2
            lift = q * lift_factor * wing_area
            drag = q * drag_factor * wing_area
            force_x = ux * lift - axx * drag + hx * thrust
            force_y = uy * lift - axy * drag + hy * thrust - gravity_force
            force_z = uz * lift - axz * drag + hz * thrust
            vx += force_x / mass * dt
            vy += force_y / mass * dt
            vz = vz + force_z / mass * dt if z_enabled else 0.0

            # Pull the direction of travel toward the body axis, keeping speed
            current = length3(vx, vy, vz, mode)
            dx, dy, dz = normalize_or_default(vx, vy, vz, hx, hy, hz, mode)
            dx, dy, dz = normalize_or_default(
                dx * (1.0 - stability_gain) + hx * stability_gain,
                dy * (1.0 - stability_gain) + hy * stability_gain,
                dz * (1.0 - stability_gain) + hz * stability_gain,
                hx, hy, hz, mode
            )
            vx, vy, vz = dx * current, dy * current, dz * current
        else:
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
