"""Classic separation / alignment / cohesion steering with jitter, drag and a shape attractor."""

import math
import numpy as np
from numba import njit

from .math_strategy import (
    EPSILON, clamp_speed, hash_jitter, limit_magnitude,
    normalize_or_default, normalize_to_magnitude, wrapped_delta,
)
from .spatial import gather_neighbors


@njit(cache=True)
def nearest_shape_direction(
    px: float, py: float, pz: float,
    shape_points: np.ndarray,
    num_points: int,
    extents: np.ndarray,
    wrap: np.ndarray,
    z_enabled: bool,
    mode: int
):
    """Unit direction toward the closest shape point, or zero when already on it."""
    best_dx, best_dy, best_dz = 0.0, 0.0, 0.0
    best = 1e300
    for s in range(num_points):
        dx = wrapped_delta(shape_points[s, 0] - px, extents[0], wrap[0])
        dy = wrapped_delta(shape_points[s, 1] - py, extents[1], wrap[1])
        dz = 0.0
        if z_enabled:
            dz = wrapped_delta(shape_points[s, 2] - pz, extents[2], wrap[2])
        d_sq = dx * dx + dy * dy + dz * dz
        if d_sq < best:
            best = d_sq
            best_dx, best_dy, best_dz = dx, dy, dz
    if best <= EPSILON * EPSILON:
        return 0.0, 0.0, 0.0
    return normalize_or_default(best_dx, best_dy, best_dz, 0.0, 0.0, 0.0, mode)


@njit(cache=True)
def steer_towards(dx, dy, dz, vx, vy, vz, max_speed, mode):
    """Reynolds steering: desired direction at max_speed minus current velocity."""
    tx, ty, tz = normalize_to_magnitude(dx, dy, dz, max_speed, mode)
    return tx - vx, ty - vy, tz - vz


@njit(cache=True)
def compute_classic_forces(
    positions: np.ndarray,
    velocities: np.ndarray,
    phases: np.ndarray,
    steer: np.ndarray,
    head: np.ndarray,
    nxt: np.ndarray,
    dims: np.ndarray,
    cell_w: np.ndarray,
    extents: np.ndarray,
    wrap: np.ndarray,
    z_enabled: bool,
    scratch: np.ndarray,
    shape_points: np.ndarray,
    num_shape_points: int,
    shape_weight: float,
    sep_weight: float,
    align_weight: float,
    coh_weight: float,
    neighbor_radius: float,
    separation_radius: float,
    soft_min_distance: float,
    max_speed: float,
    max_force: float,
    max_neighbors: int,
    jitter_strength: float,
    z_force_scale: float,
    step_index: int,
    mode: int,
    active_count: int
) -> int:
    """Write the clamped steering force of every active agent into steer. Returns neighbors visited."""
    neighbor_sq = neighbor_radius * neighbor_radius
    separation_sq = separation_radius * separation_radius
    soft_sq = soft_min_distance * soft_min_distance
    z_scale = z_force_scale if z_enabled else 0.0
    visited = 0

    for i in range(active_count):
        px, py, pz = positions[i, 0], positions[i, 1], positions[i, 2]
        vx, vy = velocities[i, 0], velocities[i, 1]
        vz = velocities[i, 2] if z_enabled else 0.0

        found = gather_neighbors(
            i, positions, head, nxt, dims, cell_w, extents, wrap, z_enabled,
            neighbor_radius, max_neighbors, scratch
        )
        visited += found

        sep_x, sep_y, sep_z = 0.0, 0.0, 0.0
        align_x, align_y, align_z = 0.0, 0.0, 0.0
        coh_x, coh_y, coh_z = 0.0, 0.0, 0.0
        sep_count = 0
        neighbor_count = 0

        for k in range(found):
            j = scratch[k]
            dx = wrapped_delta(positions[j, 0] - px, extents[0], wrap[0])
            dy = wrapped_delta(positions[j, 1] - py, extents[1], wrap[1])
            dz = 0.0
            if z_enabled:
                dz = wrapped_delta(positions[j, 2] - pz, extents[2], wrap[2])
            dist_sq = dx * dx + dy * dy + dz * dz
            if dist_sq <= EPSILON * EPSILON or dist_sq > neighbor_sq:
                continue

            neighbor_count += 1
            align_x += velocities[j, 0]
            align_y += velocities[j, 1]
            if z_enabled:
                align_z += velocities[j, 2]
            coh_x += dx
            coh_y += dy
            coh_z += dz

            if dist_sq <= separation_sq:
                inv_dist_sq = 1.0 / dist_sq
                sep_x -= dx * inv_dist_sq
                sep_y -= dy * inv_dist_sq
                sep_z -= dz * inv_dist_sq
                if soft_sq > EPSILON * EPSILON and dist_sq < soft_sq:
                    push = soft_min_distance * (1.0 - dist_sq / soft_sq)
                    hx, hy, hz = normalize_to_magnitude(-dx, -dy, -dz, push, mode)
                    sep_x += hx
                    sep_y += hy
                    sep_z += hz
                sep_count += 1

        fx, fy, fz = 0.0, 0.0, 0.0
        if sep_count > 0:
            n = float(sep_count)
            sx, sy, sz = steer_towards(sep_x / n, sep_y / n, sep_z / n, vx, vy, vz, max_speed, mode)
            fx += sx * sep_weight
            fy += sy * sep_weight
            fz += sz * sep_weight * z_scale

        if neighbor_count > 0:
            n = float(neighbor_count)
            ax, ay, az = steer_towards(align_x / n, align_y / n, align_z / n, vx, vy, vz, max_speed, mode)
            fx += ax * align_weight
            fy += ay * align_weight
            fz += az * align_weight * z_scale

            cx, cy, cz = steer_towards(coh_x / n, coh_y / n, coh_z / n, vx, vy, vz, max_speed, mode)
            fx += cx * coh_weight
            fy += cy * coh_weight
            fz += cz * coh_weight * z_scale

        if jitter_strength > 0.0:
            fx += hash_jitter(step_index, phases[i], 0) * jitter_strength
            fy += hash_jitter(step_index, phases[i], 1) * jitter_strength
            if z_enabled:
                fz += hash_jitter(step_index, phases[i], 2) * jitter_strength

        if shape_weight > 0.0 and num_shape_points > 0:
            ux, uy, uz = nearest_shape_direction(
                px, py, pz, shape_points, num_shape_points, extents, wrap, z_enabled, mode
            )
            fx += ux * shape_weight
            fy += uy * shape_weight
            fz += uz * shape_weight * z_scale

        fx, fy, fz = limit_magnitude(fx, fy, fz, max_force, mode)
        steer[i, 0] = fx
        steer[i, 1] = fy
        steer[i, 2] = fz

    return visited


@njit(cache=True)
def apply_classic_forces(
    velocities: np.ndarray,
    headings: np.ndarray,
    steer: np.ndarray,
    z_enabled: bool,
    min_speed: float,
    max_speed: float,
    drag: float,
    dt: float,
    mode: int,
    active_count: int
):
    """velocity += force*dt, exponential drag, then clamp speed into [min_speed, max_speed]."""
    damping = 1.0 if drag <= EPSILON else math.exp(-drag * dt)
    for i in range(active_count):
        vx = (velocities[i, 0] + steer[i, 0] * dt) * damping
        vy = (velocities[i, 1] + steer[i, 1] * dt) * damping
        vz = 0.0
        if z_enabled:
            vz = (velocities[i, 2] + steer[i, 2] * dt) * damping
        hz = headings[i, 2] if z_enabled else 0.0
        hx, hy, hz = normalize_or_default(headings[i, 0], headings[i, 1], hz, 1.0, 0.0, 0.0, mode)
        vx, vy, vz = clamp_speed(vx, vy, vz, min_speed, max_speed, hx, hy, hz, mode)
        velocities[i, 0] = vx
        velocities[i, 1] = vy
        velocities[i, 2] = vz


@njit(cache=True)
def drift_classic(velocities: np.ndarray, z_enabled: bool, drag: float, dt: float, active_count: int):
    """Steering-free update: only drag acts on velocity."""
    damping = 1.0 if drag <= EPSILON else math.exp(-drag * dt)
    for i in range(active_count):
        velocities[i, 0] *= damping
        velocities[i, 1] *= damping
        if z_enabled:
            velocities[i, 2] *= damping
        else:
            velocities[i, 2] = 0.0


def steering_disabled(cfg, shape_weight: float) -> bool:
    """True when no classic term can produce force, so neighbor work can be skipped."""
    if cfg.max_force <= EPSILON:
        return True
    return (cfg.sep_weight <= EPSILON
            and cfg.align_weight <= EPSILON
            and cfg.coh_weight <= EPSILON
            and cfg.jitter_strength <= EPSILON
            and shape_weight <= EPSILON)
