"""Precision strategy and small vector helpers shared by every force model.

All kernels work on scalar xyz triples rather than small arrays so Numba can
keep them in registers. The ``mode`` argument is the integer code of a
``MathMode`` and selects how inverse square roots are computed.
"""

import math
from enum import Enum
from numbers import Real

from numba import njit

from config import boids as config


EPSILON = config.SIM["epsilon"]

MODE_ACCURATE = 0
MODE_FAST = 1


class MathMode(Enum):
    """Numeric preset used for normalization and magnitude limits."""
    ACCURATE = "accurate"
    FAST = "fast"

    @property
    def code(self) -> int:
        return MODE_FAST if self is MathMode.FAST else MODE_ACCURATE

    @classmethod
    def coerce(cls, value) -> "MathMode":
        """Accept a MathMode, its string value or its integer code. Unknown values map to ACCURATE."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for mode in cls:
                if mode.value == value.strip().lower():
                    return mode
            return cls.ACCURATE
        if isinstance(value, Real) and not isinstance(value, bool):
            return cls.FAST if value == MODE_FAST else cls.ACCURATE
        return cls.ACCURATE


# ============================================================================
# SCALAR KERNELS
# ============================================================================

@njit(cache=True)
def fast_inv_sqrt(value: float) -> float:
    """Approximate 1/sqrt(value) from an exponent split and two Newton steps."""
    if value <= 0.0:
        return 0.0
    m, e = math.frexp(value)
    if e % 2 != 0:
        m *= 2.0
        e -= 1
    # Quadratic seed for 1/sqrt(m) on [0.5, 2)
    y = 2.00694 - 1.36397 * m + 0.35703 * m * m
    y = y * (1.5 - 0.5 * m * y * y)
    y = y * (1.5 - 0.5 * m * y * y)
    return math.ldexp(y, -(e // 2))


@njit(cache=True)
def inv_sqrt(value: float, mode: int) -> float:
    if value <= 0.0:
        return 0.0
    if mode == MODE_FAST:
        return fast_inv_sqrt(value)
    return 1.0 / math.sqrt(value)


@njit(cache=True)
def length3(x: float, y: float, z: float, mode: int) -> float:
    len_sq = x * x + y * y + z * z
    if len_sq <= 0.0:
        return 0.0
    return len_sq * inv_sqrt(len_sq, mode)


@njit(cache=True)
def dot3(ax, ay, az, bx, by, bz):
    return ax * bx + ay * by + az * bz


@njit(cache=True)
def cross3(ax, ay, az, bx, by, bz):
    return ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx


@njit(cache=True)
def normalize_to_magnitude(x: float, y: float, z: float, magnitude: float, mode: int):
    """Scale a vector to the given length. Near-zero vectors become zero."""
    len_sq = x * x + y * y + z * z
    if len_sq <= EPSILON * EPSILON:
        return 0.0, 0.0, 0.0
    s = magnitude * inv_sqrt(len_sq, mode)
    return x * s, y * s, z * s


@njit(cache=True)
def normalize_or_default(x: float, y: float, z: float,
                         dx: float, dy: float, dz: float, mode: int):
    """Unit vector of (x, y, z), or the given default when it is near zero."""
    len_sq = x * x + y * y + z * z
    if len_sq <= EPSILON * EPSILON:
        return dx, dy, dz
    s = inv_sqrt(len_sq, mode)
    return x * s, y * s, z * s


@njit(cache=True)
def limit_magnitude(x: float, y: float, z: float, max_magnitude: float, mode: int):
    """Clamp a vector's length to max_magnitude, leaving shorter vectors untouched."""
    len_sq = x * x + y * y + z * z
    if len_sq <= max_magnitude * max_magnitude:
        return x, y, z
    if max_magnitude <= 0.0:
        return 0.0, 0.0, 0.0
    s = max_magnitude * inv_sqrt(len_sq, mode)
    return x * s, y * s, z * s


@njit(cache=True)
def clamp_speed(x: float, y: float, z: float, min_speed: float, max_speed: float,
                fx: float, fy: float, fz: float, mode: int):
    """Clamp speed to [min_speed, max_speed]; a zero vector moves along (fx, fy, fz) at min_speed."""
    len_sq = x * x + y * y + z * z
    if len_sq <= EPSILON * EPSILON:
        return fx * min_speed, fy * min_speed, fz * min_speed
    speed = length3(x, y, z, mode)
    if speed < min_speed:
        return normalize_to_magnitude(x, y, z, min_speed, mode)
    if speed > max_speed:
        return normalize_to_magnitude(x, y, z, max_speed, mode)
    return x, y, z


@njit(cache=True)
def heading_basis(fx: float, fy: float, fz: float, mode: int):
    """Right and up axes for a unit forward vector, using world +Y as reference up."""
    rx, ry, rz = cross3(fx, fy, fz, 0.0, 1.0, 0.0)
    if rx * rx + ry * ry + rz * rz <= 1e-8:
        rx, ry, rz = cross3(fx, fy, fz, 0.0, 0.0, 1.0)
    rx, ry, rz = normalize_or_default(rx, ry, rz, 1.0, 0.0, 0.0, mode)
    ux, uy, uz = cross3(rx, ry, rz, fx, fy, fz)
    ux, uy, uz = normalize_or_default(ux, uy, uz, 0.0, 1.0, 0.0, mode)
    return rx, ry, rz, ux, uy, uz


@njit(cache=True)
def rotate_around_axis(vx: float, vy: float, vz: float,
                       ax: float, ay: float, az: float, angle: float):
    """Rodrigues rotation of v around the unit axis a by angle radians."""
    c = math.cos(angle)
    s = math.sin(angle)
    kx, ky, kz = cross3(ax, ay, az, vx, vy, vz)
    d = dot3(ax, ay, az, vx, vy, vz) * (1.0 - c)
    return (vx * c + kx * s + ax * d,
            vy * c + ky * s + ay * d,
            vz * c + kz * s + az * d)


@njit(cache=True)
def angle_between_units(ax, ay, az, bx, by, bz):
    d = dot3(ax, ay, az, bx, by, bz)
    if d > 1.0:
        d = 1.0
    elif d < -1.0:
        d = -1.0
    return math.acos(d)


@njit(cache=True)
def wrapped_delta(d: float, extent: float, wrap: bool) -> float:
    """Shortest displacement along a periodic axis."""
    if not wrap or extent <= 0.0:
        return d
    half = 0.5 * extent
    if d > half:
        d -= extent
    elif d < -half:
        d += extent
    return d


@njit(cache=True)
def hash_jitter(step: int, phase: float, axis: int) -> float:
    """Deterministic pseudo-random value in [-1, 1] for an agent, step and axis."""
    v = math.sin(step * 12.9898 + phase * 78.233 + axis * 37.719) * 43758.5453
    return 2.0 * (v - math.floor(v)) - 1.0


def clamp_finite(value, lo, hi, fallback):
    """Clamp value into [lo, hi]; non-finite or non-numeric input yields fallback."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(v):
        return fallback
    return min(max(v, lo), hi)
