import math

import numpy as np
from pytest import approx

from boids.math_strategy import (
    MODE_ACCURATE, MODE_FAST, MathMode, clamp_finite, clamp_speed, fast_inv_sqrt,
    hash_jitter, inv_sqrt, limit_magnitude, normalize_or_default,
    normalize_to_magnitude, rotate_around_axis, wrapped_delta,
)


def test_fast_inv_sqrt_relative_error_is_small():
    for value in np.logspace(-8, 8, 257):
        exact = 1.0 / math.sqrt(value)
        assert abs(fast_inv_sqrt(value) - exact) / exact < 5e-3


def test_inv_sqrt_modes_agree_and_handle_zero():
    assert inv_sqrt(4.0, MODE_ACCURATE) == approx(0.5)
    assert inv_sqrt(4.0, MODE_FAST) == approx(0.5, rel=5e-3)
    assert inv_sqrt(0.0, MODE_ACCURATE) == 0.0
    assert inv_sqrt(0.0, MODE_FAST) == 0.0


def test_normalize_near_zero_returns_zero_or_default():
    assert normalize_to_magnitude(0.0, 0.0, 0.0, 3.0, MODE_ACCURATE) == (0.0, 0.0, 0.0)
    assert normalize_or_default(1e-9, 0.0, 0.0, 0.0, 1.0, 0.0, MODE_FAST) == (0.0, 1.0, 0.0)


def test_normalize_to_magnitude_scales_length():
    x, y, z = normalize_to_magnitude(3.0, 4.0, 0.0, 10.0, MODE_ACCURATE)
    assert (x, y, z) == approx((6.0, 8.0, 0.0))


def test_limit_magnitude_only_shortens():
    assert limit_magnitude(0.1, 0.0, 0.0, 1.0, MODE_ACCURATE) == approx((0.1, 0.0, 0.0))
    x, y, z = limit_magnitude(3.0, 4.0, 0.0, 1.0, MODE_ACCURATE)
    assert math.sqrt(x * x + y * y + z * z) == approx(1.0)
    assert limit_magnitude(3.0, 4.0, 0.0, 0.0, MODE_ACCURATE) == (0.0, 0.0, 0.0)


def test_clamp_speed_bounds_and_stalled_fallback():
    x, y, z = clamp_speed(0.01, 0.0, 0.0, 0.5, 2.0, 1.0, 0.0, 0.0, MODE_ACCURATE)
    assert (x, y, z) == approx((0.5, 0.0, 0.0))
    x, y, z = clamp_speed(0.0, 10.0, 0.0, 0.5, 2.0, 1.0, 0.0, 0.0, MODE_ACCURATE)
    assert (x, y, z) == approx((0.0, 2.0, 0.0))
    x, y, z = clamp_speed(0.0, 0.0, 0.0, 0.5, 2.0, 0.0, -1.0, 0.0, MODE_ACCURATE)
    assert (x, y, z) == approx((0.0, -0.5, 0.0))


def test_rotate_around_axis_quarter_turn():
    x, y, z = rotate_around_axis(1.0, 0.0, 0.0, 0.0, 0.0, 1.0, math.pi / 2)
    assert (x, y, z) == approx((0.0, 1.0, 0.0), abs=1e-12)


def test_wrapped_delta_takes_short_way_round():
    assert wrapped_delta(0.9, 1.0, True) == approx(-0.1)
    assert wrapped_delta(-0.9, 1.0, True) == approx(0.1)
    assert wrapped_delta(0.9, 1.0, False) == approx(0.9)


def test_hash_jitter_is_deterministic_and_bounded():
    values = [hash_jitter(step, 12.5, axis) for step in range(200) for axis in range(3)]
    assert all(-1.0 <= v <= 1.0 for v in values)
    assert hash_jitter(7, 3.25, 1) == hash_jitter(7, 3.25, 1)
    assert len(set(values)) > 500


def test_math_mode_coerce():
    assert MathMode.coerce("fast") is MathMode.FAST
    assert MathMode.coerce(" FAST ") is MathMode.FAST
    assert MathMode.coerce(1) is MathMode.FAST
    assert MathMode.coerce(np.int64(1)) is MathMode.FAST
    assert MathMode.coerce(float("nan")) is MathMode.ACCURATE
    assert MathMode.coerce("bogus") is MathMode.ACCURATE
    assert MathMode.coerce(None) is MathMode.ACCURATE
    assert MathMode.FAST.code == MODE_FAST


def test_clamp_finite():
    assert clamp_finite(float("nan"), 0.0, 1.0, 0.25) == 0.25
    assert clamp_finite(float("inf"), 0.0, 1.0, 0.25) == 0.25
    assert clamp_finite("x", 0.0, 1.0, 0.25) == 0.25
    assert clamp_finite(5.0, 0.0, 1.0, 0.25) == 1.0
    assert clamp_finite(-5, 0.0, 1.0, 0.25) == 0.0
