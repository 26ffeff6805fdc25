import numpy as np
from pytest import approx

from boids import ClassicConfig, create
from boids.integrator import integrate_axis, integrate_positions, wrap_position


STILL = ClassicConfig(sep_weight=0.0, align_weight=0.0, coh_weight=0.0,
                      jitter_strength=0.0, min_speed=0.0)


def single_agent(position, velocity, bounce=False):
    flock = create(1, seed=0, log=False)
    flock.set_classic_config(STILL)
    flock.set_bounce_bounds(bounce)
    flock.state.positions[0] = position
    flock.state.velocities[0] = velocity
    return flock


def test_integrate_axis_wraps():
    p, v = integrate_axis(1.0 - 1e-4, 0.1, 0.01, 1.0, False)
    assert p == approx(0.0009)
    assert v == approx(0.1)


def test_integrate_axis_bounces():
    p, v = integrate_axis(1.0 - 1e-4, 0.1, 0.01, 1.0, True)
    assert p == approx(0.9991)
    assert v == approx(-0.1)

    p, v = integrate_axis(0.0005, -0.1, 0.01, 1.0, True)
    assert p == approx(0.0005)
    assert v == approx(0.1)


def test_integrate_axis_clamps_after_repeated_reflections():
    p, v = integrate_axis(0.5, 1000.0, 0.1, 1.0, True)
    assert 0.0 <= p <= 1.0


def test_wrap_position_stays_in_half_open_range():
    assert wrap_position(1.0, 1.0) == 0.0
    assert wrap_position(-0.25, 1.0) == approx(0.75)
    assert 0.0 <= wrap_position(-1e-18, 1.0) < 1.0


def test_flock_wraps_across_right_edge():
    flock = single_agent((1.0 - 1e-4, 0.5, 0.5), (0.1, 0.0, 0.0))
    flock.step(0.01)
    assert flock.state.positions[0, 0] == approx(0.0009)
    assert flock.state.velocities[0, 0] == approx(0.1)


def test_flock_bounces_off_right_edge():
    flock = single_agent((1.0 - 1e-4, 0.5, 0.5), (0.1, 0.0, 0.0), bounce=True)
    flock.step(0.01)
    assert flock.state.positions[0, 0] == approx(0.9991)
    assert flock.state.velocities[0, 0] == approx(-0.1)
    assert flock.state.headings[0, 0] == approx(-1.0)


def test_per_axis_bounce_policy():
    flock = single_agent((1.0 - 1e-4, 1.0 - 1e-4, 0.5), (0.1, 0.1, 0.0))
    flock.set_axis_bounce(True, False, False)
    flock.step(0.01)
    assert flock.state.positions[0, 0] == approx(0.9991)
    assert flock.state.positions[0, 1] == approx(0.0009)
    assert flock.bounce_flags() == (True, False, False)


def test_z_pinned_to_mid_layer_when_3d_is_off():
    flock = single_agent((0.5, 0.5, 0.9), (0.05, 0.0, 0.3))
    flock.step(0.01)
    assert flock.state.positions[0, 2] == approx(0.5)
    assert flock.state.velocities[0, 2] == 0.0


def test_integrate_positions_flips_heading_on_bounce():
    positions = np.array([[0.999, 0.001, 0.5]])
    velocities = np.array([[0.2, -0.2, 0.0]])
    headings = np.array([[0.6, -0.8, 0.0]])
    extents = np.ones(3)
    bounce = np.ones(3, dtype=np.bool_)
    integrate_positions(positions, velocities, headings, extents, bounce, False, 0.5, 0.01, 1)
    assert headings[0] == approx((-0.6, 0.8, 0.0))
    assert velocities[0] == approx((-0.2, 0.2, 0.0))


def test_hard_min_distance_separates_close_pairs():
    flock = create(2, seed=0, log=False)
    flock.set_classic_config(ClassicConfig(sep_weight=0.0, align_weight=0.0, coh_weight=0.0,
                                           jitter_strength=0.0, min_speed=0.0,
                                           hard_min_distance=0.02))
    flock.state.positions[0] = (0.5, 0.5, 0.5)
    flock.state.positions[1] = (0.505, 0.5, 0.5)
    flock.state.velocities[:] = 0.0

    before = 0.005
    flock.step(0.01)
    after = np.linalg.norm(flock.state.positions[1] - flock.state.positions[0])
    assert after > before
    # Symmetric push keeps the midpoint
    assert flock.state.positions[:, 0].mean() == approx(0.5025)


def test_hard_min_distance_splits_coincident_pairs():
    flock = create(2, seed=0, log=False)
    flock.set_classic_config(ClassicConfig(sep_weight=0.0, align_weight=0.0, coh_weight=0.0,
                                           jitter_strength=0.0, min_speed=0.0,
                                           hard_min_distance=0.02))
    flock.state.positions[0] = (0.3, 0.3, 0.5)
    flock.state.positions[1] = (0.3, 0.3, 0.5)
    flock.state.velocities[:] = 0.0

    flock.step(0.01)
    after = np.linalg.norm(flock.state.positions[1] - flock.state.positions[0])
    assert after > 0.0
    assert np.isfinite(flock.state.positions).all()
