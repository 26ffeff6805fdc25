import numpy as np
from pytest import approx

from boids import ModelKind, SocialConfig, create


WORLD_SCALE = 0.02


def lite_flock(kind, positions, headings, velocities, **social):
    flock = create(len(positions), seed=0, log=False)
    flock.set_model_kind(kind)
    if social:
        flock.set_social_config(SocialConfig(**social))
    flock.state.positions[:] = positions
    flock.state.headings[:] = headings
    flock.state.velocities[:] = velocities
    return flock


def clustered_flock(kind, n, topological):
    flock = create(n, seed=8, log=False)
    flock.set_model_kind(kind)
    flock.set_social_config(SocialConfig(neighbor_radius=0.5, topological_neighbors=topological,
                                         field_of_view_deg=360.0))
    rng = np.random.default_rng(8)
    flock.state.positions[:, :2] = 0.45 + rng.random((n, 2)) * 0.1
    return flock


def test_lite_neighbor_sampling_is_capped():
    n = 200
    flock = clustered_flock(ModelKind.LITE_SOCIAL, n, topological=30)
    flock.step(1.0 / 120.0)
    assert 0 < flock.neighbors_visited_last_step() <= 12 * n

    flock = clustered_flock(ModelKind.LITE_SOCIAL, n, topological=3)
    flock.step(1.0 / 120.0)
    assert 0 < flock.neighbors_visited_last_step() <= 3 * n


def test_lite_alignment_turns_heading():
    flock = lite_flock(
        ModelKind.LITE_SOCIAL,
        [(0.5, 0.5, 0.5), (0.55, 0.5, 0.5)],
        [(1.0, 0.0, 0.0), (0.0, 1.0, 0.0)],
        [(0.2, 0.0, 0.0), (0.0, 0.2, 0.0)],
        avoid_weight=0.0, align_weight=1.0, cohesion_weight=0.0, boundary_weight=0.0,
    )
    flock.step(1.0 / 120.0)
    heading = flock.state.headings[0]
    assert heading[1] > 0.0
    assert np.linalg.norm(heading) == approx(1.0)
    # Without flight the speed is carried over
    assert np.linalg.norm(flock.state.velocities[0]) == approx(0.2)


def single_flyer(heading, speed):
    h = np.asarray(heading, dtype=np.float64)
    return lite_flock(ModelKind.LITE_SOCIAL_FLIGHT, [(0.5, 0.5, 0.5)], [h], [h * speed * WORLD_SCALE])


def test_lite_flight_accelerates_from_min_speed():
    flock = single_flyer((1.0, 0.0, 0.0), 5.0)
    flock.step(1.0 / 60.0)
    speed = np.linalg.norm(flock.state.velocities[0]) / WORLD_SCALE
    assert speed > 5.0
    assert flock.state.headings[0] == approx((1.0, 0.0, 0.0))


def test_lite_flight_climbing_loses_speed():
    level = single_flyer((1.0, 0.0, 0.0), 10.0)
    climbing = single_flyer((0.0, 1.0, 0.0), 10.0)
    for _ in range(10):
        level.step(1.0 / 60.0)
        climbing.step(1.0 / 60.0)
    level_speed = np.linalg.norm(level.state.velocities[0])
    climb_speed = np.linalg.norm(climbing.state.velocities[0])
    assert climb_speed < 10.0 * WORLD_SCALE < level_speed


def test_lite_models_stay_finite_and_in_band():
    for kind in (ModelKind.LITE_SOCIAL, ModelKind.LITE_SOCIAL_FLIGHT):
        for z_mode in (False, True):
            flock = create(300, seed=12, log=False)
            flock.set_z_mode(z_mode)
            flock.set_model_kind(kind)
            for _ in range(60):
                flock.step(1.0 / 120.0)
            fl = flock.flight_config()
            s = np.linalg.norm(flock.state.velocities, axis=1) / WORLD_SCALE
            assert np.isfinite(flock.state.positions).all()
            assert (s >= fl.min_speed - 1e-6).all()
            assert (s <= fl.max_speed + 1e-6).all()
            if not z_mode:
                assert (flock.state.headings[:, 2] == 0.0).all()
