import dataclasses
import math

import numpy as np
import pytest
from pytest import approx

from boids import ClassicConfig, FlightConfig, ModelKind, SocialConfig
from config import boids as config


def test_defaults_come_from_config():
    cfg = ClassicConfig()
    assert cfg.sep_weight == config.CLASSIC["sep_weight"]
    assert cfg.max_neighbors_sampled == 0
    assert SocialConfig().topological_neighbors == config.SOCIAL["topological_neighbors"]
    assert FlightConfig().mass == config.FLIGHT["mass"]


def test_defaults_are_already_sanitized():
    assert ClassicConfig().sanitized() == ClassicConfig()
    assert SocialConfig().sanitized() == SocialConfig()
    assert FlightConfig().sanitized() == FlightConfig()


def test_classic_out_of_range_values_are_clamped():
    cfg = ClassicConfig(sep_weight=-3.0, align_weight=99.0, drag=100.0, jitter_strength=5.0).sanitized()
    assert cfg.sep_weight == 0.0
    assert cfg.align_weight == 10.0
    assert cfg.drag == 6.0
    assert cfg.jitter_strength == 1.0


def test_non_finite_values_fall_back_to_defaults():
    cfg = ClassicConfig(coh_weight=math.nan, max_force=math.inf).sanitized()
    assert cfg.coh_weight == config.CLASSIC["coh_weight"]
    assert cfg.max_force == config.CLASSIC["max_force"]
    flight = FlightConfig(mass=math.nan).sanitized()
    assert flight.mass == config.FLIGHT["mass"]


def test_separation_radius_never_exceeds_neighbor_radius():
    cfg = ClassicConfig(neighbor_radius=0.05, separation_radius=0.2).sanitized()
    assert cfg.separation_radius == approx(0.05)


def test_classic_min_speed_above_max_pulls_max_up():
    cfg = ClassicConfig(min_speed=0.5, max_speed=0.1).sanitized()
    assert cfg.max_speed == approx(0.5)
    assert cfg.min_speed <= cfg.max_speed


def test_flight_min_speed_above_max_pulls_max_up():
    cfg = FlightConfig(min_speed=30.0, max_speed=10.0).sanitized()
    assert cfg.max_speed == approx(30.0)
    assert cfg.min_speed == approx(30.0)


def test_social_integer_fields_stay_integers():
    cfg = SocialConfig(topological_neighbors=500, boundary_count=12.7).sanitized()
    assert cfg.topological_neighbors == 64
    assert isinstance(cfg.topological_neighbors, int)
    assert cfg.boundary_count == 12


def test_field_of_view_is_clamped():
    assert SocialConfig(field_of_view_deg=10.0).sanitized().field_of_view_deg == 30.0
    assert SocialConfig(field_of_view_deg=720.0).sanitized().field_of_view_deg == 360.0


def test_configs_are_frozen():
    cfg = ClassicConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.sep_weight = 2.0


def test_reaction_gain_and_speed_bounds():
    flight = FlightConfig(reaction_time_ms=250.0, min_speed=5.0, max_speed=18.0)
    assert flight.reaction_gain(1.0 / 120.0) == approx(1000.0 / 120.0 / 250.0)
    assert flight.reaction_gain(1.0) == 1.0
    assert flight.reaction_gain(0.0) == 0.0
    assert flight.speed_bounds(0.02) == approx((0.1, 0.36))


@pytest.mark.parametrize("value,expected", [
    (ModelKind.SOCIAL, ModelKind.SOCIAL),
    ("social", ModelKind.SOCIAL),
    ("Social+Flight", ModelKind.SOCIAL_FLIGHT),
    ("lite-social", ModelKind.LITE_SOCIAL),
    (4, ModelKind.LITE_SOCIAL_FLIGHT),
    (np.int64(2), ModelKind.SOCIAL_FLIGHT),
    (np.uint8(1), ModelKind.SOCIAL),
    ("boids2000", ModelKind.CLASSIC),
    (17, ModelKind.CLASSIC),
    (None, ModelKind.CLASSIC),
])
def test_model_kind_coerce(value, expected):
    assert ModelKind.coerce(value) is expected


def test_model_kind_properties():
    assert [k.code for k in ModelKind] == [0, 1, 2, 3, 4]
    assert ModelKind.SOCIAL_FLIGHT.uses_flight
    assert ModelKind.LITE_SOCIAL_FLIGHT.uses_flight
    assert not ModelKind.SOCIAL.uses_flight
    assert not ModelKind.CLASSIC.is_social
    assert ModelKind.LITE_SOCIAL.is_social
