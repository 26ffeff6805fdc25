"""Model selection and per-model configuration values.

Every config is a frozen dataclass seeded from ``config/boids.py``. Hosts build
a new value and hand it to the matching ``Flock.set_*_config`` call, which
stores the ``sanitized()`` copy. Out-of-range numbers are clamped and
non-finite ones fall back to the default; nothing here raises.
"""

from dataclasses import dataclass, fields, replace
from enum import Enum
from numbers import Integral

from config import boids as config
from .math_strategy import clamp_finite


class ModelKind(Enum):
    """Steering model used by Flock.step."""
    CLASSIC = "classic"
    SOCIAL = "social"
    SOCIAL_FLIGHT = "social_flight"
    LITE_SOCIAL = "lite_social"
    LITE_SOCIAL_FLIGHT = "lite_social_flight"

    @property
    def code(self) -> int:
        return _KIND_ORDER.index(self)

    @property
    def uses_flight(self) -> bool:
        return self in (ModelKind.SOCIAL_FLIGHT, ModelKind.LITE_SOCIAL_FLIGHT)

    @property
    def is_social(self) -> bool:
        return self is not ModelKind.CLASSIC

    @classmethod
    def coerce(cls, value) -> "ModelKind":
        """Accept a ModelKind, its string value or its integer code. Unknown values map to CLASSIC."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_").replace("+", "_").replace(" ", "_")
            for kind in cls:
                if kind.value == key:
                    return kind
            return cls.CLASSIC
        if isinstance(value, Integral) and not isinstance(value, bool):
            if 0 <= value < len(_KIND_ORDER):
                return _KIND_ORDER[int(value)]
        return cls.CLASSIC


_KIND_ORDER = (
    ModelKind.CLASSIC,
    ModelKind.SOCIAL,
    ModelKind.SOCIAL_FLIGHT,
    ModelKind.LITE_SOCIAL,
    ModelKind.LITE_SOCIAL_FLIGHT,
)


def _clamp_fields(cfg, defaults: dict, ranges: dict) -> dict:
    """Clamp every dataclass field into its configured range."""
    out = {}
    for f in fields(cfg):
        lo, hi = ranges[f.name]
        value = clamp_finite(getattr(cfg, f.name), lo, hi, defaults[f.name])
        if isinstance(defaults[f.name], int):
            value = int(value)
        out[f.name] = value
    return out


@dataclass(frozen=True)
class ClassicConfig:
    """Separation / alignment / cohesion weights, radii and speed limits (world units)."""
    sep_weight: float = config.CLASSIC["sep_weight"]
    align_weight: float = config.CLASSIC["align_weight"]
    coh_weight: float = config.CLASSIC["coh_weight"]
    neighbor_radius: float = config.CLASSIC["neighbor_radius"]
    separation_radius: float = config.CLASSIC["separation_radius"]
    min_speed: float = config.CLASSIC["min_speed"]
    max_speed: float = config.CLASSIC["max_speed"]
    max_force: float = config.CLASSIC["max_force"]
    max_neighbors_sampled: int = config.CLASSIC["max_neighbors_sampled"]
    soft_min_distance: float = config.CLASSIC["soft_min_distance"]
    hard_min_distance: float = config.CLASSIC["hard_min_distance"]
    jitter_strength: float = config.CLASSIC["jitter_strength"]
    drag: float = config.CLASSIC["drag"]

    def sanitized(self) -> "ClassicConfig":
        values = _clamp_fields(self, config.CLASSIC, config.CLASSIC_RANGES)
        # Separation never reaches beyond the neighbor query
        values["separation_radius"] = min(values["separation_radius"], values["neighbor_radius"])
        max_lo = max(values["min_speed"], config.CLASSIC_RANGES["max_speed"][0])
        values["max_speed"] = min(max(values["max_speed"], max_lo), config.CLASSIC_RANGES["max_speed"][1])
        values["min_speed"] = min(values["min_speed"], values["max_speed"])
        return replace(self, **values)


@dataclass(frozen=True)
class SocialConfig:
    """Orientation-target weights and neighbor selection for the social models."""
    avoid_weight: float = config.SOCIAL["avoid_weight"]
    align_weight: float = config.SOCIAL["align_weight"]
    cohesion_weight: float = config.SOCIAL["cohesion_weight"]
    boundary_weight: float = config.SOCIAL["boundary_weight"]
    boundary_count: int = config.SOCIAL["boundary_count"]
    neighbor_radius: float = config.SOCIAL["neighbor_radius"]
    topological_neighbors: int = config.SOCIAL["topological_neighbors"]
    field_of_view_deg: float = config.SOCIAL["field_of_view_deg"]

    def sanitized(self) -> "SocialConfig":
        return replace(self, **_clamp_fields(self, config.SOCIAL, config.SOCIAL_RANGES))


@dataclass(frozen=True)
class FlightConfig:
    """Reaction, aerodynamic and speed parameters in SI units (m, kg, s)."""
    reaction_time_ms: float = config.FLIGHT["reaction_time_ms"]
    dynamic_stability: float = config.FLIGHT["dynamic_stability"]
    mass: float = config.FLIGHT["mass"]
    wing_area: float = config.FLIGHT["wing_area"]
    lift_factor: float = config.FLIGHT["lift_factor"]
    drag_factor: float = config.FLIGHT["drag_factor"]
    thrust: float = config.FLIGHT["thrust"]
    min_speed: float = config.FLIGHT["min_speed"]
    max_speed: float = config.FLIGHT["max_speed"]
    gravity: float = config.FLIGHT["gravity"]
    air_density: float = config.FLIGHT["air_density"]

    def sanitized(self) -> "FlightConfig":
        values = _clamp_fields(self, config.FLIGHT, config.FLIGHT_RANGES)
        # min > max pulls max up to min
        max_lo = max(values["min_speed"], config.FLIGHT_RANGES["max_speed"][0])
        values["max_speed"] = min(max(values["max_speed"], max_lo), config.FLIGHT_RANGES["max_speed"][1])
        values["min_speed"] = min(values["min_speed"], values["max_speed"])
        return replace(self, **values)

    def speed_bounds(self, world_scale: float):
        """(min, max) speed converted into world units per second."""
        return self.min_speed * world_scale, self.max_speed * world_scale

    def reaction_gain(self, dt: float) -> float:
        """Fraction of the proposed turn applied in one step of length dt."""
        return min(max(dt * 1000.0 / self.reaction_time_ms, 0.0), 1.0)
