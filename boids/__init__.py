"""Boids flocking engine: spatial grid, steering models and render export."""

from .errors import BoidsError, InvalidCapacityError, SimulationClosedError, StaleViewError
from .export import BufferView
from .flock import Flock, create
from .math_strategy import MathMode
from .params import ClassicConfig, FlightConfig, ModelKind, SocialConfig
from .spatial import SpatialIndex

__all__ = [
    "Flock", "create", "ModelKind", "MathMode",
    "ClassicConfig", "SocialConfig", "FlightConfig",
    "SpatialIndex", "BufferView",
    "BoidsError", "InvalidCapacityError", "SimulationClosedError", "StaleViewError",
]
