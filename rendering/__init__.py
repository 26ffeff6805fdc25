"""Rendering components for the boids viewer."""

from .flock_renderer import FlockRenderer
from .frame import BoundsFrame
from .text import TextRenderer

__all__ = ["FlockRenderer", "BoundsFrame", "TextRenderer"]
