"""Core application components.

The window and input modules import pygame and OpenGL, so they are imported
from their modules directly (``from core.application import Application``).
"""

from .clock import FixedStepClock

__all__ = ["FixedStepClock"]
