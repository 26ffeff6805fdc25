"""Keyboard input for switching models and toggling simulation options."""

import pygame
from pygame.locals import *
from config import boids as config

from boids import Flock, MathMode, ModelKind


MODEL_KEYS = {
    K_1: ModelKind.CLASSIC,
    K_2: ModelKind.SOCIAL,
    K_3: ModelKind.SOCIAL_FLIGHT,
    K_4: ModelKind.LITE_SOCIAL,
    K_5: ModelKind.LITE_SOCIAL_FLIGHT,
}


class InputHandler:
    """Maps key presses onto Flock setters."""

    def __init__(self, flock: Flock):
        self.flock = flock
        self.active_step = config.HOST["active_step"]

    def handle_event(self, event: pygame.event.Event) -> bool:
        """
        Handle a single pygame event.
        Returns False if the application should quit, True otherwise.
        """
        if event.type == QUIT:
            return False
        if event.type != KEYDOWN:
            return True

        flock = self.flock
        if event.key == K_ESCAPE:
            return False
        elif event.key in MODEL_KEYS:
            flock.set_model_kind(MODEL_KEYS[event.key])
        elif event.key == K_m:
            fast = flock.math_mode() is MathMode.ACCURATE
            flock.set_math_mode(MathMode.FAST if fast else MathMode.ACCURATE)
        elif event.key == K_z:
            flock.set_z_mode(not flock.z_mode_enabled())
        elif event.key in (K_x, K_y):
            bx, by, bz = flock.bounce_flags()
            if event.key == K_x:
                bx = not bx
            else:
                by = not by
            flock.set_axis_bounce(bx, by, bz)
        elif event.key == K_b:
            flock.set_bounce_bounds(not all(flock.bounce_flags()))
        elif event.key == K_UP:
            flock.set_active_count(flock.active_count() + self.active_step)
        elif event.key == K_DOWN:
            flock.set_active_count(flock.active_count() - self.active_step)

        return True
