"""Main application class that ties everything together."""

import pygame
from pygame.locals import *
from OpenGL.GL import *

from config import boids as config
from .clock import FixedStepClock
from .input_handler import InputHandler
from rendering import BoundsFrame, FlockRenderer, TextRenderer
from boids import create


class Application:
    """Viewer that paces the flock at a fixed step and draws its export buffers."""

    def __init__(self, capacity: int = config.HOST["capacity"], seed: int = config.HOST["seed"]):
        pygame.init()
        self.screen_size = (config.WINDOW["width"], config.WINDOW["height"])
        pygame.display.set_mode(self.screen_size, DOUBLEBUF | OPENGL)
        pygame.display.set_caption(config.WINDOW["title"])

        # Simulation
        self.flock = create(capacity, seed, *self.screen_size)
        self.flock.set_active_count(config.HOST["initial_active"])

        # Core components
        self.input_handler = InputHandler(self.flock)
        self.sim_clock = FixedStepClock()

        # Rendering components
        self.frame = BoundsFrame()
        self.renderer = FlockRenderer(capacity)
        self.text_renderer = TextRenderer()

        # State
        self.clock = pygame.time.Clock()
        self.running = True
        self.fps = 0

        self._setup_gl()

    def _setup_gl(self):
        """Initialize OpenGL settings."""
        glClearColor(*config.COLORS["background"])
        glDisable(GL_DEPTH_TEST)

        # Export buffers are normalized, so the view is the unit square
        glMatrixMode(GL_PROJECTION)
        glLoadIdentity()
        glOrtho(0.0, 1.0, 0.0, 1.0, -1.0, 1.0)
        glMatrixMode(GL_MODELVIEW)
        glLoadIdentity()

    def _handle_events(self):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.WINDOWMINIMIZED:
                self.sim_clock.pause()
                print("[App] Paused")
            elif event.type == pygame.WINDOWRESTORED and self.sim_clock.paused:
                self.sim_clock.resume()
                print("[App] Resumed")
            elif not self.input_handler.handle_event(event):
                self.running = False

    def _update(self, dt: float):
        """Run however many fixed steps the frame time allows."""
        steps = self.sim_clock.advance(dt)
        for _ in range(steps):
            self.flock.step(self.sim_clock.fixed_dt)

    def _render(self):
        """Render the scene."""
        glClear(GL_COLOR_BUFFER_BIT)

        self.frame.draw(self.flock.bounce_flags())

        # Views are re-acquired every frame; a grow() would invalidate older ones
        self.renderer.draw(
            self.flock.positions_view(),
            self.flock.heading_view(),
            self.flock.depth_view(),
        )

        # Draw HUD
        flock = self.flock
        bounce = "".join(axis for axis, on in zip("XYZ", flock.bounce_flags()) if on) or "wrap"
        self.text_renderer.draw_lines([
            f"Boids: {flock.active_count():,}/{flock.count():,}  |  FPS: {self.fps:.0f}",
            f"Model: {flock.model_kind().value}  Math: {flock.math_mode().value}  "
            f"3D: {'on' if flock.z_mode_enabled() else 'off'}  Bounce: {bounce}",
            f"Neighbors: {flock.neighbors_visited_last_step():,}  "
            f"Dropped frames: {self.sim_clock.dropped_frames}",
            "Paused" if self.sim_clock.paused else "",
        ], 10, 10, self.screen_size)

        pygame.display.flip()

    def run(self):
        """Main application loop."""
        while self.running:
            dt = self.clock.tick() / 1000.0  # Uncapped FPS
            self.fps = self.clock.get_fps()

            self._handle_events()
            self._update(dt)
            self._render()

        self.renderer.release()
        self.flock.close()
        pygame.quit()
