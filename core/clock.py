"""Fixed-step pacing for the simulation loop."""

from config import boids as config


class FixedStepClock:
    """
    Converts variable frame times into a bounded number of fixed simulation steps.

    Frame deltas are clamped to max_frame_dt. When a frame would need more
    than max_steps_per_frame steps the remaining backlog is dropped instead of
    carried, so a slow frame never causes a catch-up spiral.
    """

    def __init__(self, fixed_dt: float = config.HOST["fixed_dt"],
                 max_steps_per_frame: int = config.HOST["max_steps_per_frame"],
                 max_frame_dt: float = config.HOST["max_frame_dt"]):
        self.fixed_dt = fixed_dt
        self.max_steps_per_frame = max_steps_per_frame
        self.max_frame_dt = max_frame_dt
        self.accumulator = 0.0
        self.paused = False
        self.dropped_frames = 0

    def advance(self, frame_dt: float) -> int:
        """Add frame_dt seconds and return how many fixed steps to run now."""
        if self.paused:
            return 0
        frame_dt = min(max(frame_dt, 0.0), self.max_frame_dt)
        self.accumulator += frame_dt

        steps = 0
        while self.accumulator >= self.fixed_dt and steps < self.max_steps_per_frame:
            self.accumulator -= self.fixed_dt
            steps += 1

        if steps == self.max_steps_per_frame:
            if self.accumulator >= self.fixed_dt:
                self.dropped_frames += 1
            self.accumulator = 0.0
        return steps

    @property
    def alpha(self) -> float:
        """Fraction of a step left in the accumulator."""
        return self.accumulator / self.fixed_dt

    def reset(self):
        self.accumulator = 0.0

    def pause(self):
        self.paused = True

    def resume(self):
        """Resume after a pause; time spent hidden is never simulated."""
        self.paused = False
        self.reset()
