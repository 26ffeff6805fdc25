"""Structure-of-arrays agent storage with fixed capacity and a mutable active count."""

import numpy as np

from config import boids as config


MAX_TOPOLOGICAL = config.SIM["max_topological"]


class AgentState:
    """
    Per-agent arrays indexed 0..capacity-1.

    Only slots [0, active_count) are simulated; the rest keep their last
    (finite) values and come back unchanged when the active count grows.

    Attributes:
        positions: (capacity, 3) world-space positions
        velocities: (capacity, 3) world units per second
        headings: (capacity, 3) unit forward vectors
        phases: (capacity,) per-agent seed used by the jitter hash
        steer: (capacity, 3) force scratch written by the classic model
        neighbor_scratch: (capacity,) neighbor index buffer for grid queries
        nearest_d, nearest_j: k-nearest distance and index buffers for the social model
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.active_count = capacity

        self.positions = np.zeros((capacity, 3), dtype=np.float64)
        self.velocities = np.zeros((capacity, 3), dtype=np.float64)
        self.headings = np.zeros((capacity, 3), dtype=np.float64)
        self.headings[:, 0] = 1.0
        self.phases = np.zeros(capacity, dtype=np.float64)

        self.steer = np.zeros((capacity, 3), dtype=np.float64)
        self.neighbor_scratch = np.zeros(capacity, dtype=np.int32)
        self.nearest_d = np.zeros(MAX_TOPOLOGICAL, dtype=np.float64)
        self.nearest_j = np.zeros(MAX_TOPOLOGICAL, dtype=np.int64)

    def set_active_count(self, count: int) -> int:
        self.active_count = max(0, min(int(count), self.capacity))
        return self.active_count

    def seed(self, rng: np.random.Generator, start: int, extents, z_enabled: bool,
             min_speed: float, max_speed: float, z_layer: float):
        """Scatter slots [start, capacity) uniformly in the world with random headings."""
        n = self.capacity - start
        if n <= 0:
            return
        ex, ey, ez = extents
        self.positions[start:, 0] = rng.random(n) * ex
        self.positions[start:, 1] = rng.random(n) * ey
        if z_enabled:
            self.positions[start:, 2] = rng.random(n) * ez
        else:
            self.positions[start:, 2] = z_layer * ez

        theta = rng.random(n) * 2.0 * np.pi
        if z_enabled:
            dz = rng.random(n) * 2.0 - 1.0
        else:
            dz = np.zeros(n)
        ring = np.sqrt(np.maximum(1.0 - dz * dz, 0.0))
        self.headings[start:, 0] = np.cos(theta) * ring
        self.headings[start:, 1] = np.sin(theta) * ring
        self.headings[start:, 2] = dz

        speed = min_speed + rng.random(n) * (max_speed - min_speed)
        self.velocities[start:] = self.headings[start:] * speed[:, None]
        self.phases[start:] = rng.random(n) * 1000.0

    def grow(self, capacity: int):
        """Reallocate to a larger capacity, keeping existing slots."""
        old = self.capacity
        for name in ("positions", "velocities", "headings", "steer"):
            arr = getattr(self, name)
            grown = np.zeros((capacity, 3), dtype=np.float64)
            grown[:old] = arr
            setattr(self, name, grown)
        self.headings[old:, 0] = 1.0
        phases = np.zeros(capacity, dtype=np.float64)
        phases[:old] = self.phases
        self.phases = phases
        self.neighbor_scratch = np.zeros(capacity, dtype=np.int32)
        self.capacity = capacity
