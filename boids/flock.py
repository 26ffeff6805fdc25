"""Flock simulation handle - owns agent state, configs, bounds, spatial index and export buffers."""

import math
import numpy as np

from config import boids as config
from .classic import apply_classic_forces, compute_classic_forces, drift_classic, steering_disabled
from .errors import InvalidCapacityError, SimulationClosedError
from .export import BufferView, RenderExportBuffer
from .integrator import integrate_positions, refresh_headings, resolve_hard_min_distance
from .lite import apply_lite_motion, compute_lite_headings
from .math_strategy import EPSILON, MathMode, clamp_finite
from .params import ClassicConfig, FlightConfig, ModelKind, SocialConfig
from .social import active_centroid, apply_social_motion, compute_social_headings
from .spatial import SpatialIndex
from .state import AgentState


MIN_DT = config.SIM["min_dt"]
MAX_DT = config.SIM["max_dt"]
DEFAULT_Z_LAYER = config.SIM["default_z_layer"]
WORLD_SCALE = config.SIM["flight_world_scale"]
HARD_CONSTRAINT_PASSES = config.SIM["hard_constraint_passes"]
MAX_SHAPE_POINTS = config.SIM["max_shape_points"]


def _validate_capacity(capacity) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, (int, np.integer)):
        raise InvalidCapacityError(f"capacity must be an integer, got {capacity!r}")
    if capacity <= 0:
        raise InvalidCapacityError(f"capacity must be positive, got {capacity}")
    return int(capacity)


# ============================================================================
# FLOCK CLASS
# ============================================================================

class Flock:
    """
    A fixed-capacity flock stepped by one of five steering models.

    All storage is allocated here (and in grow()); step() only writes into
    preallocated arrays. Setters may be called between steps and take effect
    on the next one.
    """

    _warmed = False

    def __init__(self, capacity: int = 1000, seed: int = 0,
                 world_width: float = 1.0, world_height: float = 1.0,
                 log: bool = True):
        capacity = _validate_capacity(capacity)
        self._log = log
        self._closed = False
        self._rng = np.random.default_rng(seed)

        # Bounds
        self.extents = np.ones(3, dtype=np.float64)
        self.bounce = np.zeros(3, dtype=np.bool_)
        self.wrap = np.ones(3, dtype=np.bool_)
        self._world_size = (1.0, 1.0)
        self._apply_bounds(world_width, world_height)
        self._z_enabled = False
        self._z_force_scale = config.SIM["z_force_scale"]

        # Model selection and configuration
        self._model_kind = ModelKind.CLASSIC
        self._math_mode = MathMode.ACCURATE
        self._classic = ClassicConfig().sanitized()
        self._social = SocialConfig().sanitized()
        self._flight = FlightConfig().sanitized()

        # Shape attractor (normalized points, world copy used by kernels)
        self._shape_norm = np.array([[0.5, 0.5, DEFAULT_Z_LAYER]], dtype=np.float64)
        self._shape_points = np.zeros((MAX_SHAPE_POINTS, 3), dtype=np.float64)
        self._num_shape_points = 0
        self._shape_weight = config.SIM["shape_attractor_weight"]
        self._refresh_shape_points()

        # Agent storage, grid and export
        self.state = AgentState(capacity)
        self.state.seed(self._rng, 0, self.extents, self._z_enabled,
                        self._classic.min_speed, self._classic.max_speed, DEFAULT_Z_LAYER)
        self.index = SpatialIndex(capacity)
        self.export = RenderExportBuffer(capacity)

        self.step_index = 0
        self._neighbors_visited = 0
        self._sync()

        if not Flock._warmed:
            Flock._warmed = True
            _warmup_numba()

        if self._log:
            print(f"[Boids] Initialized {self.state.active_count:,} agents (capacity {capacity:,})")

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def count(self) -> int:
        self._check_open()
        return self.state.capacity

    def active_count(self) -> int:
        self._check_open()
        return self.state.active_count

    def neighbors_visited_last_step(self) -> int:
        self._check_open()
        return self._neighbors_visited

    def model_kind(self) -> ModelKind:
        return self._model_kind

    def math_mode(self) -> MathMode:
        return self._math_mode

    def z_mode_enabled(self) -> bool:
        return self._z_enabled

    def z_force_scale(self) -> float:
        self._check_open()
        return self._z_force_scale

    def bounce_flags(self):
        return tuple(bool(b) for b in self.bounce)

    def classic_config(self) -> ClassicConfig:
        return self._classic

    def social_config(self) -> SocialConfig:
        return self._social

    def flight_config(self) -> FlightConfig:
        return self._flight

    def shape_point_count(self) -> int:
        return self._num_shape_points

    def shape_attractor_weight(self) -> float:
        return self._shape_weight

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self, dt: float):
        """Advance active agents by one fixed step of dt seconds (clamped to [0, 0.1])."""
        self._check_open()
        dt = clamp_finite(dt, MIN_DT, MAX_DT, 0.0)
        self._neighbors_visited = 0
        if dt <= 0.0 or self.state.active_count == 0:
            return

        self.step_index += 1
        kind = self._model_kind
        if kind is ModelKind.CLASSIC:
            self._step_classic(dt)
        elif kind is ModelKind.SOCIAL or kind is ModelKind.SOCIAL_FLIGHT:
            self._step_social(dt, kind.uses_flight)
        else:
            self._step_lite(dt, kind.uses_flight)
        self._sync()

    def _configure_index(self, cell_size: float):
        self.index.configure(cell_size, self.extents, self.wrap, self._z_enabled)
        self.index.build(self.state.positions, self.state.active_count)

    def _step_classic(self, dt: float):
        s = self.state
        cfg = self._classic
        mode = self._math_mode.code

        if steering_disabled(cfg, self._shape_weight):
            drift_classic(s.velocities, self._z_enabled, cfg.drag, dt, s.active_count)
        else:
            self._configure_index(cfg.neighbor_radius)
            self._neighbors_visited = int(compute_classic_forces(
                s.positions, s.velocities, s.phases, s.steer,
                self.index.head, self.index.next, self.index.dims, self.index.cell_w,
                self.index.extents, self.index.wrap, self._z_enabled, s.neighbor_scratch,
                self._shape_points, self._num_shape_points, float(self._shape_weight),
                cfg.sep_weight, cfg.align_weight, cfg.coh_weight,
                cfg.neighbor_radius, cfg.separation_radius, cfg.soft_min_distance,
                cfg.max_speed, cfg.max_force, int(cfg.max_neighbors_sampled),
                cfg.jitter_strength, float(self._z_force_scale),
                self.step_index, mode, s.active_count
            ))
            apply_classic_forces(
                s.velocities, s.headings, s.steer, self._z_enabled,
                cfg.min_speed, cfg.max_speed, cfg.drag, dt, mode, s.active_count
            )

        integrate_positions(
            s.positions, s.velocities, s.headings, self.extents, self.bounce,
            self._z_enabled, DEFAULT_Z_LAYER, dt, s.active_count
        )
        refresh_headings(s.velocities, s.headings, s.active_count, mode)
        self._resolve_hard_min_distance(cfg.hard_min_distance)

    def _resolve_hard_min_distance(self, hard_min_distance: float):
        """Run up to HARD_CONSTRAINT_PASSES relaxation passes, stopping once nothing moves."""
        s = self.state
        if hard_min_distance <= EPSILON or s.active_count < 2:
            return
        for _ in range(HARD_CONSTRAINT_PASSES):
            self._configure_index(hard_min_distance)
            corrected = resolve_hard_min_distance(
                s.positions, self.index.head, self.index.next, self.index.dims,
                self.index.cell_w, self.index.extents, self.index.wrap, self._z_enabled,
                float(hard_min_distance), self.step_index, s.neighbor_scratch, s.active_count
            )
            if corrected == 0:
                break

    def _social_inputs(self, dt: float):
        cfg = self._social
        s = self.state
        self._configure_index(cfg.neighbor_radius)
        centroid = active_centroid(
            s.positions, self._z_enabled, DEFAULT_Z_LAYER * self.extents[2], s.active_count
        )
        fov_cos = math.cos(math.radians(cfg.field_of_view_deg) * 0.5)
        return (
            s.positions, s.velocities, s.headings, s.steer,
            self.index.head, self.index.next, self.index.dims, self.index.cell_w,
            self.index.extents, self.index.wrap, self._z_enabled, s.neighbor_scratch,
            cfg.avoid_weight, cfg.align_weight, cfg.cohesion_weight,
            cfg.boundary_weight, int(cfg.boundary_count), cfg.neighbor_radius,
            int(cfg.topological_neighbors), fov_cos, self._flight.reaction_gain(dt),
            centroid[0], centroid[1], centroid[2],
            self._math_mode.code, s.active_count
        )

    def _step_social(self, dt: float, with_flight: bool):
        s = self.state
        fl = self._flight
        self._neighbors_visited = int(compute_social_headings(
            *self._social_inputs(dt), s.nearest_d, s.nearest_j
        ))
        apply_social_motion(
            s.positions, s.velocities, s.headings, s.steer,
            self.extents, self.wrap, self._z_enabled,
            self._shape_points, self._num_shape_points, float(self._shape_weight),
            with_flight, fl.dynamic_stability, fl.mass, fl.wing_area,
            fl.lift_factor, fl.drag_factor, fl.thrust, fl.min_speed, fl.max_speed,
            fl.gravity, fl.air_density, WORLD_SCALE, dt, self._math_mode.code, s.active_count
        )
        integrate_positions(
            s.positions, s.velocities, s.headings, self.extents, self.bounce,
            self._z_enabled, DEFAULT_Z_LAYER, dt, s.active_count
        )

    def _step_lite(self, dt: float, with_flight: bool):
        s = self.state
        fl = self._flight
        self._neighbors_visited = int(compute_lite_headings(*self._social_inputs(dt)))
        apply_lite_motion(
            s.positions, s.velocities, s.headings, s.steer,
            self.extents, self.wrap, self._z_enabled,
            self._shape_points, self._num_shape_points, float(self._shape_weight),
            with_flight, fl.drag_factor, fl.thrust, fl.min_speed, fl.max_speed,
            fl.gravity, WORLD_SCALE, dt, self._math_mode.code, s.active_count
        )
        integrate_positions(
            s.positions, s.velocities, s.headings, self.extents, self.bounce,
            self._z_enabled, DEFAULT_Z_LAYER, dt, s.active_count
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_model_kind(self, kind):
        """Select the steering model. Unknown values fall back to classic."""
        self._check_open()
        kind = ModelKind.coerce(kind)
        if kind is self._model_kind:
            return
        self._model_kind = kind
        self._reseed_velocity_for_model()
        self._sync()

    def set_classic_config(self, cfg):
        self._check_open()
        if isinstance(cfg, dict):
            cfg = ClassicConfig(**cfg)
        self._classic = cfg.sanitized()

    def set_social_config(self, cfg):
        self._check_open()
        if isinstance(cfg, dict):
            cfg = SocialConfig(**cfg)
        self._social = cfg.sanitized()

    def set_flight_config(self, cfg):
        self._check_open()
        if isinstance(cfg, dict):
            cfg = FlightConfig(**cfg)
        self._flight = cfg.sanitized()

    def set_bounds(self, width: float, height: float):
        """Resize the world; agents keep their normalized positions."""
        self._check_open()
        old = self.extents.copy()
        self._apply_bounds(width, height)
        scale = self.extents / old
        self.state.positions[:, :2] *= scale[:2]
        np.minimum(self.state.positions[:, 0], self.extents[0], out=self.state.positions[:, 0])
        np.minimum(self.state.positions[:, 1], self.extents[1], out=self.state.positions[:, 1])
        self._refresh_shape_points()
        self._sync()

    def _apply_bounds(self, width: float, height: float):
        w = clamp_finite(width, 1e-6, 1e12, self._world_size[0])
        h = clamp_finite(height, 1e-6, 1e12, self._world_size[1])
        longest = max(w, h)
        self._world_size = (w, h)
        self.extents[0] = w / longest
        self.extents[1] = h / longest
        self.extents[2] = 1.0

    def world_size(self):
        return self._world_size

    def set_axis_bounce(self, bounce_x: bool, bounce_y: bool, bounce_z: bool):
        """Per-axis boundary policy: True reflects, False wraps."""
        self._check_open()
        self.bounce[0] = bool(bounce_x)
        self.bounce[1] = bool(bounce_y)
        self.bounce[2] = bool(bounce_z)
        np.logical_not(self.bounce, out=self.wrap)

    def set_bounce_bounds(self, enabled: bool):
        self.set_axis_bounce(enabled, enabled, enabled)

    def set_z_mode(self, enabled: bool):
        """Toggle 3D. Enabling scatters depth; disabling pins agents back to the mid layer."""
        self._check_open()
        enabled = bool(enabled)
        if enabled == self._z_enabled:
            return
        self._z_enabled = enabled
        s = self.state
        if enabled:
            s.positions[:, 2] = self._rng.random(s.capacity) * self.extents[2]
        else:
            s.positions[:, 2] = DEFAULT_Z_LAYER * self.extents[2]
            s.velocities[:, 2] = 0.0
            s.headings[:, 2] = 0.0
            norms = np.linalg.norm(s.headings, axis=1)
            flat = norms <= EPSILON
            s.headings[flat] = (1.0, 0.0, 0.0)
            norms[flat] = 1.0
            s.headings /= norms[:, None]
        self._sync()

    def set_z_force_scale(self, scale: float):
        self._check_open()
        lo, hi = config.SIM["z_force_scale_range"]
        self._z_force_scale = clamp_finite(scale, lo, hi, config.SIM["z_force_scale"])

    def set_active_count(self, n: int) -> int:
        """Clamp n into [0, capacity] and make it the simulated and exported count."""
        self._check_open()
        count = self.state.set_active_count(int(clamp_finite(n, 0, self.state.capacity, 0)))
        self._sync()
        return count

    def set_math_mode(self, mode):
        self._check_open()
        self._math_mode = MathMode.coerce(mode)

    def set_shape_points(self, points):
        """Attractor points as normalized xyz triples (flat or (n, 3)); at most 128 are kept."""
        self._check_open()
        flat = np.asarray(points if points is not None else [], dtype=np.float64).ravel()
        usable = min(flat.shape[0], MAX_SHAPE_POINTS * 3)
        usable -= usable % 3
        triples = flat[:usable].reshape(-1, 3)
        if triples.shape[0] == 0:
            self._shape_norm = np.array([[0.5, 0.5, DEFAULT_Z_LAYER]], dtype=np.float64)
        else:
            defaults = np.array([0.5, 0.5, DEFAULT_Z_LAYER])
            triples = np.where(np.isfinite(triples), triples, defaults)
            self._shape_norm = np.clip(triples, 0.0, 1.0)
        self._refresh_shape_points()

    def set_shape_attractor_weight(self, weight: float):
        lo, hi = config.SIM["shape_attractor_range"]
        self._shape_weight = clamp_finite(weight, lo, hi, config.SIM["shape_attractor_weight"])

    def _refresh_shape_points(self):
        n = self._shape_norm.shape[0]
        self._shape_points[:n] = self._shape_norm * self.extents
        self._num_shape_points = n

    def _model_speed_bounds(self):
        if self._model_kind is ModelKind.CLASSIC:
            return self._classic.min_speed, self._classic.max_speed
        return self._flight.speed_bounds(WORLD_SCALE)

    def _reseed_velocity_for_model(self):
        """Pull every agent's speed into the new model's band and align headings with travel."""
        s = self.state
        lo, hi = self._model_speed_bounds()
        if not self._z_enabled:
            s.velocities[:, 2] = 0.0
        speed = np.linalg.norm(s.velocities, axis=1)
        stalled = speed <= EPSILON
        s.velocities[stalled] = s.headings[stalled] * lo
        speed[stalled] = lo
        target = np.clip(speed, lo, hi)
        scale = np.divide(target, speed, out=np.zeros_like(speed), where=speed > EPSILON)
        s.velocities *= scale[:, None]
        moving = np.linalg.norm(s.velocities, axis=1) > EPSILON
        s.headings[moving] = s.velocities[moving] / np.linalg.norm(s.velocities[moving], axis=1)[:, None]

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _sync(self):
        self.export.sync(self.state, self.extents)

    def positions_view(self) -> BufferView:
        """Interleaved normalized xy of active agents. Re-acquire after grow() or close()."""
        self._check_open()
        return self.export.positions_view(self.state.active_count)

    def depth_view(self) -> BufferView:
        self._check_open()
        return self.export.depth_view(self.state.active_count)

    def heading_view(self) -> BufferView:
        self._check_open()
        return self.export.heading_view(self.state.active_count)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def grow(self, capacity: int):
        """Enlarge capacity. Existing agents are kept, new slots seeded; outstanding views go stale."""
        self._check_open()
        capacity = _validate_capacity(capacity)
        old = self.state.capacity
        if capacity < old:
            raise InvalidCapacityError(f"cannot shrink capacity from {old} to {capacity}")
        if capacity == old:
            return
        lo, hi = self._model_speed_bounds()
        self.state.grow(capacity)
        self.state.seed(self._rng, old, self.extents, self._z_enabled, lo, hi, DEFAULT_Z_LAYER)
        self.index.grow(capacity)
        self.export.grow(capacity)
        self._sync()
        if self._log:
            print(f"[Boids] Grew capacity {old:,} -> {capacity:,}")

    def close(self):
        """Release all buffers. Further calls raise SimulationClosedError."""
        if self._closed:
            return
        self._closed = True
        self.export.release()
        self.state = None
        self.index = None
        if self._log:
            print("[Boids] Closed")

    def _check_open(self):
        if self._closed:
            raise SimulationClosedError("flock is closed")


def create(capacity: int, seed: int = 0, world_width: float = 1.0, world_height: float = 1.0,
           log: bool = True) -> Flock:
    """Construct a Flock. Raises InvalidCapacityError when capacity is not a positive integer."""
    return Flock(capacity=capacity, seed=seed, world_width=world_width,
                 world_height=world_height, log=log)


def _warmup_numba():
    """Pre-compile every kernel on a tiny flock so the first real frame doesn't stall."""
    flock = Flock(capacity=16, seed=0, log=False)
    flock.set_classic_config(ClassicConfig(hard_min_distance=0.05))
    flock.set_shape_attractor_weight(0.1)
    flock.step(0.01)
    flock.set_classic_config(ClassicConfig(sep_weight=0.0, align_weight=0.0, coh_weight=0.0,
                                           jitter_strength=0.0))
    flock.set_shape_attractor_weight(0.0)
    flock.step(0.01)
    for kind in ModelKind:
        flock.set_model_kind(kind)
        flock.step(0.01)
    flock.close()
