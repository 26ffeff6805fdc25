"""Configuration for the boids flocking engine and its viewer."""

WINDOW = {
    "width": 1280,
    "height": 720,
    "title": "Boids"
}

HOST = {
    "fixed_dt": 1.0 / 120.0,
    "max_steps_per_frame": 4,
    "max_frame_dt": 0.05,      # Clamp on wall-clock frame delta
    "capacity": 5000,
    "initial_active": 2000,
    "active_step": 250,        # UP/DOWN increment
    "seed": 42,
}

SIM = {
    "epsilon": 1e-6,
    "min_dt": 0.0,
    "max_dt": 0.1,
    "default_z_layer": 0.5,    # Fraction of depth extent when 3D is off
    "z_force_scale": 0.75,
    "z_force_scale_range": (0.0, 2.0),
    "flight_world_scale": 0.02,  # m/s -> world units/s
    "max_grid_cells": 262144,
    "max_axis_cells_2d": 512,
    "max_axis_cells_3d": 64,
    "hard_constraint_passes": 3,
    "hard_relaxation": 0.05,
    "hard_max_push": 0.0025,
    "lite_max_neighbors": 12,
    "lite_drag_scale": 0.01,
    "lite_climb_scale": 0.02,
    "max_topological": 64,
    "max_shape_points": 128,
    "shape_attractor_weight": 0.0,
    "shape_attractor_range": (0.0, 5.0),
}

# Classic separation / alignment / cohesion
CLASSIC = {
    "sep_weight": 1.45,
    "align_weight": 1.0,
    "coh_weight": 0.85,
    "neighbor_radius": 0.08,
    "separation_radius": 0.035,
    "min_speed": 0.045,
    "max_speed": 0.19,
    "max_force": 0.42,
    "max_neighbors_sampled": 0,    # 0 = unbounded
    "soft_min_distance": 0.008,
    "hard_min_distance": 0.0,
    "jitter_strength": 0.01,
    "drag": 0.0,
}

CLASSIC_RANGES = {
    "sep_weight": (0.0, 10.0),
    "align_weight": (0.0, 10.0),
    "coh_weight": (0.0, 10.0),
    "neighbor_radius": (0.001, 0.5),
    "separation_radius": (0.0005, 0.5),   # Also capped at neighbor_radius
    "min_speed": (0.0, 3.0),
    "max_speed": (0.001, 3.0),            # Also floored at min_speed
    "max_force": (0.0, 5.0),
    "max_neighbors_sampled": (0, 4096),
    "soft_min_distance": (0.0, 1.0),
    "hard_min_distance": (0.0, 1.0),
    "jitter_strength": (0.0, 1.0),
    "drag": (0.0, 6.0),
}

# Orientation-based social steering
SOCIAL = {
    "avoid_weight": 0.02,
    "align_weight": 0.60,
    "cohesion_weight": 0.004,
    "boundary_weight": 0.10,
    "boundary_count": 20,
    "neighbor_radius": 0.10,
    "topological_neighbors": 7,
    "field_of_view_deg": 290.0,
}

SOCIAL_RANGES = {
    "avoid_weight": (0.0, 2.0),
    "align_weight": (0.0, 2.0),
    "cohesion_weight": (0.0, 2.0),
    "boundary_weight": (0.0, 2.0),
    "boundary_count": (0, 256),
    "neighbor_radius": (0.001, 0.5),
    "topological_neighbors": (1, 64),
    "field_of_view_deg": (30.0, 360.0),
}

# Aerodynamic flight (SI units, scaled into world units by SIM["flight_world_scale"])
FLIGHT = {
    "reaction_time_ms": 250.0,
    "dynamic_stability": 0.7,
    "mass": 0.08,
    "wing_area": 0.0224,
    "lift_factor": 0.5714,
    "drag_factor": 0.1731,
    "thrust": 0.2373,
    "min_speed": 5.0,
    "max_speed": 18.0,
    "gravity": 9.8,
    "air_density": 1.225,
}

FLIGHT_RANGES = {
    "reaction_time_ms": (25.0, 2000.0),
    "dynamic_stability": (0.0, 1.0),
    "mass": (0.01, 5.0),
    "wing_area": (0.0005, 1.0),
    "lift_factor": (0.0, 2.0),
    "drag_factor": (0.0, 2.0),
    "thrust": (0.0, 20.0),
    "min_speed": (0.0, 200.0),
    "max_speed": (0.1, 250.0),     # Also floored at min_speed
    "gravity": (0.0, 30.0),
    "air_density": (0.1, 3.0),
}

COLORS = {
    "background": (0.01, 0.01, 0.02, 1.0),
    "frame": (0.2, 0.2, 0.25),
    "boid": (0.55, 0.85, 1.0),
    "text": (0.9, 0.9, 0.9)
}

RENDER = {
    "point_size": 2.0,
    "heading_length": 0.006,   # Normalized units
}
