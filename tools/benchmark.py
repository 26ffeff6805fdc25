#!/usr/bin/env python3
"""
Headless flock benchmark
========================

Steps every model kind at a fixed dt without a window and reports per-step
cost, neighbor work and whether the state stayed finite.

Usage:
    python -m tools.benchmark                         # All models, 2000 agents
    python -m tools.benchmark -n 5k --steps 600
    python -m tools.benchmark --model social_flight --math fast --z
"""

import argparse
import time

import numpy as np

from config import boids as config
from boids import MathMode, ModelKind, create


def parse_number(value: str) -> int:
    """Parse number with optional suffix (k, m, K, M)."""
    value = value.strip().lower()
    multipliers = {'k': 1_000, 'm': 1_000_000}

    for suffix, mult in multipliers.items():
        if value.endswith(suffix):
            return int(float(value[:-1]) * mult)

    return int(value)


def state_is_finite(flock) -> bool:
    s = flock.state
    n = s.active_count
    return bool(
        np.isfinite(s.positions[:n]).all()
        and np.isfinite(s.velocities[:n]).all()
        and np.isfinite(s.headings[:n]).all()
    )


def run_model(kind: ModelKind, agents: int, steps: int, dt: float, seed: int,
              math_mode: MathMode, z_mode: bool, bounce: bool) -> dict:
    """Step one model and collect timing and neighbor statistics."""
    flock = create(agents, seed, log=False)
    flock.set_model_kind(kind)
    flock.set_math_mode(math_mode)
    flock.set_z_mode(z_mode)
    flock.set_bounce_bounds(bounce)

    # First step includes any remaining JIT compilation
    flock.step(dt)

    neighbors = 0
    start = time.perf_counter()
    for _ in range(steps):
        flock.step(dt)
        neighbors += flock.neighbors_visited_last_step()
    elapsed = time.perf_counter() - start

    result = {
        "model": kind.value,
        "ms_per_step": elapsed * 1000.0 / max(steps, 1),
        "neighbors_per_agent": neighbors / max(steps * agents, 1),
        "finite": state_is_finite(flock),
    }
    flock.close()
    return result


def main():
    parser = argparse.ArgumentParser(description="Headless boids benchmark")
    parser.add_argument("--agents", "-n", type=str, default="2000", help="Active agents (e.g., 2000, 5k)")
    parser.add_argument("--steps", "-s", type=int, default=300, help="Timed steps per model")
    parser.add_argument("--dt", type=float, default=config.HOST["fixed_dt"], help="Fixed step in seconds")
    parser.add_argument("--seed", type=int, default=config.HOST["seed"])
    parser.add_argument("--model", "-m", type=str, default="all",
                        help="Model kind (classic, social, social_flight, lite_social, lite_social_flight) or 'all'")
    parser.add_argument("--math", choices=[m.value for m in MathMode], default=MathMode.ACCURATE.value)
    parser.add_argument("--z", action="store_true", help="Enable 3D mode")
    parser.add_argument("--bounce", action="store_true", help="Bounce on all axes instead of wrapping")
    args = parser.parse_args()

    agents = parse_number(args.agents)
    if agents <= 0:
        print("[Bench] Error: --agents must be positive")
        return
    kinds = list(ModelKind) if args.model == "all" else [ModelKind.coerce(args.model)]
    math_mode = MathMode.coerce(args.math)

    print(f"[Bench] Agents: {agents:,}, steps: {args.steps}, dt={args.dt:.5f}, "
          f"math={math_mode.value}, 3D={'on' if args.z else 'off'}, bounce={'on' if args.bounce else 'off'}")

    failed = False
    for kind in kinds:
        r = run_model(kind, agents, args.steps, args.dt, args.seed, math_mode, args.z, args.bounce)
        status = "ok" if r["finite"] else "NON-FINITE"
        failed = failed or not r["finite"]
        print(f"[Bench] {r['model']:<20} {r['ms_per_step']:8.3f} ms/step  "
              f"{r['neighbors_per_agent']:7.2f} neighbors/agent  {status}")

    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
