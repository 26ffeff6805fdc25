#!/usr/bin/env python3
"""
Convenience entry point for the headless benchmark.

Usage:
    python bench.py                        # All models, 2000 agents
    python bench.py -n 5k --steps 600      # Larger flock, longer run
    python bench.py --model lite_social    # Single model
"""

from tools.benchmark import main

if __name__ == "__main__":
    main()
