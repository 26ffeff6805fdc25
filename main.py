"""
Boids Simulation
================

A real-time 2D/3D flocking simulation with five interchangeable steering models.

Controls:
    - 1-5: Classic / Social / Social+Flight / Lite social / Lite social+flight
    - M: Toggle accurate / fast math
    - Z: Toggle 3D mode
    - X / Y: Toggle bounce on the X / Y axis
    - B: Toggle bounce on all axes
    - UP / DOWN: Change active agent count
    - ESC: Quit
"""

from core.application import Application


def main():
    app = Application()
    app.run()


if __name__ == "__main__":
    main()
