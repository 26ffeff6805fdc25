"""World bounds outline for spatial reference."""

from OpenGL.GL import *
from config import boids as config


class BoundsFrame:
    """Draws the unit-square world outline; bouncing edges are drawn brighter than wrapping ones."""

    def __init__(self):
        self.color = config.COLORS["frame"]
        self.wall_color = tuple(min(1.0, c * 2.5) for c in self.color)

    def draw(self, bounce_flags=(False, False, False)):
        """
        Draw the frame.

        Args:
            bounce_flags: (x, y, z) boundary policies from Flock.bounce_flags()
        """
        bounce_x, bounce_y, _ = bounce_flags

        glLineWidth(1.0)
        glBegin(GL_LINES)

        # Left / right edges close the X axis
        glColor3f(*(self.wall_color if bounce_x else self.color))
        glVertex2f(0.0, 0.0); glVertex2f(0.0, 1.0)
        glVertex2f(1.0, 0.0); glVertex2f(1.0, 1.0)

        # Bottom / top edges close the Y axis
        glColor3f(*(self.wall_color if bounce_y else self.color))
        glVertex2f(0.0, 0.0); glVertex2f(1.0, 0.0)
        glVertex2f(0.0, 1.0); glVertex2f(1.0, 1.0)

        glEnd()
