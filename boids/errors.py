"""Exceptions raised by the flocking engine.

Runtime configuration is sanitized, never rejected; these cover the few
calls that cannot be repaired by clamping.
"""


class BoidsError(Exception):
    """Base class for engine errors."""


class InvalidCapacityError(BoidsError, ValueError):
    """Capacity is not a positive integer, or a grow would shrink storage."""


class SimulationClosedError(BoidsError, RuntimeError):
    """The flock was closed and its buffers released."""


class StaleViewError(BoidsError, RuntimeError):
    """An export view was read after the buffers it borrows were reallocated or released."""
