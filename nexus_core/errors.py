"""
Exception types raised by the simulator.

Numeric instability (non-finite sums or gradients) has no exception type: the
network model recovers from it in place.
"""


class NexusError(Exception):
    """Base class for simulator errors."""


class ConfigError(NexusError, ValueError):
    """Invalid architecture or activation assignment (fewer than 2 layers, a size < 1, ...)."""


class DimensionError(NexusError, ValueError):
    """Input or target vector length does not match the input or output layer."""


class ExternalServiceFailure(NexusError):
    """A collaborator outside the core (the tutoring service) failed."""
