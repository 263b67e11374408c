"""Exception types raised by the solver."""


class InstanceError(ValueError):
    """Malformed job shop instance (rejected before any model is built)."""


class ConfigError(ValueError):
    """Invalid solver configuration."""


class InvariantViolationError(AssertionError):
    """Internal consistency check failed; indicates a solver bug, not bad input."""
