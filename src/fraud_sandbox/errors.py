"""
Exception types raised by the fraud-detection training sandbox.

All of these are raised before any work begins, so a caller that catches
them can assume the session state was left untouched.
"""


class SandboxError(Exception):
    """Base class for sandbox errors."""


class InvalidOperation(SandboxError):
    """Raised when an operation is requested without its prerequisites.

    Examples are training with an empty dataset, training with an empty
    architecture selection, or naming an architecture that does not exist.
    """


class NotReady(InvalidOperation):
    """Raised when inference is attempted before normalization parameters
    are fitted or before a best model has been selected."""


class NotFitted(SandboxError):
    """Raised when data is transformed before normalization parameters exist."""


class ConcurrentRunRejected(SandboxError):
    """Raised when training is started while another run is still active."""


class ConfigurationError(ValueError):
    """Raised when a configuration value is missing, unknown or out of range."""
