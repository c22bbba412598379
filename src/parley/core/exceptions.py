"""
Parley exception hierarchy.

All parley exceptions inherit from ParleyError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""


class ParleyError(Exception):
    """Base exception class for all parley errors."""


class ValidationError(ParleyError):
    """Raised for badly shaped arguments (too many buttons, conflicting content, unknown descriptors)."""


class ConfigurationError(ParleyError):
    """Raised for bad bot settings, duplicate bots, or features a bot does not declare."""


class TransportError(ParleyError):
    """Raised by platform adapters when a platform call fails."""


class MiddlewareError(ParleyError):
    """Raised when a registered middleware handler fails.

    The handler's own exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, phase: str, middleware_name: str | None = None):
        super().__init__(message)
        self.phase = phase
        self.middleware_name = middleware_name
