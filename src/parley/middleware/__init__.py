"""Incoming/outgoing middleware registry and runner."""

from .registry import (
    CANCEL,
    SKIP,
    Middleware,
    MiddlewareContext,
    MiddlewareRegistry,
    Phase,
    get_registry,
    reset_registry,
)
from .runner import INCOMING_MIDDLEWARE_MARKER, run_incoming_middleware, run_outgoing_middleware

__all__ = [
    "CANCEL",
    "INCOMING_MIDDLEWARE_MARKER",
    "SKIP",
    "Middleware",
    "MiddlewareContext",
    "MiddlewareRegistry",
    "Phase",
    "get_registry",
    "reset_registry",
    "run_incoming_middleware",
    "run_outgoing_middleware",
]
