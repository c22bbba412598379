"""Shared type aliases used across parley."""

from collections.abc import Awaitable, Callable
from typing import Any

# Normalized inbound update (Messenger-style dict with at least sender.id)
Update = dict[str, Any]

# ``callback(err, result)``; may return an awaitable
SendCallback = Callable[[BaseException | None, Any], Any | Awaitable[Any]]
