"""Middleware registry — ordered, named handlers for the incoming and outgoing phases.

Handlers run in registration order.  Each is called as
``handler(ctx, payload)`` (sync or async) and returns one of:

- ``None`` — pass the payload through unchanged;
- a new payload — replaces it for the next handler;
- :data:`SKIP` — stop running the remaining handlers of this phase;
- :data:`CANCEL` — drop the payload (no ``UPDATE`` event / nothing sent).

Usage::

    registry = get_registry()

    @registry.incoming("lowercase")
    def lowercase(ctx, update):
        update["message"]["text"] = update["message"]["text"].lower()

    @registry.outgoing("log")
    async def log(ctx, message):
        logger.info(f"sending {message.to_dict()} in reply to {ctx.update}")
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from parley.core.exceptions import ValidationError

if TYPE_CHECKING:
    from parley.messages.options import SendOptions

Handler = Callable[["MiddlewareContext", Any], Any]


class Phase(enum.Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class _Signal:
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


SKIP = _Signal("SKIP")
"""Return from a handler to skip the remaining handlers of its phase."""

CANCEL = _Signal("CANCEL")
"""Return from a handler to drop the update / cancel the send."""


@dataclass
class MiddlewareContext:
    """What a handler gets besides the payload.

    Attributes:
        bot: The bot running the pipeline.  In the incoming phase this is
            the update-bound view, so sends made from a handler are tagged
            with the update.
        phase: Which phase is running.
        update: The inbound update being processed (incoming phase), or the
            update that triggered this send, if any (outgoing phase).
        options: Send options of the current send (outgoing phase only).
    """

    bot: Any
    phase: Phase
    update: dict[str, Any] | None = None
    options: SendOptions | None = None


@dataclass(frozen=True)
class Middleware:
    """A registered handler.

    ``include_echo``/``include_read``/``include_delivery`` only apply to
    the incoming phase: by default such updates bypass the handler.
    """

    name: str
    phase: Phase
    handler: Handler
    include_echo: bool = False
    include_read: bool = False
    include_delivery: bool = False

    def applies_to(self, update: Any) -> bool:
        if self.phase is not Phase.INCOMING or not isinstance(update, dict):
            return True
        message = update.get("message") or {}
        if message.get("is_echo") and not self.include_echo:
            return False
        if update.get("read") and not self.include_read:
            return False
        if update.get("delivery") and not self.include_delivery:
            return False
        return True


class MiddlewareRegistry:
    """Two independent ordered lists of middleware, one per phase.

    Names are unique within a phase.  The registry is meant to be filled
    at setup time and only read while messages flow.
    """

    def __init__(self) -> None:
        self._entries: dict[Phase, list[Middleware]] = {Phase.INCOMING: [], Phase.OUTGOING: []}

    # ── Registration ───────────────────────────────────────────────

    def use(
        self,
        name: str,
        phase: Phase | str,
        handler: Handler,
        *,
        include_echo: bool = False,
        include_read: bool = False,
        include_delivery: bool = False,
        first: bool = False,
    ) -> Middleware:
        """Register *handler* at the end of its phase (or the start, with ``first=True``)."""
        entry = Middleware(
            name=name,
            phase=Phase(phase),
            handler=handler,
            include_echo=include_echo,
            include_read=include_read,
            include_delivery=include_delivery,
        )
        self._validate(entry)
        entries = self._entries[entry.phase]
        if first:
            entries.insert(0, entry)
        else:
            entries.append(entry)
        logger.debug(f"Registered {entry.phase.value} middleware {name!r} ({len(entries)} in phase)")
        return entry

    def use_wrapped(self, incoming: Middleware, outgoing: Middleware) -> None:
        """Register a pair that wraps all other middleware.

        The incoming half runs before every other incoming handler, the
        outgoing half after every other outgoing handler.
        """
        if incoming.phase is not Phase.INCOMING or outgoing.phase is not Phase.OUTGOING:
            raise ValidationError("use_wrapped expects an incoming then an outgoing middleware")
        self._validate(incoming)
        self._validate(outgoing)
        self._entries[Phase.INCOMING].insert(0, incoming)
        self._entries[Phase.OUTGOING].append(outgoing)

    def incoming(self, name: str | None = None, **options: Any) -> Callable[[Handler], Handler]:
        """Decorator form of ``use(..., Phase.INCOMING, ...)``."""

        def decorator(handler: Handler) -> Handler:
            self.use(name or handler.__name__, Phase.INCOMING, handler, **options)
            return handler

        return decorator

    def outgoing(self, name: str | None = None, **options: Any) -> Callable[[Handler], Handler]:
        """Decorator form of ``use(..., Phase.OUTGOING, ...)``."""

        def decorator(handler: Handler) -> Handler:
            self.use(name or handler.__name__, Phase.OUTGOING, handler, **options)
            return handler

        return decorator

    def remove(self, name: str, phase: Phase | str | None = None) -> bool:
        """Remove middleware named *name* (from one phase or both). Returns True if any was removed."""
        phases = [Phase(phase)] if phase is not None else list(Phase)
        removed = False
        for p in phases:
            before = len(self._entries[p])
            self._entries[p] = [m for m in self._entries[p] if m.name != name]
            removed = removed or len(self._entries[p]) != before
        return removed

    def clear(self) -> None:
        for entries in self._entries.values():
            entries.clear()

    # ── Read access ────────────────────────────────────────────────

    def get(self, phase: Phase | str) -> tuple[Middleware, ...]:
        return tuple(self._entries[Phase(phase)])

    @property
    def incoming_middleware(self) -> tuple[Middleware, ...]:
        return self.get(Phase.INCOMING)

    @property
    def outgoing_middleware(self) -> tuple[Middleware, ...]:
        return self.get(Phase.OUTGOING)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __repr__(self) -> str:
        incoming = [m.name for m in self.incoming_middleware]
        outgoing = [m.name for m in self.outgoing_middleware]
        return f"MiddlewareRegistry(incoming={incoming}, outgoing={outgoing})"

    # ── Internal ───────────────────────────────────────────────────

    def _validate(self, entry: Middleware) -> None:
        if not entry.name or not isinstance(entry.name, str):
            raise ValidationError("middleware name must be a non-empty string")
        if not callable(entry.handler):
            raise ValidationError(f"middleware {entry.name!r} handler is not callable")
        if any(m.name == entry.name for m in self._entries[entry.phase]):
            raise ValidationError(f"{entry.phase.value} middleware named {entry.name!r} is already registered")


# Module-level singleton
_registry_instance: MiddlewareRegistry | None = None


def get_registry() -> MiddlewareRegistry:
    """Get or create the process-wide middleware registry."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = MiddlewareRegistry()
    return _registry_instance


def reset_registry() -> None:
    """Reset the process-wide registry (useful for testing)."""
    global _registry_instance
    _registry_instance = None
