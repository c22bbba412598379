"""Event bus for update delivery.

Every inbound update that is not dropped produces an ``UPDATE`` event
carrying the middlewared update, or an ``ERROR`` event carrying the
exception that stopped it.  An ``UPDATE`` hook that fails is followed by an
``ERROR`` event for the same update.  Hooks can be sync or async.

Usage::

    from parley.core.events import BotEvent, BotEventKind

    async def on_update(event: BotEvent) -> None:
        await event.bot.reply(event.update, "hi")

    bot.on(BotEventKind.UPDATE, on_update)
    bot.on(BotEventKind.ERROR, lambda event: print(event.error))
"""

from __future__ import annotations

import enum
import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

# Type alias for hook callables (sync or async)
Hook = Any  # Callable[[BotEvent], None] | Callable[[BotEvent], Awaitable[None]]


class BotEventKind(enum.Enum):
    """Outcome of running an update through the incoming pipeline."""

    UPDATE = "update"
    ERROR = "error"


@dataclass(frozen=True)
class BotEvent:
    """An immutable event published by a bot."""

    kind: BotEventKind
    bot: Any
    update: dict[str, Any] | None = None
    error: BaseException | None = None
    timestamp: float = field(default_factory=time)

    @classmethod
    def received(cls, bot: Any, update: dict[str, Any]) -> BotEvent:
        return cls(kind=BotEventKind.UPDATE, bot=bot, update=update)

    @classmethod
    def failed(cls, bot: Any, error: BaseException, update: dict[str, Any] | None = None) -> BotEvent:
        return cls(kind=BotEventKind.ERROR, bot=bot, update=update, error=error)

    @property
    def is_error(self) -> bool:
        return self.kind is BotEventKind.ERROR


class EventBus:
    """Simple pub/sub bus keyed by :class:`BotEventKind`."""

    def __init__(self) -> None:
        self._hooks: dict[BotEventKind, list[Hook]] = defaultdict(list)
        self._wildcard_hooks: list[Hook] = []

    def on(self, kind: BotEventKind | str, hook: Hook) -> None:
        """Register *hook* for one event kind (``"update"``/``"error"`` accepted)."""
        self._hooks[BotEventKind(kind)].append(hook)

    def on_all(self, hook: Hook) -> None:
        """Register *hook* for every event."""
        self._wildcard_hooks.append(hook)

    def off(self, kind: BotEventKind | str, hook: Hook) -> None:
        """Unregister *hook* from one event kind."""
        try:
            self._hooks[BotEventKind(kind)].remove(hook)
        except ValueError:
            pass

    def off_all(self, hook: Hook) -> None:
        try:
            self._wildcard_hooks.remove(hook)
        except ValueError:
            pass

    def has_hooks(self, kind: BotEventKind) -> bool:
        return bool(self._hooks.get(kind)) or bool(self._wildcard_hooks)

    async def emit(self, event: BotEvent, *, raise_errors: bool = False) -> None:
        """Run all hooks matching *event*, in registration order.

        A failing hook does not stop the others.  By default failures are
        logged; with *raise_errors* the first one is re-raised once every
        hook has run.
        """
        hooks = list(self._hooks.get(event.kind, []))
        hooks.extend(self._wildcard_hooks)
        if event.is_error and not hooks:
            logger.error(f"Unhandled bot error (no ERROR hook registered): {event.error}")
        failures: list[Exception] = []
        for hook in hooks:
            try:
                result = hook(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                if not raise_errors:
                    logger.warning(f"Event hook failed for {event.kind.value}: {exc}")
                failures.append(exc)
        if raise_errors and failures:
            raise failures[0]
