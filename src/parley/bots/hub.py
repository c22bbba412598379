"""Bot hub — one place to hold several platform bots.

Bots added to a hub share its middleware registry, and hub subscribers see
the events of every bot it holds (``event.bot`` tells them apart).

Usage::

    hub = BotHub()
    hub.add_bot(MessengerBot(settings))
    hub.add_bot(TelegramBot(settings))

    @hub.middleware.incoming("log")
    def log_update(ctx, update):
        logger.info(f"{ctx.bot.type}: {update}")

    hub.on(BotEventKind.UPDATE, handle_update)
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from parley.bots.base import BaseBot
from parley.core.events import BotEvent, BotEventKind, EventBus, Hook
from parley.core.exceptions import ConfigurationError
from parley.middleware.registry import Middleware, MiddlewareRegistry, Phase, get_registry


class BotHub:
    """Registry of bots with shared middleware and a merged event stream."""

    def __init__(self, middleware: MiddlewareRegistry | None = None):
        self.middleware = middleware if middleware is not None else get_registry()
        self.events = EventBus()
        self._bots: list[BaseBot] = []

    # ── Bots ───────────────────────────────────────────────────────

    def add_bot(self, bot: BaseBot) -> BaseBot:
        if any(b.type == bot.type and b.id == bot.id for b in self._bots):
            raise ConfigurationError(f"a bot of type {bot.type!r} with id {bot.id!r} is already in this hub")
        bot.middleware = self.middleware
        bot.on_all(self._forward)
        self._bots.append(bot)
        logger.info(f"Added {bot.type} bot {bot.id} ({len(self._bots)} total)")
        return bot

    def remove_bot(self, bot: BaseBot) -> None:
        try:
            self._bots.remove(bot)
        except ValueError:
            raise ConfigurationError(f"{bot!r} is not in this hub") from None
        bot.events.off_all(self._forward)
        logger.info(f"Removed {bot.type} bot {bot.id}")

    def get_bot(self, *, bot_id: str | None = None, bot_type: str | None = None) -> BaseBot | None:
        """Return the bot matching *bot_id* and/or *bot_type*.

        Raises:
            ConfigurationError: if neither filter is given, or only ``bot_type``
                is given and several bots have that type.
        """
        if bot_id is None and bot_type is None:
            raise ConfigurationError("get_bot needs bot_id or bot_type")
        matches = [
            b
            for b in self._bots
            if (bot_id is None or b.id == bot_id) and (bot_type is None or b.type == bot_type)
        ]
        if len(matches) > 1:
            raise ConfigurationError(f"{len(matches)} bots of type {bot_type!r}; use get_bots() or pass bot_id")
        return matches[0] if matches else None

    def get_bots(self, bot_type: str | None = None) -> list[BaseBot]:
        return [b for b in self._bots if bot_type is None or b.type == bot_type]

    @property
    def bots(self) -> tuple[BaseBot, ...]:
        return tuple(self._bots)

    # ── Middleware ─────────────────────────────────────────────────

    def use(self, name: str, phase: Phase | str, handler: Any, **options: Any) -> Middleware:
        return self.middleware.use(name, phase, handler, **options)

    def use_wrapped(self, incoming: Middleware, outgoing: Middleware) -> None:
        self.middleware.use_wrapped(incoming, outgoing)

    # ── Events ─────────────────────────────────────────────────────

    def on(self, kind: BotEventKind | str, hook: Hook) -> None:
        self.events.on(kind, hook)

    def on_all(self, hook: Hook) -> None:
        self.events.on_all(hook)

    async def _forward(self, event: BotEvent) -> None:
        # UPDATE hook failures go back to the bot, which reports them as ERROR events
        await self.events.emit(event, raise_errors=not event.is_error)

    def __len__(self) -> int:
        return len(self._bots)
