"""Base bot — the platform-independent message pipeline.

Platform bots subclass :class:`BaseBot` and supply the transport:
``send_raw``, ``_send_normalized_message`` and ``format_update``.  Everything
else (outgoing/incoming middleware, helpers, cascades, update events) lives
here and in :mod:`parley.bots.sending`.

Usage::

    class EchoBot(BaseBot):
        type = "echo"
        capabilities = all_capabilities()

        async def send_raw(self, raw):
            return raw

        async def _send_normalized_message(self, message):
            return SendResult(raw=message.to_dict(), recipient_id=message.recipient_id)

        def format_update(self, raw_update):
            return raw_update

    bot = EchoBot()
    bot.on(BotEventKind.UPDATE, lambda event: ...)
    await bot.emit_update({"sender": {"id": "u1"}, "message": {"text": "hi"}})
"""

from __future__ import annotations

import dataclasses
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from functools import partial
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from parley.bots.capabilities import Capabilities
from parley.bots.patched import UpdateBoundBot
from parley.bots.sending import SendMixin, SendOptionsArg
from parley.core.config_schema import BotSettings
from parley.core.events import BotEvent, BotEventKind, EventBus, Hook
from parley.core.exceptions import ConfigurationError
from parley.core.types import SendCallback, Update
from parley.core.utils.logging import bot_logger
from parley.messages.options import SendOptions, settle_send
from parley.messages.outgoing import OutgoingMessage
from parley.messages.results import SendResult
from parley.middleware.registry import CANCEL, MiddlewareRegistry, get_registry
from parley.middleware.runner import INCOMING_MIDDLEWARE_MARKER, run_incoming_middleware, run_outgoing_middleware

ON_YOUR_END_SUFFIX = "This is most probably on your end."


class BaseBot(SendMixin, ABC):
    """Abstract base for platform bots.

    Class attributes subclasses set:

    - ``type``: platform name, e.g. ``"messenger"``.
    - ``capabilities``: what the platform can receive and send.
    - ``requires_webhook``: whether settings must carry ``webhook_endpoint``.
    - ``required_credentials``: credential keys settings must carry.

    Args:
        settings: ``BotSettings`` or a mapping validated into one.
        capabilities: Overrides the class-level capabilities for this instance.
        middleware: Registry to use instead of the process-wide one.
    """

    type: str = "base"
    capabilities: Capabilities = Capabilities()
    requires_webhook: bool = False
    required_credentials: tuple[str, ...] = ()

    def __init__(
        self,
        settings: BotSettings | Mapping[str, Any] | None = None,
        *,
        capabilities: Capabilities | None = None,
        middleware: MiddlewareRegistry | None = None,
    ):
        self.settings = self._apply_settings(settings)
        self.id: str = self.settings.id or uuid.uuid4().hex[:12]
        self.credentials: dict[str, Any] = dict(self.settings.credentials)
        self.webhook_endpoint: str | None = self.settings.webhook_endpoint
        if capabilities is not None:
            self.capabilities = capabilities
        self._middleware = middleware
        self.events = EventBus()
        self._log = bot_logger(self.type, self.id)

        if self.requires_webhook:
            self.create_mount_points()

    # ── Settings ───────────────────────────────────────────────────

    def _apply_settings(self, settings: BotSettings | Mapping[str, Any] | None) -> BotSettings:
        """Validate settings against this bot type's credential and webhook requirements."""
        if settings is None:
            settings = {}
        if not isinstance(settings, BotSettings | Mapping):
            raise ConfigurationError(f"settings must be a mapping or BotSettings, got {type(settings).__name__}")
        try:
            validated = BotSettings.model_validate(settings)
        except PydanticValidationError as e:
            raise ConfigurationError(f"invalid settings for bot of type {self.type!r}: {e}") from e

        if self.required_credentials:
            if not validated.credentials:
                raise ConfigurationError(f"no credentials specified for bot of type {self.type!r}")
            for name in self.required_credentials:
                if not validated.credentials.get(name):
                    raise ConfigurationError(f"bots of type {self.type!r} are expected to have {name!r} credentials")

        if self.requires_webhook and not validated.webhook_endpoint:
            raise ConfigurationError(f"bots of type {self.type!r} must be defined with webhook_endpoint in their settings")
        if not self.requires_webhook and validated.webhook_endpoint:
            raise ConfigurationError(f"bots of type {self.type!r} do not require webhook_endpoint in their settings")
        return validated

    @property
    def middleware(self) -> MiddlewareRegistry:
        """The registry this bot runs; the process-wide one unless set."""
        return self._middleware if self._middleware is not None else get_registry()

    @middleware.setter
    def middleware(self, registry: MiddlewareRegistry | None) -> None:
        self._middleware = registry

    # ── Platform hooks ─────────────────────────────────────────────

    def create_mount_points(self) -> None:  # noqa: B027
        """Set up webhook endpoints. Called at construction when ``requires_webhook``."""

    @abstractmethod
    def format_update(self, raw_update: Any) -> Update:
        """Turn a raw platform payload into a normalized update."""

    @abstractmethod
    async def send_raw(self, raw_message: Any) -> Any:
        """Send a platform-specific payload as-is and return the platform response."""

    @abstractmethod
    async def _send_normalized_message(self, message: OutgoingMessage) -> SendResult:
        """Encode and send *message*; return ``raw``, ``recipient_id`` and ``message_id``.

        Raise :class:`~parley.core.exceptions.TransportError` (or let the
        client's own error through) when the platform call fails.
        """

    async def get_user_info(self, user_id: str) -> Any:
        """Basic user info, when the platform supports it. ``None`` by default."""
        return None

    # ── Send pipeline ──────────────────────────────────────────────

    async def send_message(
        self,
        message: OutgoingMessage | Mapping[str, Any],
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Send a message through outgoing middleware and the platform transport.

        Args:
            message: An :class:`OutgoingMessage` or an envelope mapping.
            options: ``SendOptions`` or a mapping of its fields.
            callback: ``callback(err, result)``; when given, errors are
                reported to it instead of raised and its return value is returned.

        Returns:
            A :class:`SendResult` whose ``sent_message`` is the post-middleware message.
        """
        return await settle_send(options, callback, partial(self._send_message, message))

    async def _send_message(self, message: OutgoingMessage | Mapping[str, Any], options: SendOptions) -> SendResult:
        outgoing = OutgoingMessage.from_dict(message)
        middlewared = await run_outgoing_middleware(self, outgoing, options, registry=self.middleware)
        if middlewared is CANCEL:
            self._log.debug(f"Send to {outgoing.recipient_id} cancelled by outgoing middleware")
            return SendResult.cancelled_for(outgoing)

        middlewared.validate()
        if middlewared.raw is not None:
            response = await self.send_raw(middlewared.raw)
            return SendResult(raw=response, sent_message=middlewared)

        self.capabilities.ensure_can_send(middlewared, self.type)
        result = await self._send_normalized_message(middlewared)
        self._log.debug(f"Sent message {result.message_id} to {result.recipient_id}")
        return dataclasses.replace(result, sent_message=middlewared)

    # ── Update pipeline ────────────────────────────────────────────

    def with_update(self, update: Update) -> UpdateBoundBot:
        """Return a view of this bot whose sends carry *update* in their options."""
        return UpdateBoundBot(self, update)

    async def emit_update(self, update: Update) -> None:
        """Run incoming middleware over *update* and publish the outcome.

        Publishes a ``BotEventKind.UPDATE`` event with the middlewared
        update.  If middleware fails, a ``BotEventKind.ERROR`` event
        carrying the exception is published instead; if an ``UPDATE`` hook
        fails, one follows the ``UPDATE`` event.  Never raises.
        """
        bound = self.with_update(update)
        try:
            processed = await run_incoming_middleware(bound, update, registry=self.middleware)
            if processed is CANCEL:
                self._log.debug(f"Update from {_sender_id(update)} dropped by incoming middleware")
                return
            await self.events.emit(BotEvent.received(self, processed), raise_errors=True)
        except Exception as err:
            if INCOMING_MIDDLEWARE_MARKER not in str(err):
                err.args = (f'"{err}". {ON_YOUR_END_SUFFIX}', *err.args[1:])
            self._log.error(f"Update from {_sender_id(update)} failed: {err}")
            await self.events.emit(BotEvent.failed(self, err, update))

    async def handle_raw_update(self, raw_update: Any) -> None:
        """Format a raw platform payload and emit it. Platform adapters call this."""
        await self.emit_update(self.format_update(raw_update))

    # ── Events ─────────────────────────────────────────────────────

    def on(self, kind: BotEventKind | str, hook: Hook) -> None:
        self.events.on(kind, hook)

    def on_all(self, hook: Hook) -> None:
        self.events.on_all(hook)

    def off(self, kind: BotEventKind | str, hook: Hook) -> None:
        self.events.off(kind, hook)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.type!r}, id={self.id!r})"


def _sender_id(update: Any) -> Any:
    if isinstance(update, Mapping):
        return (update.get("sender") or {}).get("id")
    return None
