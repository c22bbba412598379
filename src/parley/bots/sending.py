"""Send helpers and the cascade engine.

Everything here funnels into two primitives the concrete class provides:
``send_message(message, options, callback)`` and ``send_raw(raw)``.
Keeping the helpers on a mixin lets :class:`~parley.bots.patched.UpdateBoundBot`
reuse them unchanged, so every helper called on the update-bound view goes
through its tagging ``send_message``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from functools import partial
from typing import Any

from loguru import logger

from parley.core.exceptions import ValidationError
from parley.core.types import SendCallback, Update
from parley.messages.options import SendOptions, settle_send
from parley.messages.outgoing import OutgoingMessage
from parley.messages.results import ActionResult, SendResult

DEFAULT_BUTTON_PROMPT = "Please select one of:"
MAX_BUTTONS = 10

# Checked in this order; the first truthy key decides the step
CASCADE_KEYS = ("raw", "message", "buttons", "attachment", "text", "is_typing")

SendOptionsArg = SendOptions | Mapping[str, Any] | SendCallback | None


def build_button_message(
    button_titles: Sequence[str],
    text_or_attachment: str | Mapping[str, Any] | None,
    recipient_id: str,
) -> OutgoingMessage:
    """Build a text or attachment message carrying one quick reply per title.

    Each quick reply uses its title as payload.  A falsy caption falls
    back to :data:`DEFAULT_BUTTON_PROMPT`.

    Raises:
        ValidationError: more than :data:`MAX_BUTTONS` titles, or a caption
            that is neither a string nor an attachment mapping with a ``type``.
    """
    if len(button_titles) > MAX_BUTTONS:
        raise ValidationError(f"button_titles must be of length {MAX_BUTTONS} or less")

    message = OutgoingMessage().add_recipient_by_id(recipient_id)
    if not text_or_attachment:
        message.add_text(DEFAULT_BUTTON_PROMPT)
    elif isinstance(text_or_attachment, str):
        message.add_text(text_or_attachment)
    elif isinstance(text_or_attachment, Mapping) and text_or_attachment.get("type"):
        message.add_attachment(text_or_attachment)
    else:
        raise ValidationError('text_or_attachment must be a str, an attachment mapping with a "type", or empty')

    message.add_quick_replies(
        [{"content_type": "text", "title": title, "payload": title} for title in button_titles]
    )
    return message


class SendMixin:
    """Helpers shared by bots and update-bound bot views."""

    # Provided by the concrete class
    send_message: Callable[..., Awaitable[Any]]
    send_raw: Callable[[Any], Awaitable[Any]]

    @staticmethod
    def create_outgoing_message(message: Mapping[str, Any] | None = None) -> OutgoingMessage:
        """Wrap *message* (an envelope mapping) in an :class:`OutgoingMessage`."""
        return OutgoingMessage.from_dict(message)

    @staticmethod
    def create_outgoing_message_for(recipient_id: str) -> OutgoingMessage:
        """Return an empty :class:`OutgoingMessage` addressed to *recipient_id*."""
        return OutgoingMessage().add_recipient_by_id(recipient_id)

    # ── Single-message helpers ─────────────────────────────────────

    async def send_message_to(
        self,
        message: Mapping[str, Any],
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Send a bare message body such as ``{"text": "hi"}`` to *recipient_id*."""

        def build() -> OutgoingMessage:
            if not isinstance(message, Mapping):
                raise ValidationError("message body must be a mapping")
            return OutgoingMessage(message=dict(message)).add_recipient_by_id(recipient_id)

        return await self._send_built(build, options, callback)

    async def send_text_message_to(
        self,
        text: str,
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        return await self._send_built(
            lambda: self.create_outgoing_message_for(recipient_id).add_text(text), options, callback
        )

    async def reply(
        self,
        incoming_update: Update,
        text: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Send *text* back to whoever sent *incoming_update*."""

        def build() -> OutgoingMessage:
            try:
                sender_id = incoming_update["sender"]["id"]
            except (KeyError, TypeError) as e:
                raise ValidationError("can't reply to an update without sender.id") from e
            return self.create_outgoing_message_for(sender_id).add_text(text)

        return await self._send_built(build, options, callback)

    async def send_attachment_to(
        self,
        attachment: Mapping[str, Any],
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Send an attachment like ``{"type": "image", "payload": {"url": ...}}``."""
        return await self._send_built(
            lambda: self.create_outgoing_message_for(recipient_id).add_attachment(attachment), options, callback
        )

    async def send_attachment_from_url_to(
        self,
        type: str,  # noqa: A002
        url: str,
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        return await self._send_built(
            lambda: self.create_outgoing_message_for(recipient_id).add_attachment_from_url(type, url),
            options,
            callback,
        )

    async def send_default_button_message_to(
        self,
        button_titles: Sequence[str],
        text_or_attachment: str | Mapping[str, Any] | None,
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Send up to ten quick-reply buttons whose payload equals their title.

        See :func:`build_button_message` for the caption rules.
        """
        return await self._send_built(
            lambda: build_button_message(button_titles, text_or_attachment, recipient_id), options, callback
        )

    async def send_is_typing_message_to(
        self,
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Show a typing indicator to *recipient_id*.

        Unlike the other helpers this resolves to an :class:`ActionResult`
        holding only the recipient id.
        """

        async def send(send_options: SendOptions) -> ActionResult:
            envelope = {"recipient": {"id": recipient_id}, "sender_action": "typing_on"}
            result: SendResult = await self.send_message(envelope, send_options)
            return ActionResult(recipient_id=result.recipient_id or recipient_id)

        return await settle_send(options, callback, send)

    # ── Cascades ───────────────────────────────────────────────────

    async def send_cascade_to(
        self,
        messages: Sequence[Mapping[str, Any]],
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        """Send several messages one after another.

        Each descriptor is a mapping with one of ``raw``, ``message``,
        ``buttons`` (with optional ``text`` or ``attachment`` caption),
        ``attachment``, ``text`` or ``is_typing``; the first present key in
        that order wins.  ``raw`` and ``message`` descriptors carry their
        own recipient.

        Message N+1 is only sent once message N went out.  The first
        failure aborts the cascade and is the only thing reported; results
        of the steps already sent are dropped.

        Returns:
            The per-step results, in input order.
        """
        return await settle_send(options, callback, partial(self._send_cascade, messages, recipient_id))

    async def send_text_cascade_to(
        self,
        texts: Sequence[str],
        recipient_id: str,
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        return await self.send_cascade_to([{"text": text} for text in texts], recipient_id, options, callback)

    async def _send_cascade(
        self,
        messages: Sequence[Mapping[str, Any]],
        recipient_id: str,
        options: SendOptions,
    ) -> list[Any]:
        if isinstance(messages, str | bytes | Mapping) or not isinstance(messages, Sequence):
            raise ValidationError("cascade messages must be a sequence of mappings")

        # Validate every descriptor before anything is sent
        steps = [self._cascade_step(descriptor, recipient_id, options) for descriptor in messages]

        results: list[Any] = []
        for index, step in enumerate(steps, start=1):
            logger.debug(f"Cascade to {recipient_id}: step {index}/{len(steps)}")
            results.append(await step())
        return results

    def _cascade_step(
        self,
        descriptor: Mapping[str, Any],
        recipient_id: str,
        options: SendOptions,
    ) -> Callable[[], Awaitable[Any]]:
        if not isinstance(descriptor, Mapping):
            raise ValidationError("No valid message options specified")

        key = next((k for k in CASCADE_KEYS if descriptor.get(k)), None)
        if key == "raw":
            return partial(self.send_raw, descriptor["raw"])
        if key == "message":
            return partial(self.send_message, OutgoingMessage.from_dict(descriptor["message"]), options)
        if key == "buttons":
            if descriptor.get("attachment") and descriptor.get("text"):
                raise ValidationError("Please use either one of text or attachment with buttons")
            caption = descriptor.get("attachment") or descriptor.get("text") or None
            message = build_button_message(descriptor["buttons"], caption, recipient_id)
            return partial(self.send_message, message, options)
        if key == "attachment":
            message = self.create_outgoing_message_for(recipient_id).add_attachment(descriptor["attachment"])
            return partial(self.send_message, message, options)
        if key == "text":
            message = self.create_outgoing_message_for(recipient_id).add_text(descriptor["text"])
            return partial(self.send_message, message, options)
        if key == "is_typing":
            return partial(self.send_is_typing_message_to, recipient_id, options)
        raise ValidationError("No valid message options specified")

    # ── Internal ───────────────────────────────────────────────────

    async def _send_built(
        self,
        build: Callable[[], OutgoingMessage],
        options: SendOptionsArg,
        callback: SendCallback | None,
    ) -> Any:
        async def send(send_options: SendOptions) -> Any:
            return await self.send_message(build(), send_options)

        return await settle_send(options, callback, send)
