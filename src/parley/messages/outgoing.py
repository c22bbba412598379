"""Outgoing message envelope and its fluent builder.

The envelope follows the Messenger send API shape, which every platform
adapter translates from::

    {
        "recipient": {"id": "<user id>"},
        "message": {"text": "...", "quick_replies": [...]},
    }
    {
        "recipient": {"id": "<user id>"},
        "sender_action": "typing_on",
    }

A message carries at most one primary content: text, an attachment, or a
sender action.  Quick replies can be layered onto text or an attachment.

Usage::

    msg = (
        OutgoingMessage()
        .add_recipient_by_id("u1")
        .add_text("Pick one")
        .add_quick_replies([{"content_type": "text", "title": "A", "payload": "A"}])
    )
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from parley.core.exceptions import ValidationError

SENDER_ACTIONS = ("typing_on", "typing_off", "mark_seen")
ATTACHMENT_TYPES = ("audio", "file", "image", "video")

_ENVELOPE_KEYS = ("recipient", "message", "sender_action", "raw")


@dataclass
class OutgoingMessage:
    """Normalized outgoing envelope.

    Attributes:
        recipient: ``{"id": ...}`` or ``{"phone_number": ...}``.
        message: Body with any of ``text``, ``attachment``, ``quick_replies``.
        sender_action: One of :data:`SENDER_ACTIONS`.
        raw: Platform-specific payload sent as-is through ``send_raw``.
        extra: Unrecognised envelope keys, kept so dict input round-trips.
    """

    recipient: dict[str, Any] | None = None
    message: dict[str, Any] | None = None
    sender_action: str | None = None
    raw: Any = None
    extra: dict[str, Any] = field(default_factory=dict)

    # ── Conversion ─────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> OutgoingMessage:
        """Build an envelope from a Messenger-style mapping (deep-copied)."""
        if data is None:
            return cls()
        if isinstance(data, OutgoingMessage):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(f"outgoing message must be a mapping or OutgoingMessage, got {type(data).__name__}")
        data = copy.deepcopy(dict(data))
        return cls(
            recipient=data.pop("recipient", None),
            message=data.pop("message", None),
            sender_action=data.pop("sender_action", None),
            raw=data.pop("raw", None),
            extra=data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the Messenger-style envelope, omitting unset fields."""
        out: dict[str, Any] = {}
        for key in _ENVELOPE_KEYS:
            value = getattr(self, key)
            if value is not None:
                out[key] = copy.deepcopy(value)
        out.update(copy.deepcopy(self.extra))
        return out

    # ── Read helpers ───────────────────────────────────────────────

    @property
    def recipient_id(self) -> str | None:
        return (self.recipient or {}).get("id")

    @property
    def text(self) -> str | None:
        return (self.message or {}).get("text")

    @property
    def attachment(self) -> dict[str, Any] | None:
        return (self.message or {}).get("attachment")

    @property
    def quick_replies(self) -> list[dict[str, Any]] | None:
        return (self.message or {}).get("quick_replies")

    @property
    def has_content(self) -> bool:
        return bool(self.text or self.attachment or self.sender_action)

    def validate(self) -> None:
        """Check the envelope is sendable: raw, or recipient plus content."""
        if self.raw is not None:
            return
        if not self.recipient:
            raise ValidationError("outgoing message has no recipient (and no raw payload)")
        if not self.has_content:
            raise ValidationError("outgoing message has no text, attachment or sender_action (and no raw payload)")

    # ── Recipient ──────────────────────────────────────────────────

    def add_recipient_by_id(self, recipient_id: str) -> OutgoingMessage:
        self._ensure_no_recipient()
        self.recipient = {"id": recipient_id}
        return self

    def add_recipient_by_phone_number(self, phone_number: str) -> OutgoingMessage:
        self._ensure_no_recipient()
        self.recipient = {"phone_number": phone_number}
        return self

    def remove_recipient(self) -> OutgoingMessage:
        self.recipient = None
        return self

    # ── Text ───────────────────────────────────────────────────────

    def add_text(self, text: str) -> OutgoingMessage:
        """Set the message text.

        Raises:
            ValidationError: if text, an attachment or a sender action is already set.
        """
        if self.text is not None:
            raise ValidationError("can't add text to a message that already has text")
        if self.attachment is not None:
            raise ValidationError("can't add text to a message that already has an attachment")
        if self.sender_action is not None:
            raise ValidationError("can't add text to a message that has a sender_action")
        self._body()["text"] = text
        return self

    def remove_text(self) -> OutgoingMessage:
        self._remove_body_key("text")
        return self

    # ── Attachments ────────────────────────────────────────────────

    def add_attachment(self, attachment: Mapping[str, Any]) -> OutgoingMessage:
        """Set an attachment such as ``{"type": "image", "payload": {"url": ...}}``."""
        if not isinstance(attachment, Mapping):
            raise ValidationError("attachment must be a mapping")
        if self.attachment is not None:
            raise ValidationError("can't add an attachment to a message that already has one")
        if self.text is not None:
            raise ValidationError("can't add an attachment to a message that already has text")
        if self.sender_action is not None:
            raise ValidationError("can't add an attachment to a message that has a sender_action")
        self._body()["attachment"] = copy.deepcopy(dict(attachment))
        return self

    def add_attachment_from_url(self, type: str, url: str) -> OutgoingMessage:  # noqa: A002
        return self.add_attachment({"type": type, "payload": {"url": url}})

    def add_image_from_url(self, url: str) -> OutgoingMessage:
        return self.add_attachment_from_url("image", url)

    def add_audio_from_url(self, url: str) -> OutgoingMessage:
        return self.add_attachment_from_url("audio", url)

    def add_video_from_url(self, url: str) -> OutgoingMessage:
        return self.add_attachment_from_url("video", url)

    def add_file_from_url(self, url: str) -> OutgoingMessage:
        return self.add_attachment_from_url("file", url)

    def remove_attachment(self) -> OutgoingMessage:
        self._remove_body_key("attachment")
        return self

    # ── Quick replies ──────────────────────────────────────────────

    def add_quick_replies(self, quick_replies: list[dict[str, Any]]) -> OutgoingMessage:
        if not isinstance(quick_replies, list):
            raise ValidationError("quick_replies must be a list")
        if self.quick_replies is not None:
            raise ValidationError("can't add quick_replies to a message that already has them")
        if self.sender_action is not None:
            raise ValidationError("can't add quick_replies to a message that has a sender_action")
        self._body()["quick_replies"] = copy.deepcopy(quick_replies)
        return self

    def add_payloadless_quick_reply(self, title: str) -> OutgoingMessage:
        """Append a text quick reply whose payload is its own title."""
        return self._append_quick_reply({"content_type": "text", "title": title, "payload": title})

    def add_location_quick_reply(self) -> OutgoingMessage:
        return self._append_quick_reply({"content_type": "location"})

    def remove_quick_replies(self) -> OutgoingMessage:
        self._remove_body_key("quick_replies")
        return self

    # ── Sender actions ─────────────────────────────────────────────

    def add_sender_action(self, action: str) -> OutgoingMessage:
        if action not in SENDER_ACTIONS:
            raise ValidationError(f"unknown sender_action {action!r}, expected one of {SENDER_ACTIONS}")
        if self.sender_action is not None:
            raise ValidationError("can't add a sender_action to a message that already has one")
        if self.message:
            raise ValidationError("can't add a sender_action to a message that has a body")
        self.sender_action = action
        return self

    def add_typing_on_sender_action(self) -> OutgoingMessage:
        return self.add_sender_action("typing_on")

    def add_typing_off_sender_action(self) -> OutgoingMessage:
        return self.add_sender_action("typing_off")

    def add_mark_seen_sender_action(self) -> OutgoingMessage:
        return self.add_sender_action("mark_seen")

    def remove_sender_action(self) -> OutgoingMessage:
        self.sender_action = None
        return self

    # ── Internal ───────────────────────────────────────────────────

    def _ensure_no_recipient(self) -> None:
        if self.recipient is not None:
            raise ValidationError("can't add a recipient to a message that already has one")

    def _body(self) -> dict[str, Any]:
        if self.message is None:
            self.message = {}
        return self.message

    def _remove_body_key(self, key: str) -> None:
        if self.message is None:
            return
        self.message.pop(key, None)
        if not self.message:
            self.message = None

    def _append_quick_reply(self, quick_reply: dict[str, Any]) -> OutgoingMessage:
        if self.sender_action is not None:
            raise ValidationError("can't add quick_replies to a message that has a sender_action")
        self._body().setdefault("quick_replies", []).append(quick_reply)
        return self
