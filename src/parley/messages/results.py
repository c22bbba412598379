"""Results returned by the send family."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from parley.messages.outgoing import OutgoingMessage


@dataclass
class SendResult:
    """Outcome of one ``send_message`` call.

    Platforms without a message id or recipient id in their response
    leave those fields as ``None``.  ``sent_message`` is the exact object
    handed to the transport, i.e. the message *after* outgoing middleware.

    Attributes:
        raw: The platform response body.
        recipient_id: Recipient as reported by the platform.
        message_id: Id of the sent message as reported by the platform.
        sent_message: The post-middleware message that was transmitted.
        cancelled: True when outgoing middleware cancelled the send.
    """

    raw: Any = None
    recipient_id: str | None = None
    message_id: str | None = None
    sent_message: OutgoingMessage | None = None
    cancelled: bool = False

    @classmethod
    def cancelled_for(cls, message: OutgoingMessage) -> SendResult:
        return cls(recipient_id=message.recipient_id, cancelled=True)


@dataclass
class ActionResult:
    """Reduced result of a sender-action send (typing indicator)."""

    recipient_id: str | None = None
