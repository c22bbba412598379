"""Outgoing message envelope, send options and results."""

from .options import SendOptions, pick_callback, resolve_send_args, settle, settle_send
from .outgoing import ATTACHMENT_TYPES, SENDER_ACTIONS, OutgoingMessage
from .results import ActionResult, SendResult

__all__ = [
    "ATTACHMENT_TYPES",
    "SENDER_ACTIONS",
    "ActionResult",
    "OutgoingMessage",
    "SendOptions",
    "SendResult",
    "pick_callback",
    "resolve_send_args",
    "settle",
    "settle_send",
]
