"""Bots — the shared message pipeline and platform integrations."""

from .base import BaseBot
from .capabilities import (
    AttachmentFlags,
    Capabilities,
    ReceivedAttachmentFlags,
    Receives,
    SenderActionFlags,
    Sends,
    all_capabilities,
)
from .hub import BotHub
from .patched import UpdateBoundBot
from .sending import DEFAULT_BUTTON_PROMPT, MAX_BUTTONS, SendMixin, build_button_message

__all__ = [
    "DEFAULT_BUTTON_PROMPT",
    "MAX_BUTTONS",
    "AttachmentFlags",
    "BaseBot",
    "BotHub",
    "Capabilities",
    "ReceivedAttachmentFlags",
    "Receives",
    "SendMixin",
    "SenderActionFlags",
    "Sends",
    "UpdateBoundBot",
    "all_capabilities",
    "build_button_message",
]
