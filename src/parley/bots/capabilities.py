"""Capability descriptor — what a bot can receive and send.

Declared once per bot class (or passed at construction) and read-only
afterwards.  Anything not declared here has to go through raw mode:
bot events on the way in, ``send_raw`` on the way out.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from parley.core.exceptions import ConfigurationError
from parley.messages.outgoing import OutgoingMessage


@dataclass(frozen=True)
class AttachmentFlags:
    audio: bool = False
    file: bool = False
    image: bool = False
    video: bool = False


@dataclass(frozen=True)
class ReceivedAttachmentFlags(AttachmentFlags):
    location: bool = False
    # Messenger sends this when a user message only contains a URL
    fallback: bool = False


@dataclass(frozen=True)
class SenderActionFlags:
    typing_on: bool = False
    typing_off: bool = False
    mark_seen: bool = False


@dataclass(frozen=True)
class Receives:
    text: bool = False
    attachment: ReceivedAttachmentFlags = field(default_factory=ReceivedAttachmentFlags)
    echo: bool = False
    read: bool = False
    postback: bool = False
    # set when the platform reports which quick reply button was tapped
    quick_reply: bool = False


@dataclass(frozen=True)
class Sends:
    text: bool = False
    quick_reply: bool = False
    location_quick_reply: bool = False
    sender_action: SenderActionFlags = field(default_factory=SenderActionFlags)
    attachment: AttachmentFlags = field(default_factory=AttachmentFlags)


@dataclass(frozen=True)
class Capabilities:
    receives: Receives = field(default_factory=Receives)
    sends: Sends = field(default_factory=Sends)

    def unsupported_features(self, message: OutgoingMessage) -> list[str]:
        """Return the dotted names of ``sends`` flags *message* needs but the bot lacks."""
        if message.raw is not None:
            return []
        sends = self.sends
        missing: list[str] = []

        if message.text is not None and not sends.text:
            missing.append("text")

        attachment = message.attachment
        if attachment is not None:
            kind = attachment.get("type")
            if not getattr(sends.attachment, str(kind), False):
                missing.append(f"attachment.{kind}")

        for quick_reply in message.quick_replies or []:
            if quick_reply.get("content_type") == "location":
                if not sends.location_quick_reply and "location_quick_reply" not in missing:
                    missing.append("location_quick_reply")
            elif not sends.quick_reply and "quick_reply" not in missing:
                missing.append("quick_reply")

        if message.sender_action is not None and not getattr(sends.sender_action, message.sender_action, False):
            missing.append(f"sender_action.{message.sender_action}")

        return missing

    def ensure_can_send(self, message: OutgoingMessage, bot_type: str = "bot") -> None:
        """Raise ``ConfigurationError`` if *message* uses an undeclared feature."""
        missing = self.unsupported_features(message)
        if missing:
            raise ConfigurationError(f"bots of type {bot_type!r} can't send: {', '.join(missing)}")


def all_capabilities() -> Capabilities:
    """Capabilities of a platform supporting everything in the envelope."""
    return Capabilities(
        receives=Receives(
            text=True,
            attachment=ReceivedAttachmentFlags(audio=True, file=True, image=True, video=True, location=True),
            echo=True,
            read=True,
            postback=True,
            quick_reply=True,
        ),
        sends=Sends(
            text=True,
            quick_reply=True,
            location_quick_reply=True,
            sender_action=SenderActionFlags(typing_on=True, typing_off=True, mark_seen=True),
            attachment=AttachmentFlags(audio=True, file=True, image=True, video=True),
        ),
    )
