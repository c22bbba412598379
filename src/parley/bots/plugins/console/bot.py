"""Console bot — the terminal as a chat platform, rendered with rich.

Typed lines become Messenger-style updates; outgoing messages are printed.
Useful for developing middleware and update handlers without a platform
account.
"""

from __future__ import annotations

import itertools
import time
from collections.abc import Mapping
from typing import Any

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from parley.bots.base import BaseBot
from parley.bots.capabilities import (
    AttachmentFlags,
    Capabilities,
    Receives,
    SenderActionFlags,
    Sends,
)
from parley.core.config_schema import BotSettings
from parley.core.types import Update
from parley.messages.outgoing import OutgoingMessage
from parley.messages.results import SendResult

HELP_TEXT = (
    "Type a message to send it to the bot as an update.\n\n"
    "Commands:\n"
    "  /help  — Show this help\n"
    "  /exit  — Quit"
)


class ConsoleBot(BaseBot):
    """Bot whose only user is whoever sits at the terminal.

    Args:
        settings: Bot settings (``id`` is the only one that matters here).
        console: Rich console to read from and render to.
        user_id: Sender id given to typed lines.
    """

    type = "console"
    capabilities = Capabilities(
        receives=Receives(text=True),
        sends=Sends(
            text=True,
            quick_reply=True,
            sender_action=SenderActionFlags(typing_on=True, typing_off=True, mark_seen=True),
            attachment=AttachmentFlags(audio=True, file=True, image=True, video=True),
        ),
    )

    def __init__(
        self,
        settings: BotSettings | Mapping[str, Any] | None = None,
        *,
        console: Console | None = None,
        user_id: str = "console_user",
        **kwargs: Any,
    ):
        super().__init__(settings, **kwargs)
        self.console = console or Console()
        self.user_id = user_id
        self._running = False
        self._message_ids = itertools.count(1)

    # ── Transport ──────────────────────────────────────────────────

    def format_update(self, raw_update: Any) -> Update:
        """Wrap a typed line into a normalized text update."""
        message_id = next(self._message_ids)
        return {
            "raw": raw_update,
            "sender": {"id": self.user_id},
            "recipient": {"id": self.id},
            "timestamp": int(time.time() * 1000),
            "message": {
                "mid": f"{self.id}.{message_id}",
                "seq": message_id,
                "text": str(raw_update),
            },
        }

    async def send_raw(self, raw_message: Any) -> Any:
        self.console.print(Panel(escape(repr(raw_message)), title="raw"))
        return {"echo": raw_message}

    async def _send_normalized_message(self, message: OutgoingMessage) -> SendResult:
        if message.sender_action == "typing_on":
            self.console.print("[dim]typing…[/dim]")
        elif message.sender_action:
            self.console.print(f"[dim]({message.sender_action})[/dim]")

        if message.text is not None:
            self.console.print(f"[bold green]Bot:[/] {escape(message.text)}")
        if message.attachment is not None:
            kind = message.attachment.get("type", "attachment")
            url = (message.attachment.get("payload") or {}).get("url", "")
            label = escape(f"[{kind}] {url}")
            self.console.print(f"[bold green]Bot:[/] {label}")
        if message.quick_replies:
            titles = [qr.get("title", qr.get("content_type", "?")) for qr in message.quick_replies]
            self.console.print("  " + "  ".join(f"[reverse] {escape(str(t))} [/reverse]" for t in titles))

        message_id = None if message.sender_action else f"{self.id}.out.{next(self._message_ids)}"
        return SendResult(
            raw={"recipient_id": message.recipient_id, "message_id": message_id},
            recipient_id=message.recipient_id,
            message_id=message_id,
        )

    # ── Interactive loop ───────────────────────────────────────────

    async def handle_line(self, line: str) -> bool:
        """Process one typed line. Returns False when the loop should stop."""
        line = line.strip()
        if not line:
            return True
        if line.lower() == "/exit":
            self.console.print("Goodbye!")
            return False
        if line.lower() == "/help":
            self.console.print(Panel(HELP_TEXT, title="Help"))
            return True
        await self.handle_raw_update(line)
        return True

    async def run(self) -> None:
        """Read lines until ``/exit`` or EOF, emitting each as an update."""
        self._running = True
        self.console.print(Panel("Type a message to chat. Commands: /help, /exit", title="Parley Console"))
        logger.info(f"Console bot {self.id} started")

        while self._running:
            try:
                line = self.console.input("[bold cyan]You:[/] ")
            except (EOFError, KeyboardInterrupt):
                self.console.print("\nGoodbye!")
                break
            if not await self.handle_line(line):
                break

        self._running = False

    async def stop(self) -> None:
        self._running = False
