"""Update-bound bot view.

While an inbound update is being processed, handlers get a view of the bot
whose sends carry that update in ``SendOptions.update``.  Outgoing
middleware can then tell which update a reply answers.

Only ``send_message`` differs from the wrapped bot.  The helpers come from
:class:`SendMixin` and therefore go through it; every other attribute is
read from the wrapped bot.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from parley.bots.sending import SendMixin, SendOptionsArg
from parley.core.types import SendCallback, Update
from parley.messages.options import SendOptions, settle_send
from parley.messages.outgoing import OutgoingMessage

if TYPE_CHECKING:
    from parley.bots.base import BaseBot


class UpdateBoundBot(SendMixin):
    """A bot plus the update its sends should be tagged with.

    The view is not a :class:`~parley.bots.base.BaseBot` subclass, so
    ``isinstance(ctx.bot, BaseBot)`` is False inside incoming middleware.
    The wrapped bot is ``view.bot``; ``type``, ``id`` and the rest of the
    bot's attributes read through unchanged.
    """

    def __init__(self, bot: BaseBot, update: Update):
        self.bot = bot
        self.update = update

    async def send_message(
        self,
        message: OutgoingMessage | Mapping[str, Any],
        options: SendOptionsArg = None,
        callback: SendCallback | None = None,
    ) -> Any:
        async def send(send_options: SendOptions) -> Any:
            return await self.bot.send_message(message, send_options.with_update(self.update))

        return await settle_send(options, callback, send)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the view itself
        if name == "bot":
            raise AttributeError(name)
        return getattr(self.bot, name)

    def __repr__(self) -> str:
        return f"UpdateBoundBot({self.bot!r})"
