"""Sequential execution of one middleware phase.

Handlers run strictly one after another: each sees the payload as left by
the previous one.  A failing handler stops the phase; the failure is
re-raised as :class:`MiddlewareError` naming the phase and the handler.
"""

from __future__ import annotations

import inspect
from typing import Any

from loguru import logger

from parley.core.exceptions import MiddlewareError
from parley.messages.options import SendOptions
from parley.messages.outgoing import OutgoingMessage
from parley.middleware.registry import (
    CANCEL,
    SKIP,
    Middleware,
    MiddlewareContext,
    MiddlewareRegistry,
    Phase,
    get_registry,
)

INCOMING_MIDDLEWARE_MARKER = "incoming middleware"
OUTGOING_MIDDLEWARE_MARKER = "outgoing middleware"


async def run_incoming_middleware(
    bot: Any,
    update: dict[str, Any],
    *,
    registry: MiddlewareRegistry | None = None,
) -> Any:
    """Run incoming middleware over *update*.

    Returns the (possibly replaced) update, or :data:`CANCEL`.
    """
    if registry is None:
        registry = get_registry()
    ctx = MiddlewareContext(bot=bot, phase=Phase.INCOMING, update=update)
    return await _run_phase(registry.incoming_middleware, ctx, update)


async def run_outgoing_middleware(
    bot: Any,
    message: OutgoingMessage,
    options: SendOptions | None = None,
    *,
    registry: MiddlewareRegistry | None = None,
) -> OutgoingMessage | Any:
    """Run outgoing middleware over *message*.

    With ``options.ignore_middleware`` the message is returned untouched.
    Returns the (possibly replaced) message, or :data:`CANCEL`.
    """
    options = options or SendOptions()
    if options.ignore_middleware:
        return message
    if registry is None:
        registry = get_registry()
    ctx = MiddlewareContext(bot=bot, phase=Phase.OUTGOING, update=options.update, options=options)
    return await _run_phase(registry.outgoing_middleware, ctx, message)


async def _run_phase(entries: tuple[Middleware, ...], ctx: MiddlewareContext, payload: Any) -> Any:
    marker = INCOMING_MIDDLEWARE_MARKER if ctx.phase is Phase.INCOMING else OUTGOING_MIDDLEWARE_MARKER
    for entry in entries:
        if not entry.applies_to(payload):
            continue
        if ctx.phase is Phase.INCOMING:
            ctx.update = payload
        try:
            result = entry.handler(ctx, payload)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.warning(f"{ctx.phase.value.capitalize()} middleware {entry.name!r} failed: {exc}")
            raise MiddlewareError(str(exc), phase=ctx.phase.value, middleware_name=entry.name) from exc

        if result is None:
            continue
        if result is SKIP:
            logger.debug(f"{marker} {entry.name!r} skipped the remaining handlers")
            break
        if result is CANCEL:
            logger.debug(f"{marker} {entry.name!r} cancelled")
            return CANCEL
        expected = OutgoingMessage if ctx.phase is Phase.OUTGOING else dict
        if not isinstance(result, expected):
            raise MiddlewareError(
                f"handler {entry.name!r} returned {type(result).__name__}, "
                f"expected {expected.__name__} in {marker}",
                phase=ctx.phase.value,
                middleware_name=entry.name,
            )
        payload = result
    return payload
