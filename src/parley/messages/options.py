"""Per-call send options and the trailing-argument shim.

Every send-family method takes ``(..., options=None, callback=None)``.
For callers ported from callback-style code the two slots are matched by
shape rather than position:

- the first callable found becomes the callback;
- the first ``SendOptions`` or mapping found becomes the options;
- a second options object, or a value of any other shape, is a
  :class:`~parley.core.exceptions.ValidationError`.

``options.on_complete`` is used only when no callable argument is given.
Once a callback is known, shape errors are reported to it like any other
failure of the send.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from parley.core.exceptions import ValidationError
from parley.core.types import SendCallback, Update

T = TypeVar("T")


@dataclass(frozen=True)
class SendOptions:
    """Options for a single send.

    Attributes:
        ignore_middleware: Skip the outgoing middleware phase entirely.
        update: The inbound update that triggered this send.  Set by
            :meth:`BaseBot.with_update`; outgoing middleware reads it.
        on_complete: ``callback(err, result)`` used instead of raising.
    """

    ignore_middleware: bool = False
    update: Update | None = None
    on_complete: SendCallback | None = None

    @classmethod
    def coerce(cls, value: SendOptions | Mapping[str, Any] | None) -> SendOptions:
        if value is None:
            return cls()
        if isinstance(value, SendOptions):
            return value
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(value) - known
        if unknown:
            raise ValidationError(f"unknown send options: {sorted(unknown)}")
        return cls(**dict(value))

    def with_update(self, update: Update) -> SendOptions:
        return dataclasses.replace(self, update=update)


def resolve_send_args(*extra: Any) -> tuple[SendOptions, SendCallback | None]:
    """Split trailing ``(options, callback)`` arguments by shape.

    Returns a fresh ``SendOptions`` with ``on_complete`` cleared (the
    callback is returned separately) so nested sends never fire it.
    """
    callback: SendCallback | None = None
    options: SendOptions | None = None

    for value in extra:
        if value is None:
            continue
        if callable(value):
            if callback is None:
                callback = value
            continue
        if isinstance(value, SendOptions | Mapping):
            if options is not None:
                raise ValidationError("send options given twice")
            options = SendOptions.coerce(value)
            continue
        raise ValidationError(
            f"expected send options (mapping or SendOptions) or a callback, got {type(value).__name__}"
        )

    options = options or SendOptions()
    if callback is None:
        callback = options.on_complete
    return dataclasses.replace(options, on_complete=None), callback


def pick_callback(*extra: Any) -> SendCallback | None:
    """Find the callback among trailing arguments without validating the rest.

    Same choice as :func:`resolve_send_args`: the first callable, else the
    first ``on_complete`` set on an options object.
    """
    for value in extra:
        if callable(value):
            return value
    for value in extra:
        if isinstance(value, SendOptions):
            return value.on_complete
        if isinstance(value, Mapping):
            on_complete = value.get("on_complete")
            return on_complete if callable(on_complete) else None
    return None


async def settle_send(
    options: Any,
    callback: Any,
    operation: Callable[[SendOptions], Awaitable[T]],
) -> Any:
    """Resolve ``(options, callback)`` and settle ``operation(send_options)``.

    A malformed argument is reported to the callback when one can be
    found, and raised otherwise.
    """
    handler = pick_callback(options, callback)

    async def run() -> T:
        send_options, _ = resolve_send_args(options, callback)
        return await operation(send_options)

    return await settle(handler, run())


async def settle(callback: SendCallback | None, operation: Awaitable[T]) -> Any:
    """Await *operation*; with a callback, report ``(err, result)`` to it instead of raising.

    Returns the operation's result, or the callback's return value.
    """
    if callback is None:
        return await operation
    try:
        result = await operation
    except Exception as err:
        return await _invoke(callback, err, None)
    return await _invoke(callback, None, result)


async def _invoke(callback: SendCallback, err: BaseException | None, result: Any) -> Any:
    outcome = callback(err, result)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome
