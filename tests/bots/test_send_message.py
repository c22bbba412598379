"""Tests for the send pipeline (send_message)."""

import pytest

from parley.bots.capabilities import Capabilities, Sends
from parley.core.exceptions import ConfigurationError, TransportError, ValidationError
from parley.messages.options import SendOptions
from parley.messages.outgoing import OutgoingMessage
from parley.messages.results import SendResult
from parley.middleware.registry import CANCEL, MiddlewareRegistry, get_registry

pytestmark = pytest.mark.smoke


def text_message(recipient="u1", text="hi"):
    return OutgoingMessage().add_recipient_by_id(recipient).add_text(text)


class TestSendMessage:
    async def test_normalizes_dicts(self, bot):
        result = await bot.send_message({"recipient": {"id": "u1"}, "message": {"text": "hi"}})

        assert isinstance(result, SendResult)
        assert isinstance(bot.sent[0], OutgoingMessage)
        assert result.sent_message is bot.sent[0]
        assert result.recipient_id == "u1"
        assert result.message_id == "m1"
        assert result.raw == {"n": 1}

    async def test_outgoing_middleware_runs_once_and_result_is_its_output(self, bot):
        calls: list[OutgoingMessage] = []
        replacement = text_message(text="bonjour")

        def translate(ctx, message):
            calls.append(message)
            return replacement

        get_registry().use("translate", "outgoing", translate)
        original = text_message()
        result = await bot.send_message(original)

        assert calls == [original]
        assert result.sent_message is replacement
        assert bot.sent == [replacement]

    async def test_middleware_mutation_in_place(self, bot):
        def shout(ctx, msg):
            msg.remove_text().add_text("HI")

        get_registry().use("shout", "outgoing", shout)
        message = text_message()
        result = await bot.send_message(message)
        assert result.sent_message is message
        assert message.text == "HI"

    async def test_ignore_middleware(self, bot):
        get_registry().use("cancel", "outgoing", lambda ctx, msg: CANCEL)
        result = await bot.send_message(text_message(), {"ignore_middleware": True})
        assert not result.cancelled
        assert len(bot.sent) == 1

    async def test_cancel_skips_transport(self, bot):
        get_registry().use("cancel", "outgoing", lambda ctx, msg: CANCEL)
        result = await bot.send_message(text_message())
        assert result.cancelled is True
        assert result.recipient_id == "u1"
        assert result.sent_message is None
        assert bot.sent == []

    async def test_bot_specific_registry(self, bot_cls):
        registry = MiddlewareRegistry()
        seen = []
        registry.use("mine", "outgoing", lambda ctx, msg: seen.append(ctx.bot))
        get_registry().use("global", "outgoing", lambda ctx, msg: CANCEL)

        bot = bot_cls(middleware=registry)
        result = await bot.send_message(text_message())

        assert seen == [bot]
        assert not result.cancelled

    async def test_raw_envelope_goes_to_send_raw(self, bot):
        result = await bot.send_message({"raw": {"chat_id": 1, "text": "hi"}})
        assert bot.raw_sent == [{"chat_id": 1, "text": "hi"}]
        assert bot.sent == []
        assert result.raw == {"raw_ok": 1}
        assert result.sent_message.raw == {"chat_id": 1, "text": "hi"}

    async def test_invalid_envelope_never_reaches_transport(self, bot):
        with pytest.raises(ValidationError, match="recipient"):
            await bot.send_message({"message": {"text": "hi"}})
        assert bot.sent == []

    async def test_unsupported_feature_fails_fast(self, bot_cls):
        bot = bot_cls(capabilities=Capabilities(sends=Sends(text=True)))
        with pytest.raises(ConfigurationError, match="attachment.image"):
            await bot.send_message(OutgoingMessage().add_recipient_by_id("u1").add_image_from_url("https://x/y"))
        assert bot.sent == []

    async def test_transport_error_passes_through(self, bot):
        bot.fail_on = {1}
        with pytest.raises(TransportError) as info:
            await bot.send_message(text_message())
        assert info.value is bot.transport_error


class TestCallbacks:
    async def test_callback_receives_result(self, bot):
        received = []
        returned = await bot.send_message(text_message(), lambda err, res: received.append((err, res)) or "done")
        assert returned == "done"
        assert received[0][0] is None
        assert received[0][1].message_id == "m1"

    async def test_callback_receives_error_instead_of_raise(self, bot):
        bot.fail_on = {1}
        received = []
        await bot.send_message(text_message(), None, lambda err, res: received.append((err, res)))
        assert received == [(bot.transport_error, None)]

    async def test_callback_and_options_in_either_order(self, bot):
        get_registry().use("cancel", "outgoing", lambda ctx, msg: CANCEL)
        received = []

        def callback(err, res):
            received.append(res)

        await bot.send_message(text_message(), callback, {"ignore_middleware": True})
        await bot.send_message(text_message(), SendOptions(ignore_middleware=True), callback)

        assert [r.cancelled for r in received] == [False, False]

    async def test_on_complete(self, bot):
        received = []
        await bot.send_message(text_message(), SendOptions(on_complete=lambda err, res: received.append(res)))
        assert received[0].message_id == "m1"

    async def test_bad_trailing_argument_goes_to_callback(self, bot):
        errors = []
        await bot.send_text_message_to("hi", "u1", "oops", lambda err, res: errors.append(err))

        assert isinstance(errors[0], ValidationError)
        assert "got str" in str(errors[0])
        assert bot.sent == []

    async def test_unknown_option_goes_to_callback(self, bot):
        errors = []
        await bot.send_message(text_message(), {"ignoreMiddleware": True}, lambda err, res: errors.append(err))
        assert "unknown send options" in str(errors[0])

    async def test_duplicate_options_go_to_on_complete(self, bot):
        errors = []
        options = SendOptions(on_complete=lambda err, res: errors.append(err))
        await bot.send_cascade_to([{"text": "hi"}], "u1", options, {"ignore_middleware": True})

        assert "twice" in str(errors[0])
        assert bot.sent == []

    async def test_bad_trailing_argument_without_callback_raises(self, bot):
        with pytest.raises(ValidationError, match="got str"):
            await bot.send_message(text_message(), "oops")

    async def test_update_bound_view_reports_to_callback(self, bot):
        errors = []
        bound = bot.with_update({"sender": {"id": "u1"}})
        await bound.send_is_typing_message_to("u1", 42, lambda err, res: errors.append(err))
        assert isinstance(errors[0], ValidationError)
