"""Tests for the OutgoingMessage builder."""

import pytest

from parley.core.exceptions import ValidationError
from parley.messages.outgoing import OutgoingMessage

pytestmark = pytest.mark.smoke


class TestBuilderChaining:
    def test_methods_return_same_instance(self):
        msg = OutgoingMessage()
        assert msg.add_recipient_by_id("u1") is msg
        assert msg.add_text("hi") is msg
        assert msg.add_quick_replies([]) is msg

    def test_text_with_quick_replies(self):
        replies = [{"content_type": "text", "title": "A", "payload": "A"}]
        msg = OutgoingMessage().add_recipient_by_id("u1").add_text("Pick").add_quick_replies(replies)
        assert msg.to_dict() == {
            "recipient": {"id": "u1"},
            "message": {"text": "Pick", "quick_replies": replies},
        }

    def test_attachment_from_url(self):
        msg = OutgoingMessage().add_attachment_from_url("image", "https://example.com/cat.png")
        assert msg.attachment == {"type": "image", "payload": {"url": "https://example.com/cat.png"}}

    @pytest.mark.parametrize("method,kind", [
        ("add_image_from_url", "image"),
        ("add_audio_from_url", "audio"),
        ("add_video_from_url", "video"),
        ("add_file_from_url", "file"),
    ])
    def test_typed_url_shortcuts(self, method, kind):
        msg = getattr(OutgoingMessage(), method)("https://example.com/x")
        assert msg.attachment["type"] == kind

    def test_phone_number_recipient(self):
        msg = OutgoingMessage().add_recipient_by_phone_number("+15550100")
        assert msg.recipient == {"phone_number": "+15550100"}
        assert msg.recipient_id is None


class TestExclusiveContent:
    def test_text_after_attachment_fails(self):
        msg = OutgoingMessage().add_image_from_url("https://example.com/x")
        with pytest.raises(ValidationError, match="attachment"):
            msg.add_text("caption")

    def test_text_after_sender_action_fails(self):
        msg = OutgoingMessage().add_typing_on_sender_action()
        with pytest.raises(ValidationError, match="sender_action"):
            msg.add_text("hi")

    def test_attachment_after_text_fails(self):
        with pytest.raises(ValidationError):
            OutgoingMessage().add_text("hi").add_image_from_url("https://example.com/x")

    def test_sender_action_after_body_fails(self):
        with pytest.raises(ValidationError, match="body"):
            OutgoingMessage().add_text("hi").add_mark_seen_sender_action()

    def test_second_text_fails(self):
        with pytest.raises(ValidationError):
            OutgoingMessage().add_text("a").add_text("b")

    def test_second_recipient_fails(self):
        with pytest.raises(ValidationError, match="recipient"):
            OutgoingMessage().add_recipient_by_id("u1").add_recipient_by_id("u2")

    def test_unknown_sender_action_fails(self):
        with pytest.raises(ValidationError, match="unknown sender_action"):
            OutgoingMessage().add_sender_action("dancing")

    def test_quick_replies_must_be_list(self):
        with pytest.raises(ValidationError):
            OutgoingMessage().add_quick_replies({"title": "A"})  # type: ignore[arg-type]


class TestRemoval:
    def test_remove_then_replace_text(self):
        msg = OutgoingMessage().add_text("a").remove_text().add_text("b")
        assert msg.text == "b"

    def test_removing_last_body_key_clears_body(self):
        msg = OutgoingMessage().add_text("a").remove_text()
        assert msg.message is None
        msg.add_typing_off_sender_action()
        assert msg.sender_action == "typing_off"

    def test_remove_recipient_and_sender_action(self):
        msg = OutgoingMessage().add_recipient_by_id("u1").add_typing_on_sender_action()
        msg.remove_recipient().remove_sender_action()
        assert msg.recipient is None and msg.sender_action is None

    def test_remove_attachment_and_quick_replies(self):
        msg = OutgoingMessage().add_image_from_url("https://example.com/x").add_payloadless_quick_reply("Yes")
        msg.remove_attachment().remove_quick_replies()
        assert msg.message is None


class TestQuickReplyShortcuts:
    def test_payloadless_and_location(self):
        msg = OutgoingMessage().add_text("Where?").add_payloadless_quick_reply("Home").add_location_quick_reply()
        assert msg.quick_replies == [
            {"content_type": "text", "title": "Home", "payload": "Home"},
            {"content_type": "location"},
        ]


class TestConversion:
    def test_from_dict_keeps_unknown_keys(self):
        data = {"recipient": {"id": "u1"}, "message": {"text": "hi"}, "messaging_type": "RESPONSE"}
        msg = OutgoingMessage.from_dict(data)
        assert msg.extra == {"messaging_type": "RESPONSE"}
        assert msg.to_dict() == data

    def test_from_dict_copies_input(self):
        data = {"recipient": {"id": "u1"}, "message": {"text": "hi"}}
        msg = OutgoingMessage.from_dict(data)
        msg.message["text"] = "changed"
        assert data["message"]["text"] == "hi"

    def test_from_dict_passes_instances_through(self):
        msg = OutgoingMessage()
        assert OutgoingMessage.from_dict(msg) is msg

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ValidationError):
            OutgoingMessage.from_dict("hi")  # type: ignore[arg-type]


class TestValidate:
    def test_raw_is_always_sendable(self):
        OutgoingMessage(raw={"chat_id": 1, "text": "hi"}).validate()

    def test_missing_recipient(self):
        with pytest.raises(ValidationError, match="recipient"):
            OutgoingMessage().add_text("hi").validate()

    def test_missing_content(self):
        with pytest.raises(ValidationError, match="no text"):
            OutgoingMessage().add_recipient_by_id("u1").validate()

    def test_quick_replies_alone_are_not_content(self):
        msg = OutgoingMessage().add_recipient_by_id("u1").add_payloadless_quick_reply("A")
        with pytest.raises(ValidationError):
            msg.validate()
