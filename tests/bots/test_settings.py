"""Tests for bot settings validation and construction hooks."""

import pytest

from parley.bots.base import BaseBot
from parley.core.config_schema import BotSettings
from parley.core.exceptions import ConfigurationError


class _Minimal(BaseBot):
    def format_update(self, raw_update):
        return raw_update

    async def send_raw(self, raw_message):
        return raw_message

    async def _send_normalized_message(self, message):
        raise NotImplementedError


class CredentialBot(_Minimal):
    type = "credential"
    required_credentials = ("token", "secret")


class WebhookBot(_Minimal):
    type = "webhook"
    requires_webhook = True

    def __init__(self, settings=None, **kwargs):
        self.mounted = False
        super().__init__(settings, **kwargs)

    def create_mount_points(self):
        self.mounted = True


class TestSettings:
    def test_defaults(self):
        bot = _Minimal()
        assert isinstance(bot.settings, BotSettings)
        assert len(bot.id) == 12
        assert bot.credentials == {}

    def test_explicit_id(self):
        assert _Minimal({"id": "b1"}).id == "b1"

    def test_accepts_settings_model(self):
        assert _Minimal(BotSettings(id="b2")).id == "b2"

    def test_rejects_non_mapping(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            _Minimal("token")  # type: ignore[arg-type]

    def test_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="invalid settings"):
            _Minimal({"tokne": "x"})

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError, match="no credentials"):
            CredentialBot()

    def test_missing_single_credential(self):
        with pytest.raises(ConfigurationError, match="'secret' credentials"):
            CredentialBot({"credentials": {"token": "t"}})

    def test_credentials_present(self):
        bot = CredentialBot({"credentials": {"token": "t", "secret": "s"}})
        assert bot.credentials == {"token": "t", "secret": "s"}

    def test_webhook_required(self):
        with pytest.raises(ConfigurationError, match="must be defined with webhook_endpoint"):
            WebhookBot()

    def test_webhook_not_allowed(self):
        with pytest.raises(ConfigurationError, match="do not require webhook_endpoint"):
            _Minimal({"webhook_endpoint": "hooks/x"})

    def test_webhook_mount_hook_called(self):
        bot = WebhookBot({"webhook_endpoint": "/hooks/webhook/"})
        assert bot.mounted is True
        assert bot.webhook_endpoint == "hooks/webhook"


async def test_get_user_info_defaults_to_none():
    assert await _Minimal().get_user_info("u1") is None


def test_repr():
    assert repr(_Minimal({"id": "b1"})) == "_Minimal(type='base', id='b1')"
