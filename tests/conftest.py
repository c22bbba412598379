"""Shared test fixtures for parley."""

import asyncio
import os
import tempfile

import pytest

from parley.bots.base import BaseBot
from parley.bots.capabilities import all_capabilities
from parley.core.config import reset_config
from parley.core.exceptions import TransportError
from parley.messages.outgoing import OutgoingMessage
from parley.messages.results import SendResult
from parley.middleware.registry import reset_registry


class RecordingBot(BaseBot):
    """Bot whose transport records every send.

    ``fail_on`` holds 1-based indexes of normalized sends that should raise
    ``transport_error``.
    """

    type = "recording"
    capabilities = all_capabilities()

    def __init__(self, settings=None, **kwargs):
        super().__init__(settings, **kwargs)
        self.sent: list[OutgoingMessage] = []
        self.raw_sent: list = []
        self.fail_on: set[int] = set()
        self.transport_error = TransportError("platform down")

    def format_update(self, raw_update):
        return {"sender": {"id": raw_update["from"]}, "message": {"text": raw_update["body"]}}

    async def send_raw(self, raw_message):
        await asyncio.sleep(0)
        self.raw_sent.append(raw_message)
        return {"raw_ok": len(self.raw_sent)}

    async def _send_normalized_message(self, message):
        await asyncio.sleep(0)
        self.sent.append(message)
        n = len(self.sent)
        if n in self.fail_on:
            raise self.transport_error
        return SendResult(raw={"n": n}, recipient_id=message.recipient_id, message_id=f"m{n}")


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset the process-wide middleware registry and config between tests."""
    reset_registry()
    reset_config()
    yield
    reset_registry()
    reset_config()


@pytest.fixture
def bot():
    return RecordingBot({"id": "bot-1"})


@pytest.fixture
def bot_cls():
    return RecordingBot


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "logging": {"level": "debug"},
        "bots": {"console": {"id": "console-test"}},
    }
    config_path = os.path.join(tmp_dir, "parley.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path
