"""Pytest configuration and shared fixtures."""

import logging

import pytest

from core.config import AppConfig, DiscordConfig, RelayConfig
from core.relay import RelayExecutor
from fakes import FakePlatform
from services.media_handler import MediaHandler
from services.webhook_provisioner import WebhookProvisioner
from storage.bridge_registry import BridgeRegistry


@pytest.fixture
def logger():
    return logging.getLogger("Lumina").getChild("Test")


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def registry(tmp_path):
    return BridgeRegistry(str(tmp_path / "discord.json"))


@pytest.fixture
def state(registry):
    return registry.load()


@pytest.fixture
def provisioner(platform, registry, logger):
    return WebhookProvisioner(platform, registry, logger)


@pytest.fixture
def relay(platform, provisioner, logger):
    return RelayExecutor(platform, provisioner, logger)


@pytest.fixture
def media(platform):
    return MediaHandler(platform)


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        discord=DiscordConfig(
            token="",
            command_prefixes=["루미나,"],
            webhook_name="루미나 브릿지",
            operator_role="operator",
        ),
        relay=RelayConfig(echo_source=True, size_limit=8_000_000),
        home=str(tmp_path),
        kakao_token=None,
    )
