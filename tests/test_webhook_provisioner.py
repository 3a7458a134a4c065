"""Tests for lazy webhook provisioning."""

import asyncio

import pytest

from core.errors import ProvisionError
from core.models import WebhookHandle


@pytest.mark.asyncio
async def test_sequential_calls_create_once(provisioner, platform, state):
    first = await provisioner.get_or_create(state, "10")
    second = await provisioner.get_or_create(state, "10")

    assert first == second
    assert first.token == second.token
    assert platform.created == ["10"]


@pytest.mark.asyncio
async def test_new_webhook_is_persisted(provisioner, registry, state):
    handle = await provisioner.get_or_create(state, "10")

    assert registry.load().webhooks == {"10": handle}


@pytest.mark.asyncio
async def test_cached_handle_skips_platform(provisioner, platform, state):
    state.webhooks["10"] = WebhookHandle(id="1", token="tok")

    assert await provisioner.get_or_create(state, "10") == WebhookHandle(id="1", token="tok")
    assert platform.created == []


@pytest.mark.asyncio
async def test_creation_failure_raises_provision_error(provisioner, platform, registry, state):
    platform.fail_create.add("10")

    with pytest.raises(ProvisionError) as info:
        await provisioner.get_or_create(state, "10")

    assert info.value.channel_id == "10"
    assert state.webhooks == {}
    assert registry.load().webhooks == {}


@pytest.mark.asyncio
async def test_concurrent_calls_race_and_last_write_wins(provisioner, platform, registry, state):
    """The provisioner is deliberately unlocked: two in-flight calls for the
    same channel both create a webhook and the later one is what remains."""
    first, second = await asyncio.gather(
        provisioner.get_or_create(state, "10"),
        provisioner.get_or_create(state, "10"),
    )

    assert platform.created == ["10", "10"]
    assert first != second
    assert state.webhooks["10"] == second
    assert registry.load().webhooks["10"] == second
