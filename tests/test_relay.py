"""Tests for the webhook fan-out executor."""

import pytest

from core.errors import DeliveryError, ProvisionError
from core.models import BridgeState, RelayPayload
from core.relay import destinations, speaker_identity
from fakes import make_message


def test_speaker_prefers_nickname():
    assert speaker_identity(make_message(nick="Ali", name="alice")) == (
        "Ali",
        "https://cdn.example/avatars/alice.png",
    )


def test_speaker_falls_back_to_username():
    name, _ = speaker_identity(make_message(nick=None, name="alice"))
    assert name == "alice"


def test_destinations_include_source_first():
    state = BridgeState(linked_channels={"1": ["2", "3"]})

    assert destinations(state, "1") == ["1", "2", "3"]
    assert destinations(state, "1", include_source=False) == ["2", "3"]
    assert destinations(state, "9") == ["9"]


@pytest.mark.asyncio
async def test_unlinked_channel_delivers_only_to_itself(relay, platform, state):
    payload = RelayPayload(content="hi", speaker_name="Ali")

    await relay.relay(state, "9", payload, destinations(state, "9"))

    assert [channel for channel, _ in platform.executed] == ["9"]


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_siblings(relay, platform, state):
    platform.fail_execute.add("2")
    payload = RelayPayload(content="hi")

    with pytest.raises(DeliveryError) as info:
        await relay.relay(state, "1", payload, ["1", "2", "3"])

    assert sorted(channel for channel, _ in platform.executed) == ["1", "3"]
    assert list(info.value.failures) == ["2"]
    assert isinstance(info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_provision_failure_is_reported_per_destination(relay, platform, state):
    platform.fail_create.add("3")

    with pytest.raises(DeliveryError) as info:
        await relay.relay(state, "1", RelayPayload(content="hi"), ["1", "3"])

    assert isinstance(info.value.failures["3"], ProvisionError)
    assert [channel for channel, _ in platform.executed] == ["1"]
    assert "3" not in state.webhooks


@pytest.mark.asyncio
async def test_first_failed_destination_is_the_cause(relay, platform, state):
    platform.fail_execute.update({"2", "3"})

    with pytest.raises(DeliveryError) as info:
        await relay.relay(state, "1", RelayPayload(content="hi"), ["1", "3", "2"])

    assert list(info.value.failures) == ["3", "2"]
    assert info.value.__cause__ is info.value.failures["3"]
