"""End-to-end routing tests: plain relay and unfurl requests."""

from dataclasses import replace
from types import SimpleNamespace

import pytest

from core.message_router import MessageRouter, parse_unfurl_request
from core.replies import SERVER_ERROR
from core.unfurler import Unfurler, create_unfurler
from fakes import make_message
from providers.errors import NotLoggedInError


class StubPixiv:
    def __init__(self, error=None):
        self.illusts = []
        self.users = []
        self.error = error

    async def process_illust(self, context, illust_id):
        self.illusts.append((context.message.id, illust_id))
        if self.error:
            raise self.error

    async def process_user(self, context, user_id):
        self.users.append(user_id)


def build_router(config, state, platform, relay, media, logger, pixiv=None):
    unfurler = create_unfurler(logger, pixiv or StubPixiv(), syosetu_handler=None)
    return MessageRouter(config, state, platform, unfurler, relay, media, logger)


@pytest.mark.parametrize("content, expected", [
    ("루미나, https://www.pixiv.net/i/123", "https://www.pixiv.net/i/123"),
    ("루미나,   https://www.pixiv.net/i/123 ", "https://www.pixiv.net/i/123"),
    ("루미나, https://www.pixiv.net/i/123 please", None),
    ("hey https://www.pixiv.net/i/123", None),
    ("루미나, 픽시브", None),
    ("루미나, ftp://www.pixiv.net/i/123", None),
])
def test_parse_unfurl_request(content, expected):
    url = parse_unfurl_request(content, ["루미나,"])
    assert (url.geturl() if url else None) == expected


@pytest.mark.asyncio
async def test_plain_message_fans_out_with_author_identity(config, state, platform, relay, media, logger):
    state.linked_channels["100"] = ["200", "300"]
    router = build_router(config, state, platform, relay, media, logger)

    handled = await router.on_message(make_message("hello", channel_id="100", nick="Ali"))

    assert handled is False
    assert sorted(channel for channel, _ in platform.executed) == ["100", "200", "300"]
    for _, payload in platform.executed:
        assert payload.content == "hello"
        assert payload.speaker_name == "Ali"
        assert payload.speaker_avatar_url == "https://cdn.example/avatars/alice.png"


@pytest.mark.asyncio
async def test_plain_message_uses_username_without_nickname(config, state, platform, relay, media, logger):
    state.linked_channels["100"] = ["200"]
    router = build_router(config, state, platform, relay, media, logger)

    await router.on_message(make_message("hello", channel_id="100", nick=None, name="alice"))

    assert {payload.speaker_name for _, payload in platform.executed} == {"alice"}


@pytest.mark.asyncio
async def test_linked_only_when_echo_disabled(config, state, platform, relay, media, logger):
    config = replace(config, relay=replace(config.relay, echo_source=False))
    state.linked_channels["100"] = ["200", "300"]
    router = build_router(config, state, platform, relay, media, logger)

    await router.on_message(make_message("hello", channel_id="100"))

    assert sorted(channel for channel, _ in platform.executed) == ["200", "300"]


@pytest.mark.asyncio
async def test_unlinked_channel_is_not_relayed(config, state, platform, relay, media, logger):
    router = build_router(config, state, platform, relay, media, logger)

    await router.on_message(make_message("hello", channel_id="100"))

    assert platform.executed == []
    assert platform.created == []


@pytest.mark.asyncio
async def test_attachments_and_embeds_are_relayed(config, state, platform, relay, media, logger):
    state.linked_channels["100"] = ["200"]
    platform.downloads = {"https://cdn.example/cat.png": b"cat"}
    embed = SimpleNamespace(to_dict=lambda: {"title": "link preview"})
    message = make_message(
        "",
        channel_id="100",
        attachments=[SimpleNamespace(url="https://cdn.example/cat.png", filename="cat.png")],
        embeds=[embed],
    )
    router = build_router(config, state, platform, relay, media, logger)

    await router.on_message(message)

    _, payload = platform.executed[0]
    assert payload.attachments == [(b"cat", "cat.png")]
    assert payload.embeds == [{"title": "link preview"}]


@pytest.mark.asyncio
async def test_partial_delivery_failure_is_reported(config, state, platform, relay, media, logger):
    state.linked_channels["100"] = ["200", "300"]
    platform.fail_execute.add("200")
    router = build_router(config, state, platform, relay, media, logger)

    await router.on_message(make_message("hello", channel_id="100"))

    assert sorted(channel for channel, _ in platform.executed) == ["100", "300"]
    assert [message.content for message in platform.sent] == [SERVER_ERROR]


@pytest.mark.asyncio
async def test_unfurl_invokes_illust_handler_and_deletes(config, state, platform, relay, media, logger):
    pixiv = StubPixiv()
    router = build_router(config, state, platform, relay, media, logger, pixiv=pixiv)
    message = make_message("루미나, https://www.pixiv.net/i/123")

    handled = await router.on_message(message)

    assert handled is True
    assert pixiv.illusts == [(message.id, "123")]
    assert pixiv.users == []
    assert platform.deleted == [message]


@pytest.mark.asyncio
async def test_unfurl_in_dm_keeps_message(config, state, platform, relay, media, logger):
    pixiv = StubPixiv()
    router = build_router(config, state, platform, relay, media, logger, pixiv=pixiv)
    message = make_message("루미나, https://www.pixiv.net/u/5", guild=False)

    assert await router.on_message(message) is True
    assert pixiv.users == ["5"]
    assert platform.deleted == []


@pytest.mark.asyncio
async def test_failed_unfurl_reports_and_keeps_message(config, state, platform, relay, media, logger):
    pixiv = StubPixiv(error=NotLoggedInError("no session"))
    router = build_router(config, state, platform, relay, media, logger, pixiv=pixiv)
    message = make_message("루미나, https://www.pixiv.net/i/123")

    assert await router.on_message(message) is True
    assert platform.deleted == []
    assert [sent.content for sent in platform.sent] == [":x: 로그인부터 해야 해요!"]


@pytest.mark.asyncio
async def test_unmatched_url_falls_through_to_relay(config, state, platform, relay, media, logger):
    state.linked_channels["100"] = ["200"]
    router = build_router(config, state, platform, relay, media, logger)
    message = make_message("루미나, https://example.com/i/123", channel_id="100")

    assert await router.on_message(message) is False
    assert platform.deleted == []
    assert sorted(channel for channel, _ in platform.executed) == ["100", "200"]


@pytest.mark.asyncio
async def test_empty_unfurler_never_matches(config, state, platform, relay, media, logger):
    router = MessageRouter(config, state, platform, Unfurler(logger), relay, media, logger)

    assert await router.try_unfurl(make_message("루미나, https://www.pixiv.net/i/1")) is False


@pytest.mark.asyncio
async def test_unexpected_unfurl_failure_gets_generic_reply(config, state, platform, relay, media, logger):
    pixiv = StubPixiv(error=KeyError("urls"))
    router = build_router(config, state, platform, relay, media, logger, pixiv=pixiv)

    assert await router.on_message(make_message("루미나, https://www.pixiv.net/i/123")) is True
    assert [sent.content for sent in platform.sent] == [SERVER_ERROR]
    assert platform.deleted == []
