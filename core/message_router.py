# Routing of inbound Discord messages: unfurl candidates first, then plain relay
from typing import Any, Optional, Sequence
from urllib.parse import SplitResult, urlsplit

from core.models import BridgeState, RelayPayload
from core.relay import destinations, speaker_identity
from core.replies import classify_error
from core.unfurler import UnfurlContext
from storage.bridge_registry import linked_targets


def parse_unfurl_request(content: str, prefixes: Sequence[str]) -> Optional[SplitResult]:
    """``"<prefix> <url>"`` with exactly two tokens, else None."""
    tokens = [token for token in content.split(" ") if token]
    if len(tokens) != 2 or tokens[0] not in prefixes:
        return None
    try:
        url = urlsplit(tokens[1])
    except ValueError:
        return None
    if url.scheme not in ("http", "https") or not url.hostname:
        return None
    return url


class MessageRouter:
    def __init__(self, config, state: BridgeState, platform, unfurler, relay, media_handler, logger):
        self.config = config
        self.state = state
        self.platform = platform
        self.unfurler = unfurler
        self.relay = relay
        self.media_handler = media_handler
        self.logger = logger

    def context_for(self, message: Any) -> UnfurlContext:
        return UnfurlContext(message=message, state=self.state, platform=self.platform, relay=self.relay)

    async def report_failure(self, message: Any, exc: BaseException) -> None:
        channel_id = str(message.channel.id)
        try:
            await self.platform.send_message(channel_id, classify_error(exc))
        except Exception as send_exc:
            self.logger.error(f"Failed to report error to channel {channel_id}: {send_exc}", exc_info=True)

    async def try_unfurl(self, message: Any) -> bool:
        """Returns True when the message was consumed by an unfurl handler."""
        url = parse_unfurl_request(getattr(message, "content", None) or "", self.config.discord.command_prefixes)
        if url is None:
            return False

        try:
            matched = await self.unfurler.try_unfurl(self.context_for(message), url)
        except Exception as exc:
            self.logger.error(f"Failed to unfurl {url.geturl()} from message {message.id}: {exc}", exc_info=True)
            await self.report_failure(message, exc)
            return True
        if not matched:
            return False

        # Bots cannot delete other people's messages in DMs
        if getattr(message, "guild", None) is not None:
            try:
                await self.platform.delete_message(message)
            except Exception as exc:
                self.logger.warning(f"Could not delete unfurled message {message.id}: {exc}")
        return True

    async def relay_message(self, message: Any) -> None:
        source_id = str(message.channel.id)
        if not linked_targets(self.state, source_id):
            return

        name, avatar_url = speaker_identity(message)
        try:
            attachments = await self.media_handler.download_attachments(message)
        except Exception as exc:
            self.logger.error(f"Failed to download attachments of message {message.id}: {exc}", exc_info=True)
            await self.report_failure(message, exc)
            return
        embeds = [embed.to_dict() for embed in getattr(message, "embeds", None) or []]
        content = getattr(message, "clean_content", None) or getattr(message, "content", "") or ""
        if not content and not attachments and not embeds:
            return

        payload = RelayPayload(
            content=content,
            attachments=attachments,
            embeds=embeds,
            speaker_name=name,
            speaker_avatar_url=avatar_url,
        )
        targets = destinations(self.state, source_id, include_source=self.config.relay.echo_source)
        try:
            await self.relay.relay(self.state, source_id, payload, targets)
        except Exception as exc:
            # Per-destination failures were logged by the executor
            self.logger.error(f"Relay of message {message.id} was incomplete: {exc}")
            await self.report_failure(message, exc)

    async def on_message(self, message: Any) -> bool:
        """Returns True when the message was fully handled and needs no command processing."""
        if await self.try_unfurl(message):
            return True
        await self.relay_message(message)
        return False
