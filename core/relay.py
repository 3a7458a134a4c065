# Fan-out of one payload to many channels through each channel's webhook
import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.errors import DeliveryError
from core.models import BridgeState, RelayPayload
from storage.bridge_registry import linked_targets


def speaker_identity(message: Any) -> Tuple[str, Optional[str]]:
    """Name and avatar the relayed message is attributed to.

    The guild nickname wins over the account name; DMs have no nickname.
    """
    author = message.author
    name = getattr(author, "nick", None) or getattr(author, "name", None) or "Unknown"
    avatar = getattr(author, "display_avatar", None)
    avatar_url = str(avatar.url) if avatar is not None else None
    return name, avatar_url


def destinations(state: BridgeState, source_id: str, include_source: bool = True) -> List[str]:
    targets = linked_targets(state, source_id)
    if include_source:
        return [source_id] + [target for target in targets if target != source_id]
    return targets


class RelayExecutor:
    def __init__(self, platform, provisioner, logger):
        self.platform = platform
        self.provisioner = provisioner
        self.logger = logger

    async def _deliver(self, state: BridgeState, channel_id: str, payload: RelayPayload) -> None:
        webhook = await self.provisioner.get_or_create(state, channel_id)
        await self.platform.execute_webhook(webhook, payload)

    async def relay(self, state: BridgeState, source_id: str, payload: RelayPayload, targets: Sequence[str]) -> None:
        targets = list(targets)
        results = await asyncio.gather(
            *(self._deliver(state, channel_id, payload) for channel_id in targets),
            return_exceptions=True,
        )

        failures: Dict[str, BaseException] = {}
        for channel_id, result in zip(targets, results):
            if isinstance(result, BaseException):
                failures[channel_id] = result
                self.logger.error(
                    f"Failed to relay message from {source_id} to {channel_id}: {result}",
                    exc_info=(type(result), result, result.__traceback__),
                )
        delivered = len(targets) - len(failures)
        self.logger.info(f"Relayed message from {source_id} to {delivered}/{len(targets)} channel(s)")

        if failures:
            first = next(iter(failures.values()))
            raise DeliveryError(failures) from first
