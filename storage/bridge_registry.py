# Persisted relay state: channel links, webhook handles and the notice channel
import json
import os
import tempfile
from typing import Any, Dict, List

from core.errors import StorageError
from core.models import BridgeState, WebhookHandle


def _channel_id(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value:
        raise StorageError(f"Malformed channel id in {where}: {value!r}")
    return value


def state_from_dict(raw: Any) -> BridgeState:
    if not isinstance(raw, dict):
        raise StorageError("Registry document is not a JSON object")

    notice = raw.get("noticeChannelId")
    if notice is not None:
        notice = _channel_id(notice, "noticeChannelId")

    linked_raw = raw.get("linkedChannels", {})
    if not isinstance(linked_raw, dict):
        raise StorageError("linkedChannels is not an object")
    linked: Dict[str, List[str]] = {}
    for source, targets in linked_raw.items():
        source = _channel_id(source, "linkedChannels")
        if not isinstance(targets, list):
            raise StorageError(f"linkedChannels[{source}] is not a list")
        linked[source] = [_channel_id(target, f"linkedChannels[{source}]") for target in targets]

    webhooks_raw = raw.get("webhooks", {})
    if not isinstance(webhooks_raw, dict):
        raise StorageError("webhooks is not an object")
    webhooks: Dict[str, WebhookHandle] = {}
    for channel, entry in webhooks_raw.items():
        channel = _channel_id(channel, "webhooks")
        # Older dumps kept the whole platform webhook object, only id/token matter
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("token"):
            raise StorageError(f"webhooks[{channel}] has no id/token")
        webhooks[channel] = WebhookHandle(id=str(entry["id"]), token=str(entry["token"]))

    return BridgeState(notice_channel_id=notice, linked_channels=linked, webhooks=webhooks)


def state_to_dict(state: BridgeState) -> Dict[str, Any]:
    doc: Dict[str, Any] = {}
    if state.notice_channel_id is not None:
        doc["noticeChannelId"] = state.notice_channel_id
    doc["linkedChannels"] = {source: list(targets) for source, targets in state.linked_channels.items()}
    doc["webhooks"] = {
        channel: {"id": handle.id, "token": handle.token}
        for channel, handle in state.webhooks.items()
    }
    return doc


class BridgeRegistry:
    def __init__(self, path: str):
        self.path = path

    def load(self) -> BridgeState:
        if not os.path.exists(self.path):
            state = BridgeState()
            self.save(state)
            return state
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError) as exc:
            # Never fall back to an empty state here, that would drop every link on next save
            raise StorageError(f"Cannot read registry {self.path}: {exc}") from exc
        return state_from_dict(raw)

    def save(self, state: BridgeState) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        data = json.dumps(state_to_dict(state), ensure_ascii=False)
        try:
            # mkstemp creates the file 0o600
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".discord-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write registry {self.path}: {exc}") from exc


def linked_targets(state: BridgeState, channel_id: str) -> List[str]:
    return list(state.linked_channels.get(channel_id, []))


def set_notice_channel(state: BridgeState, channel_id: str) -> None:
    state.notice_channel_id = _channel_id(channel_id, "noticeChannelId")


def link_channels(state: BridgeState, source_id: str, target_id: str) -> bool:
    """Add ``source_id -> target_id``. Returns False if the link already existed."""
    source_id = _channel_id(source_id, "linkedChannels")
    target_id = _channel_id(target_id, f"linkedChannels[{source_id}]")
    targets = state.linked_channels.setdefault(source_id, [])
    if target_id in targets:
        return False
    targets.append(target_id)
    return True
