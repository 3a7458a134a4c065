# Core data models for the bridge
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class WebhookHandle:
    id: str
    # Possession of id + token is enough to post, keep it out of repr/logs
    token: str = field(repr=False)


@dataclass
class BridgeState:
    notice_channel_id: Optional[str] = None
    linked_channels: Dict[str, List[str]] = field(default_factory=dict)
    webhooks: Dict[str, WebhookHandle] = field(default_factory=dict)


@dataclass
class RelayPayload:
    content: str = ""
    attachments: List[Tuple[bytes, str]] = field(default_factory=list)
    embeds: List[Dict[str, Any]] = field(default_factory=list)
    speaker_name: Optional[str] = None
    speaker_avatar_url: Optional[str] = None


@dataclass(frozen=True)
class ReencodeResult:
    format: str
    data: bytes
