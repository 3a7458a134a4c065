from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_HOME = "/var/lib/lumina"
DEFAULT_PREFIXES = ["루미나,"]
DEFAULT_SIZE_LIMIT = 8_000_000


@dataclass(frozen=True)
class DiscordConfig:
    token: str
    command_prefixes: List[str]
    webhook_name: str
    operator_role: str


@dataclass(frozen=True)
class RelayConfig:
    echo_source: bool
    size_limit: int


@dataclass(frozen=True)
class AppConfig:
    discord: DiscordConfig
    relay: RelayConfig
    home: str
    kakao_token: Optional[str]

    @property
    def registry_path(self) -> str:
        return os.path.join(self.home, "discord.json")

    @property
    def pixiv_session_path(self) -> str:
        return os.path.join(self.home, "pixiv.json")

    @property
    def notice_dir(self) -> str:
        return os.path.join(self.home, "notices")


def _read_kakao_token(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            token = handle.read().strip()
    except OSError:
        return None
    return token or None


def load_config(path: str) -> AppConfig:
    raw = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)

    discord_raw = raw.get("discord", {})
    relay_raw = raw.get("relay", {})
    kakao_raw = raw.get("kakao", {})

    home = os.environ.get("LUMINA_HOME") or str(raw.get("home", DEFAULT_HOME))

    prefixes = discord_raw.get("command_prefixes", DEFAULT_PREFIXES)
    if isinstance(prefixes, str):
        prefixes = [prefixes]

    discord = DiscordConfig(
        token=os.environ.get("BOT_TOKEN") or str(discord_raw.get("token", "")),
        command_prefixes=[str(value) for value in prefixes],
        webhook_name=str(discord_raw.get("webhook_name", "루미나 브릿지")),
        operator_role=str(discord_raw.get("operator_role", "operator")),
    )

    relay = RelayConfig(
        echo_source=bool(relay_raw.get("echo_source", True)),
        size_limit=int(relay_raw.get("size_limit", DEFAULT_SIZE_LIMIT)),
    )

    kakao_token = kakao_raw.get("token") or _read_kakao_token(os.path.join(home, "kakao_token"))

    return AppConfig(discord=discord, relay=relay, home=home, kakao_token=kakao_token)
