# Main entrypoint for the Lumina bridge bot
from core.config import AppConfig, load_config
from core.errors import StorageError
from core.message_router import MessageRouter
from core.relay import RelayExecutor
from core.unfurler import create_unfurler
from handlers.air import AirHandler
from handlers.pixiv import PixivHandler
from handlers.syosetu import SyosetuHandler
from services.media_handler import MediaHandler
from services.notice_runner import NoticeRunner
from services.webhook_provisioner import WebhookProvisioner
from storage.bridge_registry import BridgeRegistry
from transports.discord_client import DiscordClient
from transports.discord_commands import register_commands
import logging
import asyncio
import sys
import os

import discord
from discord.ext import commands


class BridgeApp:
    def __init__(self, config: AppConfig):
        self.config = config
        # Main logger for app-wide events
        self.logger = logging.getLogger("Lumina")

        self.registry = BridgeRegistry(config.registry_path)
        # StorageError here is fatal, a corrupt registry must not be overwritten
        self.state = self.registry.load()

        bot = commands.Bot(
            command_prefix=self._command_prefixes(config.discord.command_prefixes),
            intents=discord.Intents.all(),
            help_command=None,
        )
        self.bot = bot
        self.platform = DiscordClient(bot, self.logger.getChild("Discord"))
        self.media = MediaHandler(self.platform, config.relay.size_limit)
        self.provisioner = WebhookProvisioner(
            self.platform, self.registry, self.logger.getChild("Webhook"), config.discord.webhook_name
        )
        self.relay = RelayExecutor(self.platform, self.provisioner, self.logger.getChild("Relay"))
        self.notices = NoticeRunner(config.notice_dir, self.platform, self.logger.getChild("Notice"))

        self.pixiv = PixivHandler(config.pixiv_session_path, self.media, self.logger.getChild("Pixiv"))
        self.syosetu = SyosetuHandler(self.logger.getChild("Syosetu"))
        self.air = AirHandler(config.kakao_token, self.logger.getChild("Air")) if config.kakao_token else None

        self.unfurler = create_unfurler(self.logger.getChild("Unfurl"), self.pixiv, self.syosetu)
        self.router = MessageRouter(
            config, self.state, self.platform, self.unfurler, self.relay, self.media, self.logger.getChild("Router")
        )
        self.platform.set_router(self.router)
        self.platform.set_on_ready(self.on_ready)
        register_commands(bot, self)

    @staticmethod
    def _command_prefixes(prefixes):
        # "루미나, 픽시브" and "루미나,픽시브" both reach the command
        expanded = []
        for prefix in prefixes:
            expanded.extend([f"{prefix} ", prefix])
        return expanded

    async def on_ready(self):
        if self.state.notice_channel_id is not None:
            try:
                await self.notices.run_all(self.state.notice_channel_id, self.bot.user.id)
            except Exception as exc:
                self.logger.error(f"Failed to post notices: {exc}", exc_info=True)

    async def start(self):
        try:
            await self.platform.start(self.config.discord.token)
        finally:
            await self.platform.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Suppress noisy INFO logs from third-party libraries
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    config_path = os.environ.get("LUMINA_CONFIG", "config.json")
    config = load_config(config_path)
    if not config.discord.token:
        logging.error("BOT_TOKEN not set.")
        sys.exit(1)
    os.makedirs(config.notice_dir, exist_ok=True)

    try:
        app = BridgeApp(config)
    except StorageError as exc:
        logging.error(f"Cannot load bridge registry: {exc}")
        sys.exit(1)
    try:
        asyncio.run(app.start())
    except KeyboardInterrupt:
        pass
