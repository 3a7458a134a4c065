# Discord transport client
import io
from typing import Any, Dict, Optional

import aiohttp
import discord
from discord.ext import commands

from core.models import RelayPayload, WebhookHandle


class DiscordClient:
    def __init__(self, bot, logger, router=None):
        self.bot = bot
        self.logger = logger
        self.router = router
        self.session: Optional[aiohttp.ClientSession] = None
        self._on_ready_callback = None

        @self.bot.event
        async def on_ready():
            self.logger.info(f"Discord connected as {self.bot.user}")
            if self._on_ready_callback:
                await self._on_ready_callback()

        @self.bot.event
        async def on_message(message):
            # Ignore our own webhooks and other bots to prevent relay loops
            if getattr(message, 'webhook_id', None) is not None or message.author.bot:
                return
            if self.router and await self.router.on_message(message):
                return
            await self.bot.process_commands(message)

        @self.bot.event
        async def on_command_error(ctx, error):
            if isinstance(error, commands.CommandNotFound):
                return
            if isinstance(error, commands.CheckFailure):
                self.logger.warning(f"{ctx.author} is not allowed to run {ctx.command}: {error}")
                return
            self.logger.error(f"Command {ctx.command} failed: {error}", exc_info=error)

    def set_router(self, router):
        self.router = router

    def set_on_ready(self, callback):
        self._on_ready_callback = callback

    async def start(self, token):
        self.logger.info("Starting Discord bot")
        await self.bot.start(token)

    async def close(self):
        if self.session is not None and not self.session.closed:
            await self.session.close()
        await self.bot.close()

    async def http(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def _channel(self, channel_id: str):
        channel = self.bot.get_channel(int(channel_id))
        if channel is None:
            channel = await self.bot.fetch_channel(int(channel_id))
        return channel

    async def create_webhook(self, channel_id: str, name: str) -> WebhookHandle:
        channel = await self._channel(channel_id)
        webhook = await channel.create_webhook(name=name, reason=f"{name} 연결")
        return WebhookHandle(id=str(webhook.id), token=webhook.token)

    async def execute_webhook(self, handle: WebhookHandle, payload: RelayPayload) -> None:
        session = await self.http()
        webhook = discord.Webhook.partial(int(handle.id), handle.token, session=session)
        kwargs: Dict[str, Any] = {
            "username": payload.speaker_name,
            "avatar_url": payload.speaker_avatar_url,
        }
        # discord.File consumes its buffer, build fresh ones for every destination
        if payload.attachments:
            kwargs["files"] = [discord.File(io.BytesIO(data), filename=filename) for data, filename in payload.attachments]
        if payload.embeds:
            kwargs["embeds"] = [discord.Embed.from_dict(embed) for embed in payload.embeds]
        await webhook.send(payload.content or None, **kwargs)

    async def send_message(self, channel_id: str, content: Optional[str] = None, embed: Optional[Dict[str, Any]] = None):
        channel = await self._channel(channel_id)
        return await channel.send(content, embed=discord.Embed.from_dict(embed) if embed else None)

    async def delete_message(self, message) -> None:
        await message.delete()

    async def trigger_typing(self, channel_id: str) -> None:
        channel = await self._channel(channel_id)
        await channel.typing()

    async def download(self, url: str) -> bytes:
        session = await self.http()
        async with session.get(url) as resp:
            resp.raise_for_status()
            return await resp.read()
