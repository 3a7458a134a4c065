# Renders pixiv illustrations and users into embeds and relays them
from typing import Any, Dict, Optional

from core.errors import ImageDecodeError
from core.models import RelayPayload
from core.relay import destinations, speaker_identity
from core.unfurler import UnfurlContext
from providers.errors import NotLoggedInError
from providers.pixiv import Illust, PixivSession, User, illust_type_to_string

PIXIV_COLOR = 0x0096FA


def _is_sfw_channel(channel: Any) -> bool:
    # Only guild text channels carry an NSFW flag, DMs never block restricted works
    is_nsfw = getattr(channel, "is_nsfw", None)
    return callable(is_nsfw) and not is_nsfw()


def build_illust_embed(illust: Illust, message: Optional[Any] = None) -> Dict[str, Any]:
    fields = [{"name": "종류", "value": illust_type_to_string(illust.illust_type), "inline": True}]
    if illust.page_count > 1:
        fields.append({"name": "장 수", "value": f"{illust.page_count}장", "inline": True})
    if illust.series_title:
        fields.append({"name": "시리즈", "value": illust.series_title, "inline": False})

    embed: Dict[str, Any] = {
        "title": illust.title,
        "description": illust.description,
        "url": f"https://www.pixiv.net/i/{illust.id}",
        "color": PIXIV_COLOR,
        "provider": {"name": "pixiv", "url": "https://www.pixiv.net/"},
        "author": {"name": illust.user_name, "url": f"https://www.pixiv.net/u/{illust.user_id}"},
        "fields": fields,
    }
    if illust.create_date is not None:
        embed["timestamp"] = illust.create_date.isoformat()
    if message is not None and getattr(message, "guild", None) is not None:
        name, avatar_url = speaker_identity(message)
        footer = {"text": f"{name}님의 요청"}
        if avatar_url:
            footer["icon_url"] = avatar_url
        embed["footer"] = footer
    return embed


def build_user_embed(user: User) -> Dict[str, Any]:
    embed: Dict[str, Any] = {
        "title": user.name,
        "description": user.comment,
        "url": f"https://www.pixiv.net/u/{user.user_id}",
        "color": PIXIV_COLOR,
    }
    if user.image_big:
        embed["thumbnail"] = {"url": user.image_big}
    return embed


class PixivHandler:
    def __init__(self, session_path: str, media, logger):
        self.session_path = session_path
        self.media = media
        self.logger = logger

    def has_session(self) -> bool:
        try:
            PixivSession.from_session_file(self.session_path, http=None)
        except NotLoggedInError:
            return False
        return True

    async def _session(self, platform) -> PixivSession:
        return PixivSession.from_session_file(self.session_path, await platform.http())

    async def _discard(self, platform, message) -> None:
        try:
            await platform.delete_message(message)
        except Exception as exc:
            self.logger.warning(f"Could not delete status message {getattr(message, 'id', None)}: {exc}")

    async def process_illust(self, context: UnfurlContext, illust_id: str) -> None:
        platform = context.platform
        session = await self._session(platform)
        illust = await session.get_illust_info(illust_id)
        self.logger.info(f"Fetched pixiv illust {illust_id} ({illust.page_count} page(s), restricted={illust.restricted})")

        channel_id = str(context.message.channel.id)
        embed = build_illust_embed(illust, context.message)
        restricted_emoji = ":underage: " if illust.restricted else ""

        if illust.restricted and _is_sfw_channel(context.message.channel):
            await platform.send_message(channel_id, ":underage: 후방주의 채널에서만 볼 수 있어요.", embed=embed)
            return

        # Linked channels are not checked for the NSFW flag, restricted works stay where they were asked for
        targets = [channel_id] if illust.restricted else destinations(context.state, channel_id)

        loading = await platform.send_message(
            channel_id,
            f"{restricted_emoji}**{illust.user_name}**의 **{illust.title}**, 다운로드하고 있습니다. 잠시만 기다려 주세요!",
        )
        try:
            await platform.trigger_typing(channel_id)
            data = await session.download_with_referer(
                illust.original_url,
                f"https://www.pixiv.net/member_illust.php?mode=medium&illust_id={illust_id}",
            )
            if len(data) > self.media.size_limit:
                shrinking = await platform.send_message(
                    channel_id,
                    f"{restricted_emoji}**{illust.user_name}**의 **{illust.title}**, 크기가 커서 줄이고 있어요.",
                )
                previous, loading = loading, shrinking
                await self._discard(platform, previous)
                await platform.trigger_typing(channel_id)

            attachments = []
            try:
                fitted = await self.media.fit(data)
            except ImageDecodeError as exc:
                self.logger.warning(f"Relaying pixiv illust {illust_id} without its image: {exc}")
            else:
                attachments.append((fitted.data, f"{illust_id}.{fitted.format}"))

            name, avatar_url = speaker_identity(context.message)
            payload = RelayPayload(
                content=":underage: R-18으로 지정된 일러스트입니다." if illust.restricted else "",
                attachments=attachments,
                embeds=[embed],
                speaker_name=name,
                speaker_avatar_url=avatar_url,
            )
            await context.relay.relay(context.state, channel_id, payload, targets)
        finally:
            await self._discard(platform, loading)

    async def process_user(self, context: UnfurlContext, user_id: str) -> None:
        session = await self._session(context.platform)
        user = await session.get_user(user_id)

        channel_id = str(context.message.channel.id)
        name, avatar_url = speaker_identity(context.message)
        payload = RelayPayload(embeds=[build_user_embed(user)], speaker_name=name, speaker_avatar_url=avatar_url)
        await context.relay.relay(context.state, channel_id, payload, destinations(context.state, channel_id))
