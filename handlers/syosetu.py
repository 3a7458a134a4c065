# Renders Syosetu novel info into an embed and relays it
from typing import Any, Dict

from core.models import RelayPayload
from core.relay import destinations, speaker_identity
from core.unfurler import UnfurlContext
from providers.syosetu import NOVEL_TYPE_SHORT, SyosetuInfo, fetch_syosetu_info


def novel_status(info: SyosetuInfo) -> str:
    if info.novel_type == NOVEL_TYPE_SHORT:
        return "단편"
    if info.end:
        return "완결"
    return "연재 중"


def build_novel_embed(info: SyosetuInfo) -> Dict[str, Any]:
    return {
        "title": info.title,
        "description": info.synopsis,
        "url": f"https://ncode.syosetu.com/{info.ncode}/",
        "author": {
            "name": info.author_name,
            "url": f"https://mypage.syosetu.com/{info.author_id}/",
        },
        "fields": [
            {"name": "연재 상태", "value": novel_status(info), "inline": True},
            {"name": "총 부분 수", "value": f"{info.parts}부분", "inline": True},
        ],
        "footer": {"text": "소설가가 되자"},
    }


class SyosetuHandler:
    def __init__(self, logger):
        self.logger = logger

    async def process_info(self, context: UnfurlContext, ncode: str) -> None:
        info = await fetch_syosetu_info(await context.platform.http(), ncode)
        self.logger.info(f"Fetched Syosetu novel {ncode}: {info.title}")

        channel_id = str(context.message.channel.id)
        name, avatar_url = speaker_identity(context.message)
        payload = RelayPayload(embeds=[build_novel_embed(info)], speaker_name=name, speaker_avatar_url=avatar_url)
        await context.relay.relay(context.state, channel_id, payload, destinations(context.state, channel_id))
