# URL matcher for Syosetu novel pages
import re
from typing import Optional
from urllib.parse import SplitResult

from core.unfurler import UnfurlContext

NCODE = re.compile(r"n[0-9]{4}[a-z]{2}")


def match_ncode(url: SplitResult) -> Optional[str]:
    if (url.hostname or "").lower() != "ncode.syosetu.com":
        return None
    match = NCODE.search(url.path)
    return match.group(0) if match else None


class NovelUnfurlHandler:
    def __init__(self, syosetu):
        self.syosetu = syosetu

    def test_url(self, url: SplitResult) -> Optional[str]:
        return match_ncode(url)

    async def handle(self, context: UnfurlContext, arg: str) -> None:
        await self.syosetu.process_info(context, arg)
