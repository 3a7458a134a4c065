# URL matchers for pixiv illustrations and user pages
import re
from typing import Optional
from urllib.parse import SplitResult, parse_qs

from core.unfurler import UnfurlContext, allowed_host

DIGITS = re.compile(r"[0-9]+")
# /i/123, /artworks/123, /en/artworks/123
ILLUST_PATH = re.compile(r"(?:/[a-z]{2})?/(?:i|artworks)/([0-9]+)/?")
# /u/123, /users/123, /en/users/123
USER_PATH = re.compile(r"(?:/[a-z]{2})?/(?:u|users)/([0-9]+)/?")


def _query_digits(url: SplitResult, key: str) -> Optional[str]:
    values = parse_qs(url.query).get(key)
    if values and DIGITS.fullmatch(values[0]):
        return values[0]
    return None


def match_illust_id(url: SplitResult) -> Optional[str]:
    if not allowed_host(url, "pixiv.net"):
        return None
    if url.path == "/member_illust.php":
        return _query_digits(url, "illust_id")
    match = ILLUST_PATH.fullmatch(url.path)
    return match.group(1) if match else None


def match_user_id(url: SplitResult) -> Optional[str]:
    if not allowed_host(url, "pixiv.net"):
        return None
    if url.path == "/member.php":
        return _query_digits(url, "id")
    match = USER_PATH.fullmatch(url.path)
    return match.group(1) if match else None


class IllustUnfurlHandler:
    def __init__(self, pixiv):
        self.pixiv = pixiv

    def test_url(self, url: SplitResult) -> Optional[str]:
        return match_illust_id(url)

    async def handle(self, context: UnfurlContext, arg: str) -> None:
        await self.pixiv.process_illust(context, arg)


class UserUnfurlHandler:
    def __init__(self, pixiv):
        self.pixiv = pixiv

    def test_url(self, url: SplitResult) -> Optional[str]:
        return match_user_id(url)

    async def handle(self, context: UnfurlContext, arg: str) -> None:
        await self.pixiv.process_user(context, arg)
