# pixiv web client working from a saved login session
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import aiohttp
from bs4 import BeautifulSoup

from providers.errors import NotFoundError, NotLoggedInError

BASE_URL = "https://www.pixiv.net"

ILLUST_TYPES = {0: "일러스트", 1: "만화", 2: "우고이라"}


@dataclass
class Illust:
    id: str
    title: str
    description: str
    illust_type: int
    create_date: Optional[datetime]
    restrict: int
    x_restrict: int
    original_url: str
    user_id: str
    user_name: str
    page_count: int
    series_title: Optional[str] = None

    @property
    def restricted(self) -> bool:
        return self.restrict != 0 or self.x_restrict != 0


@dataclass
class User:
    user_id: str
    name: str
    comment: str
    image_big: Optional[str]


def illust_type_to_string(illust_type: int) -> str:
    return ILLUST_TYPES.get(illust_type, "알 수 없음")


def _parse_date(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def parse_illust(body: Dict[str, Any]) -> Illust:
    description = BeautifulSoup(body.get("description") or "", "html.parser").get_text()
    series = body.get("seriesNavData") or {}
    return Illust(
        id=str(body["id"]),
        title=body.get("title", ""),
        description=description,
        illust_type=int(body.get("illustType", 0)),
        create_date=_parse_date(body.get("createDate")),
        restrict=int(body.get("restrict", 0)),
        x_restrict=int(body.get("xRestrict", 0)),
        original_url=(body.get("urls") or {}).get("original") or "",
        user_id=str(body.get("userId", "")),
        user_name=body.get("userName", ""),
        page_count=int(body.get("pageCount", 1)),
        series_title=series.get("title"),
    )


def parse_user(body: Dict[str, Any]) -> User:
    return User(
        user_id=str(body["userId"]),
        name=body.get("name", ""),
        comment=body.get("comment", ""),
        image_big=body.get("imageBig"),
    )


class PixivSession:
    """Cookies written by the login flow, replayed on every request."""

    def __init__(self, http: aiohttp.ClientSession, cookies: Dict[str, str]):
        self.http = http
        self.cookies = cookies

    @classmethod
    def from_session_file(cls, path: str, http: aiohttp.ClientSession) -> "PixivSession":
        try:
            with open(path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError) as exc:
            raise NotLoggedInError(f"No usable pixiv session at {path}") from exc
        cookies = raw.get("cookies") if isinstance(raw, dict) else None
        if isinstance(cookies, list):
            # tough-cookie jar serialization: [{"key": ..., "value": ..., "domain": ...}, ...]
            cookies = {
                cookie["key"]: cookie.get("value", "")
                for cookie in cookies
                if isinstance(cookie, dict) and cookie.get("key")
            }
        if not isinstance(cookies, dict) or not cookies:
            raise NotLoggedInError(f"No cookies in pixiv session {path}")
        return cls(http, {str(key): str(value) for key, value in cookies.items()})

    async def _get_json(self, url: str, subject: str) -> Dict[str, Any]:
        headers = {"referer": f"{BASE_URL}/"}
        try:
            async with self.http.get(url, headers=headers, cookies=self.cookies) as resp:
                resp.raise_for_status()
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, ValueError) as exc:
            raise NotFoundError(url, subject=subject) from exc
        if not isinstance(data, dict) or data.get("error") or not isinstance(data.get("body"), dict):
            raise NotFoundError(url, subject=subject)
        return data["body"]

    async def get_illust_info(self, illust_id: str) -> Illust:
        body = await self._get_json(f"{BASE_URL}/ajax/illust/{illust_id}", "일러스트")
        try:
            return parse_illust(body)
        except (KeyError, TypeError, ValueError) as exc:
            raise NotFoundError(illust_id) from exc

    async def get_user(self, user_id: str) -> User:
        body = await self._get_json(f"{BASE_URL}/ajax/user/{user_id}?full=1", "유저")
        try:
            return parse_user(body)
        except (KeyError, TypeError) as exc:
            raise NotFoundError(user_id, subject="유저") from exc

    async def download_with_referer(self, url: str, referer: str) -> bytes:
        try:
            async with self.http.get(url, headers={"referer": referer}, cookies=self.cookies) as resp:
                resp.raise_for_status()
                return await resp.read()
        except aiohttp.ClientError as exc:
            raise NotFoundError(url) from exc
