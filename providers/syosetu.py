# Syosetu (小説家になろう) novel API
from dataclasses import dataclass
from typing import Any, List

import aiohttp

from providers.errors import SyosetuNotFoundError

API_URL = "https://api.syosetu.com/novelapi/api/"

NOVEL_TYPE_LONG = 1
NOVEL_TYPE_SHORT = 2


@dataclass
class SyosetuInfo:
    ncode: str
    title: str
    author_id: int
    author_name: str
    synopsis: str
    parts: int
    novel_type: int
    end: bool


def parse_syosetu_info(ncode: str, data: List[Any]) -> SyosetuInfo:
    # First element is {"allcount": n}, the rows follow
    if not data or not isinstance(data[0], dict) or data[0].get("allcount", 0) <= 0 or len(data) < 2:
        raise SyosetuNotFoundError(ncode)
    row = data[1]
    return SyosetuInfo(
        ncode=ncode,
        title=row.get("title", ""),
        author_id=int(row.get("userid", 0)),
        author_name=row.get("writer", ""),
        synopsis=row.get("story", ""),
        parts=int(row.get("general_all_no", 0)),
        novel_type=int(row.get("noveltype", NOVEL_TYPE_LONG)),
        # The API reports 0 for finished (or short) works
        end=row.get("end") == 0,
    )


async def fetch_syosetu_info(http: aiohttp.ClientSession, ncode: str) -> SyosetuInfo:
    params = {
        "out": "json",
        "libtype": "2",
        "of": "t-u-w-s-nt-e-ga",
        "ncode": ncode,
    }
    async with http.get(API_URL, params=params) as resp:
        resp.raise_for_status()
        data = await resp.json(content_type=None)
    return parse_syosetu_info(ncode, data)
