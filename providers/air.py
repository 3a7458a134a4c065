# AirKorea mobile page scraper
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List

import aiohttp
import hjson
from bs4 import BeautifulSoup

AIRKOREA_URL = "http://m.airkorea.or.kr/main"
KEYS = ["cai", "pm10", "pm2.5", "o3", "no2", "co", "so2"]

ROWS_REGEX = re.compile(r"addRows\((\[.*\])\);")
EMPTY_CELL = re.compile(r",(?=,)")

logger = logging.getLogger("Lumina").getChild("Air")


@dataclass
class AirStatus:
    station_name: str
    time: str
    data: Dict[str, List[str]] = field(default_factory=dict)


def fill_empty_data(raw: str) -> str:
    """Chart rows come as JS literals with holes (``[1,,2]``), fill them with null."""
    return EMPTY_CELL.sub(",null", raw)


def parse_air_status(html: str) -> AirStatus:
    data: Dict[str, List[str]] = {}
    for idx, match in enumerate(ROWS_REGEX.finditer(html)):
        if idx >= len(KEYS):
            logger.warning(f"AirKorea page has more than {len(KEYS)} data series")
            break
        rows = hjson.loads(fill_empty_data(match.group(1)))
        values = []
        for row in rows:
            value = row[3] or row[5] or row[7] or row[9]
            if value:
                values.append(str(value))
        data[KEYS[idx]] = values

    soup = BeautifulSoup(html, "html.parser")
    title = soup.select_one("h1 > .tit")
    if title is not None:
        for suffix in title.select(".ts"):
            suffix.decompose()
    station_name = title.get_text().strip() if title is not None else ""
    time_tag = soup.select_one("h1 > .tim")
    time = time_tag.get_text().strip() if time_tag is not None else ""

    return AirStatus(station_name=station_name, time=time, data=data)


async def get_air_status(http: aiohttp.ClientSession, lat: str, lng: str) -> AirStatus:
    params = {"lat": lat, "lng": lng, "deviceId": "1234"}
    async with http.get(AIRKOREA_URL, params=params) as resp:
        resp.raise_for_status()
        html = await resp.text()
    return parse_air_status(html)
