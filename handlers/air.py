# Air quality report for a place name
import math
from typing import List, Optional, Sequence

from providers.air import get_air_status
from providers.kakao import KakaoAPI

PM10_STOPS = [30, 80, 150, math.inf]
PM25_STOPS = [15, 35, 75, math.inf]
STATUS_STRING = ["좋음", "보통", "나쁨", "매우 나쁨"]


def format_pm(pm: Optional[List[str]], stops: Sequence[float]) -> str:
    if not pm:
        return "(정보 없음)"

    before = [f"{value} →" for value in pm[-6:-1]]
    current = int(pm[-1])
    idx = 0
    while stops[idx] <= current:
        idx += 1

    history = " ".join(before)
    head = f"{history} " if history else ""
    return f"{head}**{current}** ({STATUS_STRING[idx]})"


class AirHandler:
    def __init__(self, kakao_token: str, logger):
        self.kakao_token = kakao_token
        self.logger = logger

    async def process_query(self, platform, channel_id: str, query: str) -> None:
        http = await platform.http()
        location = await KakaoAPI(http, self.kakao_token).search_location(query)
        status = await get_air_status(http, location.lat, location.lng)
        self.logger.info(f"Air status for {query!r} from station {status.station_name}")

        header = f"**{location.name}**에서 가장 가까운 **{status.station_name}**의 정보입니다. ({status.time})"
        pm10 = f"PM10 (㎍/㎥): {format_pm(status.data.get('pm10'), PM10_STOPS)}"
        pm25 = f"PM2.5 (㎍/㎥): {format_pm(status.data.get('pm2.5'), PM25_STOPS)}"
        await platform.send_message(channel_id, f"{header}\n\n{pm10}\n{pm25}")
