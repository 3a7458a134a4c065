# Kakao local search, used to turn a free-form place name into coordinates
from dataclasses import dataclass

import aiohttp

from providers.errors import LocationNotFoundError

ADDRESS_SEARCH_URL = "https://dapi.kakao.com/v2/local/search/address.json"


@dataclass
class Location:
    name: str
    lat: str
    lng: str


class KakaoAPI:
    def __init__(self, http: aiohttp.ClientSession, key: str):
        self.http = http
        self.headers = {"authorization": f"KakaoAK {key}"}

    async def search_location(self, query: str) -> Location:
        async with self.http.get(ADDRESS_SEARCH_URL, params={"query": query}, headers=self.headers) as resp:
            resp.raise_for_status()
            data = await resp.json()
        documents = data.get("documents") or []
        if not documents:
            raise LocationNotFoundError(query)
        document = documents[0]
        return Location(name=document["address_name"], lat=document["y"], lng=document["x"])
