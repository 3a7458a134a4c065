# Ordered, first-match dispatch of URLs to provider handlers
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, TypeVar
from urllib.parse import SplitResult

from core.errors import BridgeError, HandlerError
from core.models import BridgeState
from providers.errors import ProviderError

T = TypeVar("T")


@dataclass
class UnfurlContext:
    message: Any
    state: BridgeState
    platform: Any
    relay: Any


class UnfurlHandler(Protocol[T]):
    def test_url(self, url: SplitResult) -> Optional[T]:
        ...

    async def handle(self, context: UnfurlContext, arg: T) -> None:
        ...


class Unfurler:
    def __init__(self, logger):
        self.logger = logger
        self.handlers: List[UnfurlHandler[Any]] = []

    def register(self, handler: UnfurlHandler[Any]) -> None:
        self.handlers.append(handler)

    async def try_unfurl(self, context: UnfurlContext, url: SplitResult) -> bool:
        for handler in self.handlers:
            arg = handler.test_url(url)
            if arg is None:
                continue
            self.logger.info(f"{type(handler).__name__} matched {url.geturl()} ({arg})")
            try:
                await handler.handle(context, arg)
            except (BridgeError, ProviderError):
                # Classified failures pass through unchanged
                raise
            except Exception as exc:
                raise HandlerError(f"{type(handler).__name__} failed on {url.geturl()}: {exc}") from exc
            return True
        return False


def allowed_host(url: SplitResult, *domains: str) -> bool:
    host = (url.hostname or "").lower()
    for domain in domains:
        if host == domain or host == f"www.{domain}":
            return True
    return False


def create_unfurler(logger, pixiv_handler, syosetu_handler) -> Unfurler:
    from unfurlers.pixiv import IllustUnfurlHandler, UserUnfurlHandler
    from unfurlers.syosetu import NovelUnfurlHandler

    unfurler = Unfurler(logger)
    unfurler.register(IllustUnfurlHandler(pixiv_handler))
    unfurler.register(UserUnfurlHandler(pixiv_handler))
    unfurler.register(NovelUnfurlHandler(syosetu_handler))
    return unfurler
