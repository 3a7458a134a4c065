# Handles all media download, size checks, and conversions
import asyncio
import io
import logging
import math
from typing import Any, List, Tuple

from PIL import Image, UnidentifiedImageError

from core.errors import ImageDecodeError, ImageFitError
from core.models import ReencodeResult

SIZE_LIMIT = 8_000_000
JPEG_QUALITY = 80
# Below this ratio scaling barely moves the height, step down by a fixed amount instead
MIN_SCALE_RATIO = 1.01
HEIGHT_STEP = 20

logger = logging.getLogger("Lumina").getChild("Media")


def next_height(current_height: int, size: int, ceiling: int) -> int:
    ratio = math.sqrt(size / ceiling)
    if ratio < MIN_SCALE_RATIO:
        return current_height - HEIGHT_STEP
    return math.floor(current_height / ratio)


def _encode_jpeg(image: Image.Image) -> bytes:
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    out = io.BytesIO()
    # subsampling=0 keeps full chroma (4:4:4)
    image.save(out, format="JPEG", quality=JPEG_QUALITY, subsampling=0)
    return out.getvalue()


def fit_into_size_limit(data: bytes, ceiling: int = SIZE_LIMIT) -> ReencodeResult:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError(f"Cannot decode image: {exc}") from exc
    if image.format is None or not image.height:
        raise ImageDecodeError("Image format or height is unknown")

    if len(data) <= ceiling:
        return ReencodeResult(format=image.format.lower(), data=data)

    width, height = image.size
    compressed = _encode_jpeg(image)
    current_height = height
    while len(compressed) > ceiling:
        size = len(compressed)
        if current_height <= 1:
            raise ImageFitError(f"Image does not fit into {ceiling} bytes even at 1px height")
        current_height = max(1, next_height(current_height, size, ceiling))
        logger.debug(f"Size {size} > {ceiling}, resizing to height {current_height}")
        current_width = max(1, round(width * current_height / height))
        resized = image.resize((current_width, current_height), Image.Resampling.LANCZOS)
        compressed = _encode_jpeg(resized)
    logger.info(f"Done resizing: {len(data)} -> {len(compressed)}")

    return ReencodeResult(format="jpeg", data=compressed)


class MediaHandler:
    def __init__(self, platform, size_limit: int = SIZE_LIMIT):
        self.platform = platform
        self.size_limit = size_limit

    async def fit(self, data: bytes) -> ReencodeResult:
        return await asyncio.to_thread(fit_into_size_limit, data, self.size_limit)

    async def download_attachments(self, message: Any) -> List[Tuple[bytes, str]]:
        attachments = list(getattr(message, "attachments", None) or [])
        if not attachments:
            return []
        downloads = await asyncio.gather(*(self.platform.download(attach.url) for attach in attachments))
        return [(data, attach.filename) for data, attach in zip(downloads, attachments)]
