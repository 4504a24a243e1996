"""
Background image loading for export.

Accepts http(s) URLs, data: URLs, file:// URLs and local paths, optionally
wrapped in CSS url(...). Every load is bounded by a hard timeout.
"""

import asyncio
import base64
import io
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional
from urllib.parse import unquote, urlparse

import aiohttp
from PIL import Image, UnidentifiedImageError

from config.export_config import (
    EXPORT_IMAGE_HEADERS,
    EXPORT_IMAGE_MAX_BYTES,
    EXPORT_IMAGE_TIMEOUT_SECONDS,
)
from services.export.color_sanitizer import unwrap_css_url
from services.export.exceptions import ImageLoadError, ImageTimeoutError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[bytes]]


async def fetch_url(url: str) -> bytes:
    """Download an image over HTTP with browser-like headers."""
    async with aiohttp.ClientSession() as session:
        async with session.get(url, headers=EXPORT_IMAGE_HEADERS, allow_redirects=True) as response:
            if response.status != 200:
                raise ImageLoadError(url, f"HTTP {response.status}")
            content_type = response.headers.get('content-type', '')
            if content_type and not content_type.startswith('image/') and 'octet-stream' not in content_type:
                raise ImageLoadError(url, f"Not an image: {content_type}")
            return await response.read()


class ImageLoader:
    """Loads and decodes slide images under a time budget"""

    def __init__(
        self,
        timeout: float = EXPORT_IMAGE_TIMEOUT_SECONDS,
        fetcher: Optional[Fetcher] = None,
        max_bytes: int = EXPORT_IMAGE_MAX_BYTES,
    ):
        self.timeout = timeout
        self.fetcher = fetcher or fetch_url
        self.max_bytes = max_bytes

    async def load(self, source: str) -> Image.Image:
        """
        Load an image.

        Raises:
            ImageTimeoutError: The load did not finish within the timeout
            ImageLoadError: The source could not be read or decoded
        """
        reference = unwrap_css_url(source or '')
        if not reference:
            raise ImageLoadError(str(source), "Empty image reference")
        try:
            return await asyncio.wait_for(self._load(reference), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ImageTimeoutError(reference[:120], self.timeout, cause=e)
        except ImageLoadError:
            raise
        except Exception as e:
            raise ImageLoadError(reference[:120], "Failed to load image", cause=e)

    async def _load(self, reference: str) -> Image.Image:
        data = await self._read(reference)
        if len(data) > self.max_bytes:
            raise ImageLoadError(reference[:120], f"Image too large: {len(data)} bytes")
        return self._decode(reference, data)

    async def _read(self, reference: str) -> bytes:
        lowered = reference.lower()
        if lowered.startswith('data:'):
            header, _, payload = reference.partition(',')
            if ';base64' in header.lower():
                return base64.b64decode(payload)
            return unquote(payload).encode('latin-1')
        if lowered.startswith(('http://', 'https://')):
            return await self.fetcher(reference)
        if lowered.startswith('file://'):
            path = Path(unquote(urlparse(reference).path))
        else:
            path = Path(reference)
        return await asyncio.to_thread(path.read_bytes)

    @staticmethod
    def _decode(reference: str, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as im:
                im.load()
                return im.convert('RGBA')
        except (UnidentifiedImageError, OSError) as e:
            raise ImageLoadError(reference[:120], "Could not decode image", cause=e)
