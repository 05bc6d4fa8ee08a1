"""
Image Source Loading.

Image elements carry either a data URL or an external URL. External
images are fetched with aiohttp and every image is decoded and
re-encoded to PNG with Pillow, so both back-ends receive the same
normalized pixels. A failed load raises ImageLoadError inside this
module; load_many() catches it at the boundary and reports "no image".

Author: ML Engineering Team
"""

import asyncio
import base64
import binascii
import io
from typing import Dict, Iterable, Optional

import aiohttp
from PIL import Image

from config import get_config
from template_studio.utils.exceptions import ImageLoadError
from template_studio.utils.helpers import to_data_url
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


def decode_data_url(source: str) -> bytes:
    """
    Decode a base64 data URL.

    Raises:
        ImageLoadError: If the URL is malformed or not base64.
    """
    header, sep, payload = source.partition(',')
    if not sep or not header.startswith('data:'):
        raise ImageLoadError(source, "malformed data URL")
    if ';base64' not in header:
        raise ImageLoadError(source, "only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(source, str(e))


def normalize_png(content: bytes, source: str = '') -> bytes:
    """
    Decode image bytes and re-encode them as PNG.

    Raises:
        ImageLoadError: If Pillow cannot decode the content.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            if img.mode not in ('RGB', 'RGBA'):
                img = img.convert('RGBA')
            buffer = io.BytesIO()
            img.save(buffer, format='PNG')
            return buffer.getvalue()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(source or 'image bytes', str(e))


class ImageLoader:
    """
    Loads image element sources into PNG bytes.

    Attributes:
        timeout: Total timeout for one external fetch, in seconds.

    Example:
        >>> loader = ImageLoader()
        >>> images = asyncio.run(loader.load_many(["data:image/png;base64,..."]))
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = float(timeout if timeout is not None else get_config("images.timeout_seconds", 10))
        self._cache: Dict[str, bytes] = {}

    async def load(self, source: str, session: Optional[aiohttp.ClientSession] = None) -> bytes:
        """
        Load one source as PNG bytes.

        Raises:
            ImageLoadError: On any fetch or decode failure.
        """
        if not source:
            raise ImageLoadError(source, "empty source")
        if source in self._cache:
            return self._cache[source]

        if source.startswith('data:'):
            raw = decode_data_url(source)
        elif source.startswith(('http://', 'https://')):
            raw = await self._fetch(source, session)
        else:
            raise ImageLoadError(source, "unsupported image source")

        png = normalize_png(raw, source)
        self._cache[source] = png
        return png

    async def _fetch(self, url: str, session: Optional[aiohttp.ClientSession]) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            if session is None:
                async with aiohttp.ClientSession(timeout=timeout) as own_session:
                    return await self._get(own_session, url, timeout)
            return await self._get(session, url, timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ImageLoadError(url, f"{type(e).__name__}: {e}")

    @staticmethod
    async def _get(session: aiohttp.ClientSession, url: str, timeout: aiohttp.ClientTimeout) -> bytes:
        async with session.get(url, timeout=timeout) as response:
            if response.status != 200:
                raise ImageLoadError(url, f"HTTP {response.status}")
            return await response.read()

    async def load_many(self, sources: Iterable[str]) -> Dict[str, Optional[bytes]]:
        """
        Load several sources concurrently.

        Failures are logged and mapped to None so rendering can continue.

        Returns:
            Mapping of source to PNG bytes, or None for failed loads.
        """
        unique = [s for s in dict.fromkeys(sources) if s]
        if not unique:
            return {}

        needs_network = any(s.startswith(('http://', 'https://')) for s in unique)
        if needs_network:
            async with aiohttp.ClientSession() as session:
                results = await asyncio.gather(
                    *(self.load(s, session) for s in unique), return_exceptions=True
                )
        else:
            results = await asyncio.gather(*(self.load(s) for s in unique), return_exceptions=True)

        loaded: Dict[str, Optional[bytes]] = {}
        for source, result in zip(unique, results):
            if isinstance(result, ImageLoadError):
                logger.warning(f"Skipping image: {result}")
                loaded[source] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                loaded[source] = result
        return loaded

    async def to_data_url(self, source: str) -> str:
        """Re-encode a source as a PNG data URL; failures give ''."""
        try:
            return to_data_url(await self.load(source), 'image/png')
        except ImageLoadError as e:
            logger.warning(f"Skipping image: {e}")
            return ''
