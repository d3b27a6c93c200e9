"""
Image Downloader Core Logic

Handles:
- Deriving deterministic scratch filenames (image<N>.<ext>)
- Streaming images from external URLs to disk
- Converting WebP downloads to JPEG
"""

import asyncio
import logging
import posixpath
import re
from pathlib import Path
from typing import List, Union
from urllib.parse import urlparse

import aiofiles
import httpx
from fastapi.concurrency import run_in_threadpool
from PIL import Image

from server.errors import ConversionError, FetchError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"
WEBP_EXTENSION = ".webp"

IMAGE_REQUEST_HEADERS = {"Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8"}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.]")


def sanitize_filename(filename: str) -> str:
    """Replace every character outside [A-Za-z0-9.] with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


def url_extension(url: str) -> str:
    """
    Extension of the last path-like segment of a raw URL string.

    The URL is not parsed, so a query string stays part of the
    extension ("a.png?v=2" -> ".png?v=2"); sanitize_filename escapes it later.
    """
    return posixpath.splitext(url)[1]


def is_webp(url: str) -> bool:
    return url_extension(url).lower() == WEBP_EXTENSION


def scratch_filename(url: str, index: int) -> str:
    """
    Filename for the index-th (0-based) image of a batch.

    Missing and .webp extensions become .jpg. Any other extension is
    kept verbatim, without conversion.
    """
    extension = url_extension(url)
    if not extension or extension.lower() == WEBP_EXTENSION:
        extension = DEFAULT_EXTENSION
    return sanitize_filename(f"image{index + 1}{extension}")


def convert_to_jpeg(source: Path, target: Path, quality: int = 80) -> Path:
    """
    Re-encode an image file as JPEG.

    Transparent images are flattened onto a white background.
    """
    try:
        with Image.open(source) as img:
            if img.mode in ("RGBA", "LA", "P"):
                img = img.convert("RGBA")
                background = Image.new("RGB", img.size, (255, 255, 255))
                background.paste(img, mask=img.split()[3])
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")
            img.save(target, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise ConversionError(f"Failed to convert {source.name} to JPG: {e}") from e
    return target


class ImageDownloader:
    """
    Downloads a batch of images into a scratch directory.

    Usage:
        downloader = ImageDownloader(http_client)
        paths = await downloader.download_batch(urls, scratch_dir)
    """

    def __init__(self, http_client: httpx.AsyncClient, jpeg_quality: int = 80, chunk_size: int = 64 * 1024):
        self.http_client = http_client
        self.jpeg_quality = jpeg_quality
        self.chunk_size = chunk_size

    async def _stream_to_file(self, url: str, path: Path) -> None:
        try:
            async with self.http_client.stream("GET", url, headers=IMAGE_REQUEST_HEADERS) as response:
                if not response.is_success:
                    raise FetchError(f"Failed to download image: {response.status_code}")
                async with aiofiles.open(path, "wb") as f:
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        await f.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            path.unlink(missing_ok=True)
            raise FetchError(str(e) or e.__class__.__name__) from e
        except FetchError:
            path.unlink(missing_ok=True)
            raise

    async def download_single(self, url: str, index: int, scratch_dir: Union[str, Path]) -> Path:
        """
        Download one image into the scratch directory.

        Args:
            url: Image URL to download
            index: Position in the batch, used for the filename
            scratch_dir: Directory receiving the file

        Returns:
            Path of the file left on disk
        """
        scratch_dir = Path(scratch_dir)
        target = scratch_dir / scratch_filename(url, index)

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise FetchError(f"Invalid URL scheme: {parsed.scheme or 'none'}")

        logger.info(f"[ImageDownloader] Downloading: {url[:60]}...")

        if not is_webp(url):
            await self._stream_to_file(url, target)
            return target

        staged = target.with_suffix(WEBP_EXTENSION)
        await self._stream_to_file(url, staged)
        try:
            await run_in_threadpool(convert_to_jpeg, staged, target, self.jpeg_quality)
        finally:
            staged.unlink(missing_ok=True)

        logger.debug(f"[ImageDownloader] Converted WebP -> {target.name}")
        return target

    async def download_batch(self, urls: List[str], scratch_dir: Union[str, Path]) -> List[Path]:
        """
        Download every image of a batch in parallel.

        The batch is all-or-nothing: the first failure cancels the
        downloads still in flight and is re-raised.

        Returns:
            File paths in request order
        """
        if not urls:
            raise ValidationError("No image URLs provided")

        logger.info(f"[ImageDownloader] Starting batch download of {len(urls)} images")

        tasks = [
            asyncio.ensure_future(self.download_single(url, index, scratch_dir))
            for index, url in enumerate(urls)
        ]

        try:
            paths = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.info(f"[ImageDownloader] Batch complete: {len(paths)}/{len(urls)} images")
        return list(paths)
