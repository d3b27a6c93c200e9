"""
Image Downloader API Routes

Provides endpoints for:
- Downloading a batch of images and returning them as one zip archive
"""

import logging
from typing import AsyncIterator, List, Optional

import aiofiles
import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from server.config import ServerConfig
from server.dependencies import get_config, get_http_client
from server.errors import ArchiveError, DeliveryError, PhotoScraperError
from .downloader import ImageDownloader
from .workspace import ScratchWorkspace, build_archive

logger = logging.getLogger(__name__)

ARCHIVE_FILENAME = "images.zip"
STREAM_CHUNK_SIZE = 64 * 1024

# ============================================
# Request Models
# ============================================


class ImageDownloadRequest(BaseModel):
    """Request model for bundling images into a zip."""
    model_config = ConfigDict(populate_by_name=True)

    image_urls: Optional[List[str]] = Field(
        None,
        alias="imageUrls",
        description="Image URLs to download, in archive order",
    )


# ============================================
# Router
# ============================================

router = APIRouter(tags=["Image Downloader"])


async def _open_for_delivery(workspace: ScratchWorkspace):
    try:
        return await aiofiles.open(workspace.zip_path, "rb")
    except OSError as e:
        raise DeliveryError(f"Failed to open {workspace.zip_path.name} for delivery: {e}") from e


async def _stream_archive(handle, workspace: ScratchWorkspace) -> AsyncIterator[bytes]:
    """
    Yield the archive in chunks, then remove the request's files.

    Cleanup must not await: once the stream is cancelled every later
    await is cancelled too, the handle close included.
    """
    try:
        while True:
            chunk = await handle.read(STREAM_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        try:
            await handle.close()
        finally:
            workspace.cleanup()


# ============================================
# Endpoints
# ============================================

@router.post("/download")
async def download_images(
    request: ImageDownloadRequest,
    config: ServerConfig = Depends(get_config),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Download images and return them as a zip archive.

    This endpoint:
    1. Downloads all images in parallel into a scratch directory
    2. Converts WebP images to JPEG
    3. Zips the scratch directory at maximum compression
    4. Streams the archive back as images.zip, then deletes all files

    Example:
        POST /download
        {"imageUrls": ["https://example.com/a.png", "https://example.com/b.webp"]}
    """
    if not request.image_urls:
        raise HTTPException(status_code=400, detail="No image URLs provided")

    workspace = ScratchWorkspace(config.work_dir)
    downloader = ImageDownloader(http_client, jpeg_quality=config.jpeg_quality)

    try:
        await run_in_threadpool(workspace.create)
        await downloader.download_batch(request.image_urls, workspace.scratch_dir)
    except PhotoScraperError as e:
        logger.error(f"[ImageDownloader] Error downloading images: {e}")
        await run_in_threadpool(workspace.cleanup)
        raise HTTPException(status_code=500, detail=f"Failed to download images. Reason: {e}")
    except Exception as e:
        logger.exception(f"[ImageDownloader] Unexpected error downloading images: {e}")
        await run_in_threadpool(workspace.cleanup)
        raise HTTPException(status_code=500, detail=f"Failed to download images. Reason: {e}")

    try:
        await run_in_threadpool(build_archive, workspace.scratch_dir, workspace.zip_path)
    except ArchiveError as e:
        logger.error(f"[Archive] Error creating zip file: {e}")
        await run_in_threadpool(workspace.cleanup)
        raise HTTPException(status_code=500, detail="Error creating zip file.")

    try:
        handle = await _open_for_delivery(workspace)
    except DeliveryError as e:
        logger.error(f"[ImageDownloader] {e}")
        await run_in_threadpool(workspace.cleanup)
        raise HTTPException(status_code=500, detail="Failed to download zip file.")

    return StreamingResponse(
        _stream_archive(handle, workspace),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
    )
