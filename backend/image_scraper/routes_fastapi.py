"""
Image Scraper API Routes

Provides endpoints for:
- Scraping the image URLs of a web page
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
import httpx

from server.dependencies import get_http_client
from server.errors import EmptyResultError, FetchError, ValidationError
from .scraper import ImageScraper

logger = logging.getLogger(__name__)

# ============================================
# Request/Response Models
# ============================================


class ScrapeRequest(BaseModel):
    """Request model for scraping a page."""
    url: Optional[str] = Field(None, description="Page URL to scrape")


class ScrapeResponse(BaseModel):
    """Response model for a successful scrape."""
    images: List[str]


# ============================================
# Router
# ============================================

router = APIRouter(tags=["Image Scraper"])


# ============================================
# Endpoints
# ============================================

@router.post("/scrape", response_model=ScrapeResponse)
async def scrape_images(
    request: ScrapeRequest,
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Scrape every image URL of a page.

    Example:
        POST /scrape
        {"url": "https://example.com/gallery"}
    """
    scraper = ImageScraper(http_client)
    try:
        images = await scraper.scrape(request.url)
    except ValidationError:
        raise HTTPException(status_code=400, detail="No URL provided")
    except EmptyResultError:
        raise HTTPException(status_code=404, detail="No images found on the page")
    except FetchError as e:
        logger.error(f"[ImageScraper] Error scraping images: {e}")
        raise HTTPException(status_code=500, detail="Failed to scrape images")
    except Exception as e:
        logger.exception(f"[ImageScraper] Unexpected error scraping {request.url}: {e}")
        raise HTTPException(status_code=500, detail="Failed to scrape images")

    return ScrapeResponse(images=images)
