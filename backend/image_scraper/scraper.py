"""
Image Scraper Core Logic

Handles:
- Fetching a page as HTML
- Collecting the src of every <img> element in document order
- Resolving relative references against the page URL
"""

import logging
from typing import List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from server.errors import EmptyResultError, FetchError, ValidationError

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
PAGE_REQUEST_HEADERS = {"Accept": "text/html,application/xhtml+xml,*/*;q=0.8"}


def extract_image_urls(html: str, base_url: str) -> List[str]:
    """
    Collect absolute image URLs from an HTML document.

    Inline data URIs and empty sources are skipped. Duplicates are kept,
    so the result has one entry per qualifying <img> element.
    """
    soup = BeautifulSoup(html, "html.parser")

    images = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src or src.startswith("data:"):
            continue
        if src.startswith(("http://", "https://")):
            images.append(src)
        else:
            images.append(urljoin(base_url, src))

    return images


class ImageScraper:
    """
    Scrapes image references from a web page.

    Usage:
        scraper = ImageScraper(http_client)
        urls = await scraper.scrape("https://example.com")
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def fetch_html(self, url: str) -> str:
        try:
            response = await self.http_client.get(url, headers=PAGE_REQUEST_HEADERS)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"HTTP {e.response.status_code} fetching {url}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e
        return response.text

    async def scrape(self, url: Optional[str]) -> List[str]:
        """
        Fetch a page and return the absolute URLs of its images.

        Raises:
            ValidationError: no URL given
            FetchError: the page could not be fetched
            EmptyResultError: the page has no qualifying images
        """
        if not url:
            raise ValidationError("No URL provided")

        logger.info(f"[ImageScraper] Scraping: {url[:80]}")
        html = await self.fetch_html(url)
        images = extract_image_urls(html, url)

        if not images:
            raise EmptyResultError(f"No images found on {url}")

        logger.info(f"[ImageScraper] Found {len(images)} images on {url[:60]}")
        return images
