"""
Image Scraper Module

Extracts image references from a web page.

Features:
- Fetches the page through the shared HTTP client
- Collects <img> sources in document order, duplicates included
- Skips inline data URIs
- Resolves relative sources against the page URL
"""

from .routes_fastapi import router
from .scraper import ImageScraper, extract_image_urls

__all__ = ["router", "ImageScraper", "extract_image_urls"]
