"""
Image Downloader Module

Bundles a batch of external images into one zip archive.

Features:
- Batch parallel download, all-or-nothing
- WebP to JPEG conversion
- Per-request scratch directory and archive, removed after delivery
"""

from .routes_fastapi import router
from .downloader import ImageDownloader
from .workspace import ScratchWorkspace, build_archive, sweep_work_dir

__all__ = ["router", "ImageDownloader", "ScratchWorkspace", "build_archive", "sweep_work_dir"]
