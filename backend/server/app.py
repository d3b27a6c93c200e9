"""
Application Factory

Builds the FastAPI app:
- Shared httpx client for page and image fetches
- Work directory setup and stale-file sweep on startup
- {"error": ...} bodies for every error response
- Static frontend at /
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from image_downloader import router as image_downloader_router
from image_downloader import sweep_work_dir
from image_scraper import router as image_scraper_router
from image_scraper.scraper import BROWSER_USER_AGENT
from .config import ServerConfig

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def create_app(
    config: Optional[ServerConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create the photo scraper app.

    Args:
        config: Server configuration, read from the environment when omitted
        transport: Optional transport for the shared HTTP client (tests)
    """
    config = config or ServerConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.scratch_root.mkdir(parents=True, exist_ok=True)
        if config.sweep_on_startup:
            sweep_work_dir(config.work_dir)

        app.state.http_client = httpx.AsyncClient(
            timeout=config.request_timeout,
            follow_redirects=True,
            headers={"User-Agent": BROWSER_USER_AGENT},
            transport=transport,
        )
        logger.info(f"[Server] Work directory: {config.work_dir.resolve()}")
        try:
            yield
        finally:
            await app.state.http_client.aclose()

    app = FastAPI(
        title="Photo Scraper",
        description="Scrape images from a web page and download them as a zip archive",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[Server] Rejected request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(image_scraper_router)
    app.include_router(image_downloader_router)

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "photo-scraper"}

    return app
