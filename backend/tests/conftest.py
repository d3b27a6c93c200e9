"""
Photo scraper test configuration.

Fixtures:
- Generated test images (PNG, GIF, WebP)
- A fake remote web served through httpx.MockTransport
- A configured app wrapped in FastAPI's TestClient
"""

import sys
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from server.app import create_app
from server.config import ServerConfig


# ============================================
# Test Images
# ============================================

def make_image(fmt: str, mode: str = "RGB", size=(8, 6), color=(200, 40, 40)) -> bytes:
    if mode == "RGBA":
        color = color + (128,)
    img = Image.new(mode, size, color)
    if fmt == "GIF":
        img = img.convert("P")
    output = BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


@pytest.fixture(scope="session")
def png_bytes():
    return make_image("PNG")


@pytest.fixture(scope="session")
def gif_bytes():
    return make_image("GIF")


@pytest.fixture(scope="session")
def jpeg_bytes():
    return make_image("JPEG")


@pytest.fixture(scope="session")
def webp_bytes():
    return make_image("WEBP", mode="RGBA")


# ============================================
# Fake Remote Web
# ============================================

class FakeWeb:
    """
    In-memory web for httpx.MockTransport.

    Unknown URLs answer 404. Every request is recorded.
    """

    def __init__(self):
        self.pages: Dict[str, Tuple[int, bytes, str]] = {}
        self.failing: Dict[str, Exception] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, content, content_type: str = "text/html", status: int = 200):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.pages[url] = (status, content, content_type)

    def fail(self, url: str, error: Exception):
        self.failing[url] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.failing:
            raise self.failing[url]
        status, content, content_type = self.pages.get(url, (404, b"not found", "text/plain"))
        return httpx.Response(status, content=content, headers={"Content-Type": content_type})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, follow_redirects=True)


@pytest.fixture
def fake_web():
    return FakeWeb()


@pytest.fixture
async def http_client(fake_web):
    client = fake_web.async_client()
    yield client
    await client.aclose()


# ============================================
# App Fixtures
# ============================================

@pytest.fixture
def config(tmp_path):
    return ServerConfig(work_dir=tmp_path / "work")


@pytest.fixture
def client(config, fake_web):
    app = create_app(config, transport=fake_web.transport)
    with TestClient(app) as test_client:
        yield test_client


# ============================================
# Helper Functions
# ============================================

def assert_error(response, status_code: int, message: str):
    """Assert an error response carries the expected status and message."""
    assert response.status_code == status_code, response.text
    assert response.json() == {"error": message}


def assert_work_dir_clean(config: ServerConfig):
    """Assert no scratch files or archives remain after a request."""
    assert list(config.scratch_root.iterdir()) == []
    assert list(config.work_dir.glob("*.zip")) == []
