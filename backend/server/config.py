"""
Server Configuration

All settings can be overridden through PHOTO_SCRAPER_* environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

ENV_PREFIX = "PHOTO_SCRAPER_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name, "true" if default else "false")
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Startup configuration for the photo scraper service."""
    # Listen address
    host: str = "127.0.0.1"
    port: int = 3001

    # Root for per-request scratch directories and archives
    work_dir: Path = Path("./work")

    # Outbound HTTP
    request_timeout: float = 30.0       # Seconds, page and image fetches

    # Conversion
    jpeg_quality: int = 80              # WebP -> JPEG quality (1-100)

    # HTTP surface
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    # Remove leftovers of a previous process on startup
    sweep_on_startup: bool = True

    def __post_init__(self):
        self.work_dir = Path(self.work_dir)
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be within 1-100, got {self.jpeg_quality}")

    @property
    def scratch_root(self) -> Path:
        """Directory holding one scratch directory per download request."""
        return self.work_dir / "downloads"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        origins = _env("CORS_ORIGINS", "*")
        return cls(
            host=_env("HOST", "127.0.0.1"),
            port=int(_env("PORT", "3001")),
            work_dir=Path(_env("WORK_DIR", "./work")),
            request_timeout=float(_env("TIMEOUT", "30")),
            jpeg_quality=int(_env("JPEG_QUALITY", "80")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            sweep_on_startup=_env_bool("SWEEP_ON_STARTUP", True),
        )
