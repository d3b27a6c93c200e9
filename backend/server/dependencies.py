"""FastAPI dependencies shared by the routers."""

import httpx
from fastapi import Request

from .config import ServerConfig


def get_config(request: Request) -> ServerConfig:
    return request.app.state.config


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client
