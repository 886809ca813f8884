"""FastAPI dependencies for per-process shared resources."""

import httpx
from fastapi import Request

from services.cache import ResponseCache


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


def get_http_client(request: Request) -> httpx.AsyncClient:
    # One client per app: a coalesced fetch may outlive the request that started it.
    return request.app.state.http_client
