"""Health and readiness check routes."""

import logging

import httpx
from fastapi import APIRouter, Depends

from config import settings
from dependencies import get_cache, get_http_client
from services.cache import ResponseCache
from services.solana_rpc import get_health

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "swap-proxy-api"


@router.get("/ready")
async def ready() -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": SERVICE_NAME, "commit": settings.git_sha}


@router.get("/health")
async def health(
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict:
    """Deep health check that verifies RPC node connectivity."""
    result = {
        "status": "ok",
        "service": SERVICE_NAME,
        "commit": settings.git_sha,
        "rpc": "not_tested",
        "cache": cache.stats(),
    }

    try:
        result["rpc_response"] = await get_health(client)
        result["rpc"] = "connected"
    except Exception as e:
        logger.exception("RPC health check failed")
        result["rpc"] = "error"
        result["rpc_error"] = str(e)

    return result


@router.get("/cache/stats")
async def cache_stats(cache: ResponseCache = Depends(get_cache)) -> dict:
    return cache.stats()
