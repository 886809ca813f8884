"""Wallet routes — recent transaction history via the chain RPC node."""

import logging

import httpx
from fastapi import APIRouter, Depends

from config import settings
from dependencies import get_cache, get_http_client
from services import solana_rpc
from services.cache import ResponseCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/transactions/{wallet}")
async def transactions(
    wallet: str,
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> list:
    """Latest signatures for a wallet, cached briefly to absorb UI refresh bursts."""
    wallet = solana_rpc.validate_wallet(wallet)
    return await cache.get_or_fetch(
        f"transactions:{wallet}",
        settings.transactions_ttl,
        lambda: solana_rpc.get_signatures(client, wallet, limit=settings.transactions_limit),
    )
