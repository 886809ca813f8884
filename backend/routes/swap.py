"""Swap routes — token list, quotes and swap-transaction construction.

GET  /api/tokens  → aggregator /tokens   (cached, TOKENS_TTL)
POST /api/quote   → aggregator /quote    (cached per pair/amount/slippage, QUOTE_TTL)
POST /api/swap    → aggregator /swap     (never cached)
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import settings
from dependencies import get_cache, get_http_client
from services import jupiter
from services.cache import ResponseCache
from services.solana_rpc import validate_wallet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

TOKENS_KEY = "tokens"


class QuoteRequest(BaseModel):
    """Quote parameters as sent by the UI.

    ``slippage`` is a percentage (0.5 == 0.5%); ``slippageBps`` wins when both are given.
    """

    model_config = ConfigDict(populate_by_name=True)

    input_mint: str = Field(alias="inputMint", min_length=1)
    output_mint: str = Field(alias="outputMint", min_length=1)
    amount: int = Field(gt=0)
    slippage: float | None = Field(None, ge=0, le=100)
    slippage_bps: int | None = Field(None, alias="slippageBps", ge=0, le=10_000)

    @field_validator("amount", mode="before")
    @classmethod
    def _round_amount(cls, value):
        # UI scales a decimal input by 10**decimals, which can leave float noise.
        if isinstance(value, float):
            return round(value)
        return value

    def resolved_slippage_bps(self) -> int:
        if self.slippage_bps is not None:
            return self.slippage_bps
        if self.slippage is not None:
            return jupiter.slippage_to_bps(self.slippage)
        return jupiter.DEFAULT_SLIPPAGE_BPS


class SwapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quote_response: dict = Field(alias="quoteResponse")
    user_public_key: str = Field(alias="userPublicKey")


@router.get("/tokens")
async def tokens(
    refresh: bool = Query(False),
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> list:
    """Tradable token list, shared across callers for TOKENS_TTL seconds."""
    if refresh:
        await cache.invalidate(TOKENS_KEY)
    return await cache.get_or_fetch(TOKENS_KEY, settings.tokens_ttl, lambda: jupiter.fetch_tokens(client))


@router.post("/quote")
async def quote(
    body: QuoteRequest,
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict:
    if body.input_mint == body.output_mint:
        raise ValueError("inputMint and outputMint must differ")

    slippage_bps = body.resolved_slippage_bps()
    key = jupiter.quote_cache_key(body.input_mint, body.output_mint, body.amount, slippage_bps)

    return await cache.get_or_fetch(
        key,
        settings.quote_ttl,
        lambda: jupiter.fetch_quote(client, body.input_mint, body.output_mint, body.amount, slippage_bps),
    )


@router.post("/swap")
async def swap(
    body: SwapRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict:
    """Unsigned, base64-encoded swap transaction for the wallet to sign."""
    user_public_key = validate_wallet(body.user_public_key)
    return await jupiter.build_swap_transaction(client, body.quote_response, user_public_key)
