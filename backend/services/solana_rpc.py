"""Minimal Solana JSON-RPC client: signature history and node health."""

import logging
from typing import Any

import base58
import httpx

from config import settings
from errors import FetchFailure, InvalidWallet

logger = logging.getLogger(__name__)

UPSTREAM = "rpc"
PUBKEY_LENGTH = 32


def validate_wallet(wallet: str) -> str:
    """Return ``wallet`` unchanged if it is a base58-encoded 32-byte public key."""
    try:
        raw = base58.b58decode(wallet)
    except ValueError as e:
        raise InvalidWallet(wallet) from e
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidWallet(wallet)
    return wallet


async def rpc_call(client: httpx.AsyncClient, method: str, params: list | None = None) -> Any:
    payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or []}
    try:
        resp = await client.post(settings.solana_rpc, json=payload)
    except httpx.HTTPError as e:
        logger.error("RPC %s failed: %s", method, e)
        raise FetchFailure(UPSTREAM, f"{method}: {e}") from e

    if resp.is_error:
        logger.error("RPC %s returned HTTP %d", method, resp.status_code)
        raise FetchFailure(UPSTREAM, f"{method} returned HTTP {resp.status_code}")
    try:
        body = resp.json()
    except ValueError as e:
        raise FetchFailure(UPSTREAM, f"{method} returned invalid JSON") from e
    if not isinstance(body, dict):
        raise FetchFailure(UPSTREAM, f"{method} returned an unexpected payload")

    if "error" in body:
        error = body["error"]
        message = error.get("message", error) if isinstance(error, dict) else error
        logger.warning("RPC %s error: %s", method, message)
        raise FetchFailure(UPSTREAM, f"{method}: {message}")
    if "result" not in body:
        raise FetchFailure(UPSTREAM, f"{method} response has no result")
    return body["result"]


async def get_signatures(client: httpx.AsyncClient, wallet: str, limit: int = 20) -> list[dict]:
    """Most recent transaction signatures for ``wallet``, newest first."""
    logger.info("Fetching %d signatures for %s", limit, wallet)
    return await rpc_call(client, "getSignaturesForAddress", [wallet, {"limit": limit}])


async def get_health(client: httpx.AsyncClient) -> str:
    return await rpc_call(client, "getHealth")
