"""Jupiter swap-aggregator client — token list, quotes, swap transactions.

Route-finding, price impact and transaction construction all happen on the
aggregator. These helpers translate requests and map upstream failures onto
FetchFailure, UpstreamRejected (HTTP 400) or QuoteUnavailable (no route).
"""

import logging
from typing import Any

import httpx

from config import settings
from errors import FetchFailure, QuoteUnavailable, UpstreamRejected

logger = logging.getLogger(__name__)

UPSTREAM = "aggregator"
DEFAULT_SLIPPAGE_BPS = 50

# Aggregator error codes that mean "no route for this pair", not "service down".
NO_ROUTE_ERROR_CODES = {
    "COULD_NOT_FIND_ANY_ROUTE",
    "NO_ROUTES_FOUND",
    "TOKEN_NOT_TRADABLE",
    "ROUTE_PLAN_DOES_NOT_CONSUME_ALL_THE_AMOUNT",
}


def quote_cache_key(input_mint: str, output_mint: str, amount: int, slippage_bps: int) -> str:
    return f"quote:{input_mint}:{output_mint}:{amount}:{slippage_bps}"


def slippage_to_bps(slippage_pct: float) -> int:
    """Convert a slippage percentage (0.5 == 0.5%) to basis points."""
    return int(round(slippage_pct * 100))


async def _request(client: httpx.AsyncClient, method: str, path: str, **kwargs) -> httpx.Response:
    try:
        return await client.request(method, f"{settings.aggregator_api}{path}", **kwargs)
    except httpx.HTTPError as e:
        logger.error("Aggregator %s %s failed: %s", method, path, e)
        raise FetchFailure(UPSTREAM, f"{path}: {e}") from e


def _json(resp: httpx.Response, path: str) -> Any:
    if resp.status_code == 400:
        try:
            body = resp.json()
        except ValueError:
            body = None
        detail = body.get("error") if isinstance(body, dict) else None
        logger.warning("Aggregator rejected %s: %s", path, detail or resp.text[:200])
        raise UpstreamRejected(UPSTREAM, detail or f"{path} returned HTTP 400")
    if resp.is_error:
        logger.error("Aggregator %s returned HTTP %d: %s", path, resp.status_code, resp.text[:200])
        raise FetchFailure(UPSTREAM, f"{path} returned HTTP {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise FetchFailure(UPSTREAM, f"{path} returned invalid JSON") from e


async def fetch_tokens(client: httpx.AsyncClient) -> list:
    """Fetch the aggregator's tradable token list."""
    logger.info("Fetching token list from aggregator")
    resp = await _request(client, "GET", "/tokens")
    tokens = _json(resp, "/tokens")
    if not isinstance(tokens, list):
        raise FetchFailure(UPSTREAM, "/tokens returned an unexpected payload")
    return tokens


async def fetch_quote(
    client: httpx.AsyncClient,
    input_mint: str,
    output_mint: str,
    amount: int,
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
) -> dict:
    """Ask the aggregator for a quote.

    Args:
        client: Shared async HTTP client.
        input_mint: Mint address of the token being sold.
        output_mint: Mint address of the token being bought.
        amount: Input amount in base units (already scaled by decimals).
        slippage_bps: Allowed slippage in basis points.

    Returns:
        The aggregator's quote object (outAmount, otherAmountThreshold,
        priceImpactPct, routePlan, ...), passed through untouched.
    """
    params = {
        "inputMint": input_mint,
        "outputMint": output_mint,
        "amount": str(amount),
        "slippageBps": slippage_bps,
    }
    logger.info("Fetching quote %s -> %s (amount=%d, slippageBps=%d)", input_mint, output_mint, amount, slippage_bps)
    resp = await _request(client, "GET", "/quote", params=params)

    if resp.status_code in (400, 404):
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("errorCode") in NO_ROUTE_ERROR_CODES:
            raise QuoteUnavailable(input_mint, output_mint, body.get("error") or body["errorCode"])

    quote = _json(resp, "/quote")
    if not isinstance(quote, dict) or "outAmount" not in quote:
        raise FetchFailure(UPSTREAM, "/quote returned a malformed quote")
    return quote


async def build_swap_transaction(
    client: httpx.AsyncClient, quote_response: dict, user_public_key: str
) -> dict:
    """Have the aggregator build an unsigned swap transaction for ``quote_response``.

    Never cached: the result is bound to a signer and a recent blockhash.
    """
    payload = {
        "quoteResponse": quote_response,
        "userPublicKey": user_public_key,
        "wrapAndUnwrapSol": True,
    }
    logger.info("Building swap transaction for %s", user_public_key)
    resp = await _request(client, "POST", "/swap", json=payload)
    data = _json(resp, "/swap")
    if not isinstance(data, dict) or "swapTransaction" not in data:
        raise FetchFailure(UPSTREAM, "/swap response is missing swapTransaction")
    return data
