"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SwapProxyError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class FetchFailure(SwapProxyError):
    """An upstream call failed: network error, timeout, non-2xx or RPC error."""

    def __init__(self, upstream: str, detail: str):
        super().__init__(f"{upstream} request failed: {detail}", status_code=502)
        self.upstream = upstream
        self.detail = detail


class UpstreamRejected(SwapProxyError):
    """The upstream refused the request as invalid (bad mint, amount, stale quote)."""

    def __init__(self, upstream: str, detail: str):
        super().__init__(f"{upstream} rejected the request: {detail}", status_code=400)
        self.upstream = upstream
        self.detail = detail


class InvalidKey(SwapProxyError):
    def __init__(self, key: object):
        super().__init__(f"Invalid cache key: {key!r}", status_code=400)


class QuoteUnavailable(SwapProxyError):
    """The aggregator answered but has no route for the requested pair."""

    def __init__(self, input_mint: str, output_mint: str, reason: str = ""):
        message = f"No quote available for {input_mint} -> {output_mint}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, status_code=404)


class InvalidWallet(SwapProxyError):
    def __init__(self, wallet: str):
        super().__init__(f"Invalid wallet address: {wallet}", status_code=400)


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(SwapProxyError)
    async def handle_swap_proxy_error(_request: Request, exc: SwapProxyError):
        if exc.status_code >= 500:
            logger.warning("Upstream error: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
