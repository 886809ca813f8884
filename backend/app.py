"""FastAPI application entry point for the swap proxy API."""

import asyncio
import logging
import sys

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from errors import register_error_handlers
from services.cache import ResponseCache, purge_periodically

# Structured logging: JSON for production, human-readable for local
if settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    cache: ResponseCache | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the app around one cache and one outbound HTTP client.

    A missing cache is created here; a missing HTTP client is opened on
    startup so importing this module leaves no unclosed client behind.
    """
    app = FastAPI(title="Swap Proxy API", version="1.0.0")
    app.state.cache = cache if cache is not None else ResponseCache()
    app.state.http_client = http_client
    app.state.purge_task = None

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from routes.health import router as health_router
    from routes.swap import router as swap_router
    from routes.wallet import router as wallet_router

    app.include_router(health_router)
    app.include_router(swap_router)
    app.include_router(wallet_router)

    @app.on_event("startup")
    async def _startup() -> None:
        if app.state.http_client is None:
            app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout)
        problems = settings.validate()
        if problems:
            logger.warning("Configuration problems: %s", "; ".join(problems))
        if settings.cache_purge_interval > 0:
            app.state.purge_task = asyncio.create_task(
                purge_periodically(app.state.cache, settings.cache_purge_interval)
            )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        task = app.state.purge_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if app.state.http_client is not None:
            await app.state.http_client.aclose()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=settings.port)
