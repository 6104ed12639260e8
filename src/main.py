"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.ws_common.database import create_engine, create_session_factory
from src.ws_common.errors import AppError
from src.ws_common.logging_config import configure_logging
from src.ws_common.redis_client import close_redis, create_redis
from src.ws_common.response import error_response, request_id_of
from src.ws_gateway.middleware.rate_limit import RateLimitMiddleware
from src.ws_gateway.middleware.request_log import RequestLogMiddleware
from src.ws_wallet.api.router import router as wallet_router
from src.ws_wallet.application.service import WalletSummaryService
from src.ws_wallet.infrastructure.persistence import WalletSummaryRepository
from src.ws_wallet.infrastructure.warehouse import WalletWarehouse, create_bigquery_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build clients, verify DB. Shutdown: dispose them in reverse order."""
    configure_logging(settings.LOG_LEVEL)

    engine = create_engine(settings)
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    bigquery_client = create_bigquery_client(settings)
    redis = create_redis(settings) if settings.RATE_LIMIT_PER_MINUTE > 0 else None

    app.state.session_factory = create_session_factory(engine)
    app.state.redis = redis
    app.state.summary_service = WalletSummaryService(
        cache=WalletSummaryRepository(),
        source=WalletWarehouse.from_settings(bigquery_client, settings),
    )
    logger.info("%s started", settings.APP_NAME)
    try:
        yield
    finally:
        await close_redis(redis)
        bigquery_client.close()
        await engine.dispose()
        logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Outermost last: request IDs exist before rate limiting runs
app.add_middleware(RateLimitMiddleware, limit_per_minute=settings.RATE_LIMIT_PER_MINUTE)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request_id=request_id_of(request))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(wallet_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
