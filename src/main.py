"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.mp_account.api.router import router as account_router
from src.mp_common.database import engine
from src.mp_common.errors import AppError
from src.mp_common.redis_client import close_redis, get_redis
from src.mp_common.response import error_response, request_id_of
from src.mp_gateway.api.profile_router import router as profile_router
from src.mp_gateway.api.router import router as auth_router
from src.mp_gateway.middleware.request_log import RequestLogMiddleware
from src.mp_listing.api.router import router as listing_router
from src.mp_transaction.api.router import router as transaction_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    configure_logging()
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    logger.info("%s started", settings.APP_NAME)
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request_id_of(request))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(profile_router, prefix="/api/v1")
app.include_router(listing_router, prefix="/api/v1")
app.include_router(transaction_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
