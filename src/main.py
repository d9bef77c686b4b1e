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
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.pl_cashout.api.router import router as cashout_router
from src.pl_common.database import engine
from src.pl_common.errors import AppError, ValidationError
from src.pl_common.redis_client import close_redis, get_redis
from src.pl_common.response import app_error_response
from src.pl_game.api.router import router as game_router
from src.pl_gateway.middleware.rate_limit import RateLimitMiddleware
from src.pl_gateway.middleware.request_log import RequestLogMiddleware
from src.pl_player.api.router import router as player_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Last added runs first: request logging wraps the rate limiter
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = app_error_response(exc, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    err = ValidationError(".".join(loc) or "request", first.get("msg", "invalid request"))
    resp = app_error_response(err, request)
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


app.include_router(game_router, prefix="/api/v1")
app.include_router(player_router, prefix="/api/v1")
app.include_router(cashout_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
