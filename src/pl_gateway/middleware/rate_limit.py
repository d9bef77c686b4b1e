"""Rate limiting middleware for mutating endpoints.

Rule: RATE_LIMIT_WRITES_PER_MINUTE POST requests per caller per fixed 60s window.

  1. Caller key: sha256 of the Bearer token when present, else the client IP
     (first X-Forwarded-For hop, reverse proxy aware)
  2. Redis key: "ratelimit:{caller}:{window}" with INCR + EXPIRE
  3. Over the limit → 429 with the 9001 envelope and a Retry-After header

Errors raised inside BaseHTTPMiddleware bypass the app exception handlers, so
the 429 envelope is built here directly.
"""

import hashlib
import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.pl_common.errors import RateLimitError
from src.pl_common.redis_client import get_redis
from src.pl_common.response import app_error_response

logger = logging.getLogger("pl.ratelimit")

_WINDOW_SECONDS = 60
_LIMITED_METHODS = frozenset({"POST"})


def caller_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        digest = hashlib.sha256(auth[7:].strip().encode()).hexdigest()[:16]
        return f"tok:{digest}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or request.method not in _LIMITED_METHODS:
            return await call_next(request)

        now = int(time.time())
        window = now // _WINDOW_SECONDS
        key = f"ratelimit:{caller_key(request)}:{window}"
        try:
            redis = await get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError:
            logger.exception("rate limiter unavailable, letting %s through", request.url.path)
            return await call_next(request)

        if count > settings.RATE_LIMIT_WRITES_PER_MINUTE:
            retry_after = _WINDOW_SECONDS - (now % _WINDOW_SECONDS)
            exc = RateLimitError()
            body = app_error_response(exc, request)
            return JSONResponse(
                status_code=exc.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
