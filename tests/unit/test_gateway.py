"""Unit tests for pl_gateway: tokens, current-user dependency, rate limiting."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from jose import jwt
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.requests import Request

from config.settings import settings
from src.pl_common.errors import AccountDisabledError, InvalidCredentialsError
from src.pl_gateway.auth.dependencies import get_current_user
from src.pl_gateway.auth.jwt_handler import create_access_token, decode_access_token
from src.pl_gateway.middleware.rate_limit import RateLimitMiddleware, caller_key


def _request(headers: dict[str, str] | None = None, method: str = "POST") -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": method,
        "path": "/api/v1/cashout-requests",
        "headers": raw,
        "client": ("10.0.0.7", 5555),
        "query_string": b"",
    }
    return Request(scope)


class TestJwt:
    def test_round_trip(self) -> None:
        token = create_access_token("user-abc")
        payload = decode_access_token(token)
        assert payload["sub"] == "user-abc"
        assert payload["type"] == "access"

    def test_refresh_token_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "user-abc", "type": "refresh"},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(InvalidCredentialsError):
            decode_access_token(token)

    def test_wrong_secret_rejected(self) -> None:
        token = jwt.encode({"sub": "u", "type": "access"}, "other", algorithm="HS256")
        with pytest.raises(InvalidCredentialsError):
            decode_access_token(token)


class TestGetCurrentUser:
    @staticmethod
    def _db_with(user) -> MagicMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = user
        db = MagicMock()
        db.execute = AsyncMock(return_value=result)
        return db

    async def test_returns_active_user(self) -> None:
        user = MagicMock(is_active=True)
        token = create_access_token(str(uuid.uuid4()))
        assert await get_current_user(token, self._db_with(user)) is user

    async def test_invalid_token_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc:
            await get_current_user("garbage", self._db_with(None))
        assert exc.value.status_code == 401

    async def test_non_uuid_subject_is_401(self) -> None:
        with patch(
            "src.pl_gateway.auth.dependencies.decode_access_token",
            return_value={"sub": "not-a-uuid", "type": "access"},
        ):
            with pytest.raises(HTTPException) as exc:
                await get_current_user("t", self._db_with(None))
        assert exc.value.status_code == 401

    async def test_unknown_user_is_401(self) -> None:
        token = create_access_token(str(uuid.uuid4()))
        with pytest.raises(HTTPException):
            await get_current_user(token, self._db_with(None))

    async def test_disabled_user(self) -> None:
        token = create_access_token(str(uuid.uuid4()))
        with pytest.raises(AccountDisabledError):
            await get_current_user(token, self._db_with(MagicMock(is_active=False)))


class TestCallerKey:
    def test_bearer_token_is_hashed(self) -> None:
        key = caller_key(_request({"Authorization": "Bearer abc.def.ghi"}))
        assert key.startswith("tok:")
        assert "abc" not in key

    def test_forwarded_for_first_hop(self) -> None:
        key = caller_key(_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}))
        assert key == "ip:203.0.113.9"

    def test_client_host_fallback(self) -> None:
        assert caller_key(_request()) == "ip:10.0.0.7"


class TestRateLimitMiddleware:
    @staticmethod
    def _middleware() -> RateLimitMiddleware:
        return RateLimitMiddleware(app=MagicMock())

    async def test_over_limit_returns_429(self) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 31
        call_next = AsyncMock()
        with (
            patch("src.pl_gateway.middleware.rate_limit.settings") as s,
            patch("src.pl_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)),
        ):
            s.RATE_LIMIT_ENABLED = True
            s.RATE_LIMIT_WRITES_PER_MINUTE = 30
            resp = await self._middleware().dispatch(_request(), call_next)

        assert resp.status_code == 429
        assert "Retry-After" in resp.headers
        call_next.assert_not_awaited()

    async def test_first_hit_sets_expiry(self) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 1
        call_next = AsyncMock(return_value="ok")
        with (
            patch("src.pl_gateway.middleware.rate_limit.settings") as s,
            patch("src.pl_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)),
        ):
            s.RATE_LIMIT_ENABLED = True
            s.RATE_LIMIT_WRITES_PER_MINUTE = 30
            resp = await self._middleware().dispatch(_request(), call_next)

        assert resp == "ok"
        redis.expire.assert_awaited_once()

    async def test_reads_are_not_limited(self) -> None:
        call_next = AsyncMock(return_value="ok")
        get_redis = AsyncMock()
        with (
            patch("src.pl_gateway.middleware.rate_limit.settings") as s,
            patch("src.pl_gateway.middleware.rate_limit.get_redis", get_redis),
        ):
            s.RATE_LIMIT_ENABLED = True
            resp = await self._middleware().dispatch(_request(method="GET"), call_next)

        assert resp == "ok"
        get_redis.assert_not_awaited()

    async def test_redis_outage_lets_request_through(self) -> None:
        redis = AsyncMock()
        redis.incr.side_effect = RedisConnectionError("down")
        call_next = AsyncMock(return_value="ok")
        with (
            patch("src.pl_gateway.middleware.rate_limit.settings") as s,
            patch("src.pl_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)),
        ):
            s.RATE_LIMIT_ENABLED = True
            s.RATE_LIMIT_WRITES_PER_MINUTE = 30
            resp = await self._middleware().dispatch(_request(), call_next)

        assert resp == "ok"
