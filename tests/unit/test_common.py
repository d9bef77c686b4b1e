"""Tests for pl_common: cents, ids, join codes, keyed locks, errors and the envelope."""

import asyncio
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from src.pl_common.cents import (
    MAX_CENTS,
    cents_to_display,
    validate_non_negative,
    validate_positive,
)
from src.pl_common.datetime_utils import iso_or_none, utc_now
from src.pl_common.errors import (
    AlreadyVotedError,
    AppError,
    GameFullError,
    NotAuthorizedError,
    RequestNotOpenError,
    ValidationError,
)
from src.pl_common.id_generator import SnowflakeIdGenerator, generate_id
from src.pl_common.locks import KeyedLocks
from src.pl_common.response import (
    ApiResponse,
    app_error_response,
    error_response,
    success_response,
)
from src.pl_game.domain.join_code import ALPHABET, generate_join_code, normalize_join_code


class TestCents:
    def test_non_negative_accepts_zero(self) -> None:
        validate_non_negative(0)

    def test_non_negative_rejects_negative(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            validate_non_negative(-5)

    def test_rejects_bool_and_float(self) -> None:
        with pytest.raises(ValueError):
            validate_non_negative(True)
        with pytest.raises(ValueError):
            validate_non_negative(1.5)  # type: ignore[arg-type]

    def test_bigint_limit(self) -> None:
        validate_non_negative(MAX_CENTS)
        with pytest.raises(ValueError, match="<= "):
            validate_non_negative(MAX_CENTS + 1)
        with pytest.raises(ValueError):
            validate_positive(2**63)

    def test_positive_rejects_zero(self) -> None:
        with pytest.raises(ValueError, match="> 0"):
            validate_positive(0)

    def test_display(self) -> None:
        assert cents_to_display(15000) == "$150.00"
        assert cents_to_display(1) == "$0.01"
        assert cents_to_display(123456789) == "$1,234,567.89"
        assert cents_to_display(-1200) == "-$12.00"


class TestIds:
    def test_unique_and_increasing(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=3)
        ids = [int(gen.next_id()) for _ in range(2000)]
        assert len(set(ids)) == 2000
        assert ids == sorted(ids)

    def test_worker_id_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(worker_id=1024)

    def test_module_generator_returns_str(self) -> None:
        assert isinstance(generate_id(), str)


class TestDatetime:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_iso_or_none(self) -> None:
        assert iso_or_none(None) is None
        assert iso_or_none(datetime(2026, 1, 2, tzinfo=UTC)) == "2026-01-02T00:00:00+00:00"


class TestJoinCode:
    def test_length_and_alphabet(self) -> None:
        code = generate_join_code(6)
        assert len(code) == 6
        assert set(code) <= set(ALPHABET)

    def test_normalize(self) -> None:
        assert normalize_join_code("  ab12cd ") == "AB12CD"


class TestKeyedLocks:
    async def test_same_key_is_serialized(self) -> None:
        locks = KeyedLocks("test")
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("k"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    async def test_different_keys_run_concurrently(self) -> None:
        locks = KeyedLocks("test")
        inside = asyncio.Event()

        async def first() -> None:
            async with locks.hold("k1"):
                await asyncio.wait_for(inside.wait(), timeout=1.0)

        async def second() -> None:
            async with locks.hold("k2"):
                inside.set()

        await asyncio.gather(first(), second())

    async def test_released_keys_are_dropped(self) -> None:
        locks = KeyedLocks("test")
        async with locks.hold("k"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_lock_released_on_error(self) -> None:
        locks = KeyedLocks("test")
        with pytest.raises(RuntimeError):
            async with locks.hold("k"):
                raise RuntimeError("boom")
        async with locks.hold("k"):
            pass


class TestErrors:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.http_status == 500
        assert isinstance(err, Exception)

    def test_game_full(self) -> None:
        err = GameFullError("g-1", 8)
        assert (err.code, err.http_status) == (2003, 422)
        assert "8" in err.message

    def test_request_not_open(self) -> None:
        err = RequestNotOpenError("r-1", "APPROVED")
        assert (err.code, err.http_status) == (4003, 422)
        assert "APPROVED" in err.message

    def test_already_voted(self) -> None:
        assert AlreadyVotedError("r-1").http_status == 409

    def test_not_authorized(self) -> None:
        err = NotAuthorizedError("end game g-1")
        assert (err.code, err.http_status) == (1010, 403)

    def test_validation_names_field(self) -> None:
        err = ValidationError("chip_count_cents", "must be >= 0 cents, got -1")
        assert err.field == "chip_count_cents"
        assert "chip_count_cents" in err.message
        assert err.http_status == 422


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "g-1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "g-1"}
        assert resp.request_id.startswith("req_")

    def test_error(self) -> None:
        resp = error_response(2001, "Game not found")
        assert resp.code == 2001
        assert resp.data is None

    def test_request_id_taken_from_request_state(self) -> None:
        request = MagicMock()
        request.state.request_id = "req_abc"
        resp = app_error_response(AlreadyVotedError("r-1"), request)
        assert resp.request_id == "req_abc"
        assert resp.code == 4004

    def test_serializes(self) -> None:
        dumped = ApiResponse(data=[1, 2]).model_dump()
        assert set(dumped) == {"code", "message", "data", "timestamp", "request_id"}
