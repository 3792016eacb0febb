"""Unit tests for idempotency service."""

import json
from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from safari_api.core.clock import utcnow
from safari_api.core.exceptions import ConcurrentModificationError, NotFoundError
from safari_api.models import IdempotencyRecord
from safari_api.services.idempotency_service import (
    IN_PROGRESS_STATUS,
    IdempotencyInProgressError,
    IdempotencyMismatchError,
    IdempotencyService,
)

BODY = {"tour_id": "0d7c1b7e-3c51-4b8f-9a55-1f6b40f3a6c2", "participants": {"adults": 2}}


def counting_operation(result=None):
    calls = []

    async def operation():
        calls.append(1)
        return result or {"id": str(uuid4()), "status": "pending"}

    return operation, calls


def test_request_hash_ignores_key_order():
    first = IdempotencyService.compute_request_hash({"a": 1, "b": {"c": 2, "d": 3}})
    second = IdempotencyService.compute_request_hash({"b": {"d": 3, "c": 2}, "a": 1})

    assert first == second
    assert len(first) == 64
    assert first != IdempotencyService.compute_request_hash({"a": 2, "b": {"c": 2, "d": 3}})


@pytest.mark.asyncio
async def test_run_without_key_always_executes(test_session):
    service = IdempotencyService(test_session)
    operation, calls = counting_operation()

    await service.run(None, "booking/create", uuid4(), BODY, operation)
    await service.run(None, "booking/create", uuid4(), BODY, operation)

    assert len(calls) == 2
    assert (await test_session.execute(select(func.count()).select_from(IdempotencyRecord))).scalar() == 0


@pytest.mark.asyncio
async def test_replay_returns_cached_response(test_session):
    """Test the second call with the same key replays the first outcome."""
    service = IdempotencyService(test_session)
    user_id = uuid4()
    operation, calls = counting_operation()

    first = await service.run("key-1", "booking/create", user_id, BODY, operation)
    second = await service.run("key-1", "booking/create", user_id, BODY, operation)

    assert len(calls) == 1
    assert second.status_code == 200
    assert json.loads(second.body) == json.loads(first.body)


@pytest.mark.asyncio
async def test_keys_are_scoped_per_user_and_method(test_session):
    service = IdempotencyService(test_session)
    operation, calls = counting_operation()
    user_id = uuid4()

    await service.run("key-1", "booking/create", user_id, BODY, operation)
    await service.run("key-1", "booking/create", uuid4(), BODY, operation)
    await service.run("key-1", "booking/cancel", user_id, BODY, operation)

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_reused_key_with_different_body(test_session):
    """Test a key cannot be reused for a different request."""
    service = IdempotencyService(test_session)
    user_id = uuid4()
    operation, calls = counting_operation()
    await service.run("key-1", "booking/create", user_id, BODY, operation)

    with pytest.raises(IdempotencyMismatchError) as exc_info:
        await service.run("key-1", "booking/create", user_id, {**BODY, "participants": {"adults": 3}}, operation)

    assert exc_info.value.status_code == 422
    assert exc_info.value.problem_details["code"] == "IDEMPOTENCY_KEY_MISMATCH"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_final_errors_are_replayed(test_session):
    """Test a non-retryable failure is cached and replayed without re-running."""
    service = IdempotencyService(test_session)
    user_id = uuid4()
    calls = []

    async def operation():
        calls.append(1)
        raise NotFoundError(resource_type="tour", resource_id="missing")

    with pytest.raises(NotFoundError):
        await service.run("key-1", "booking/create", user_id, BODY, operation)

    replay = await service.run("key-1", "booking/create", user_id, BODY, operation)

    assert len(calls) == 1
    assert replay.status_code == 404
    assert json.loads(replay.body)["resource_type"] == "tour"


@pytest.mark.asyncio
async def test_retryable_errors_are_not_cached(test_session):
    service = IdempotencyService(test_session)
    user_id = uuid4()

    async def operation():
        raise ConcurrentModificationError("tour", "t-1", attempts=3)

    with pytest.raises(ConcurrentModificationError):
        await service.run("key-1", "booking/create", user_id, BODY, operation)

    assert await service.check_idempotency("key-1", "booking/create", user_id, BODY) is None


@pytest.mark.asyncio
async def test_expired_records_are_ignored_and_cleaned_up(test_session):
    service = IdempotencyService(test_session)
    user_id = uuid4()
    test_session.add(IdempotencyRecord(
        idempotency_key="old-key",
        method="booking/create",
        user_id=user_id,
        request_body_hash=service.compute_request_hash(BODY),
        response_status_code=200,
        response_body="{}",
        expires_at=utcnow() - timedelta(minutes=1),
    ))
    await test_session.commit()

    assert await service.check_idempotency("old-key", "booking/create", user_id, BODY) is None
    assert await service.cleanup_expired_records() == 1
    assert await service.cleanup_expired_records() == 0


@pytest.mark.asyncio
async def test_claimed_key_is_not_run_twice(test_session):
    """Test a key claimed by an unfinished request answers duplicates with a retryable conflict."""
    service = IdempotencyService(test_session)
    user_id = uuid4()
    operation, calls = counting_operation()

    assert await service.claim_key("key-1", "booking/create", user_id, BODY) is not None
    assert await service.claim_key("key-1", "booking/create", user_id, BODY) is None

    with pytest.raises(IdempotencyInProgressError) as exc_info:
        await service.run("key-1", "booking/create", user_id, BODY, operation)

    assert exc_info.value.status_code == 409
    assert exc_info.value.problem_details["code"] == "IDEMPOTENCY_KEY_IN_PROGRESS"
    assert exc_info.value.problem_details["retryable"] is True
    assert calls == []


@pytest.mark.asyncio
async def test_stale_claim_is_taken_over(test_session):
    """Test a claim left behind by a request that never finished expires."""
    service = IdempotencyService(test_session)
    user_id = uuid4()
    test_session.add(IdempotencyRecord(
        idempotency_key="key-1",
        method="booking/create",
        user_id=user_id,
        request_body_hash=service.compute_request_hash(BODY),
        response_status_code=IN_PROGRESS_STATUS,
        response_body="{}",
        expires_at=utcnow() - timedelta(seconds=1),
    ))
    await test_session.commit()
    operation, calls = counting_operation({"id": "booking-1", "status": "pending"})

    response = await service.run("key-1", "booking/create", user_id, BODY, operation)

    assert response.status_code == 200
    assert len(calls) == 1
    records = (await test_session.execute(select(IdempotencyRecord))).scalars().all()
    assert len(records) == 1
    assert records[0].response_status_code == 200
    assert json.loads(records[0].response_body) == {"id": "booking-1", "status": "pending"}


@pytest.mark.asyncio
async def test_unexpected_errors_release_the_claim(test_session):
    service = IdempotencyService(test_session)
    user_id = uuid4()

    async def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await service.run("key-1", "booking/create", user_id, BODY, failing)

    operation, calls = counting_operation()
    response = await service.run("key-1", "booking/create", user_id, BODY, operation)

    assert response.status_code == 200
    assert len(calls) == 1
