"""Idempotency service for replaying booking operations."""

import hashlib
import json
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID, uuid4

from fastapi.responses import JSONResponse
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.config import settings
from ..core.exceptions import ConflictError, ProblemDetailsException
from ..models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)

# Status stored on a claimed key until its request finishes
IN_PROGRESS_STATUS = 102


class IdempotencyMismatchError(ProblemDetailsException):
    """Exception when idempotency key is reused with different request body."""

    def __init__(self, idempotency_key: str, method: str):
        super().__init__(
            status_code=422,
            title="Idempotency Key Mismatch",
            detail=f"Idempotency key '{idempotency_key}' was already used for '{method}' with a different request body",
            type_uri="https://example.com/problems/idempotency-key-mismatch",
            extensions={
                "code": "IDEMPOTENCY_KEY_MISMATCH",
                "retryable": False,
                "idempotency_key": idempotency_key,
                "method": method,
            },
        )


class IdempotencyInProgressError(ConflictError):
    """Exception when another request with the same key has not finished yet."""

    def __init__(self, idempotency_key: str, method: str):
        super().__init__(
            detail=f"A request with idempotency key '{idempotency_key}' for '{method}' is still being processed",
            conflicting_resource={"idempotency_key": idempotency_key, "method": method}
        )
        self.problem_details.update({
            "code": "IDEMPOTENCY_KEY_IN_PROGRESS",
            "retryable": True
        })


class IdempotencyService:
    """Service for handling idempotent operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def compute_request_hash(request_body: dict[str, Any]) -> str:
        """Compute SHA-256 hash of normalized request body."""
        normalized = json.dumps(request_body, sort_keys=True, separators=(',', ':'), default=str)
        return hashlib.sha256(normalized.encode('utf-8')).hexdigest()

    async def check_idempotency(
        self,
        idempotency_key: str,
        method: str,
        user_id: UUID,
        request_body: dict[str, Any],
    ) -> Optional[tuple[int, dict[str, Any]]]:
        """
        Return the cached (status_code, body) for a replayed request, or None.

        Raises:
            IdempotencyMismatchError: If the key was used with a different body
            IdempotencyInProgressError: If the first request with the key is still running
        """
        request_hash = self.compute_request_hash(request_body)

        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.idempotency_key == idempotency_key,
            IdempotencyRecord.method == method,
            IdempotencyRecord.user_id == user_id,
            IdempotencyRecord.expires_at > utcnow()
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        existing_record = result.scalar_one_or_none()

        if existing_record is None:
            return None

        if existing_record.request_body_hash != request_hash:
            logger.warning(
                "Idempotency key mismatch",
                extra={
                    "idempotency_key": idempotency_key,
                    "method": method,
                    "existing_hash": existing_record.request_body_hash[:8],
                    "new_hash": request_hash[:8]
                }
            )
            raise IdempotencyMismatchError(idempotency_key, method)

        if existing_record.response_status_code == IN_PROGRESS_STATUS:
            logger.info(
                "Idempotency key is still in progress",
                extra={"idempotency_key": idempotency_key, "method": method}
            )
            raise IdempotencyInProgressError(idempotency_key, method)

        logger.info(
            "Returning cached idempotent response",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": existing_record.response_status_code
            }
        )
        return existing_record.response_status_code, json.loads(existing_record.response_body)

    async def claim_key(
        self,
        idempotency_key: str,
        method: str,
        user_id: UUID,
        request_body: dict[str, Any],
    ) -> Optional[UUID]:
        """
        Reserve a key before its operation runs.

        The unique (key, method, user) constraint admits one claim; the loser
        gets None. Claims expire after ``idempotency_claim_seconds`` so a
        request that died mid-operation does not block the key for the full TTL.
        """
        await self.db.execute(
            delete(IdempotencyRecord).where(
                IdempotencyRecord.idempotency_key == idempotency_key,
                IdempotencyRecord.method == method,
                IdempotencyRecord.user_id == user_id,
                IdempotencyRecord.expires_at <= utcnow()
            )
        )

        record_id = uuid4()
        self.db.add(IdempotencyRecord(
            id=record_id,
            idempotency_key=idempotency_key,
            method=method,
            user_id=user_id,
            request_body_hash=self.compute_request_hash(request_body),
            response_status_code=IN_PROGRESS_STATUS,
            response_body="{}",
            expires_at=utcnow() + timedelta(seconds=settings.idempotency_claim_seconds)
        ))

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "Idempotency key already claimed",
                extra={"idempotency_key": idempotency_key, "method": method}
            )
            return None

        return record_id

    async def store_response(
        self,
        record_id: UUID,
        status_code: int,
        response_body: dict[str, Any],
    ) -> None:
        """Complete a claimed key so a replay returns this response unchanged."""
        await self.db.execute(
            update(IdempotencyRecord)
            .where(IdempotencyRecord.id == record_id)
            .values(
                response_status_code=status_code,
                response_body=json.dumps(response_body, sort_keys=True, separators=(',', ':'), default=str),
                expires_at=utcnow() + timedelta(seconds=settings.idempotency_ttl_seconds)
            )
        )
        await self.db.commit()

        logger.info(
            "Stored idempotency record",
            extra={"record_id": str(record_id), "status_code": status_code}
        )

    async def release_key(self, record_id: UUID) -> None:
        """Drop a claim so the client can retry with the same key."""
        await self.db.execute(delete(IdempotencyRecord).where(IdempotencyRecord.id == record_id))
        await self.db.commit()

    async def run(
        self,
        idempotency_key: Optional[str],
        method: str,
        user_id: UUID,
        request_body: dict[str, Any],
        operation: Callable[[], Awaitable[dict[str, Any]]],
    ) -> JSONResponse:
        """
        Execute ``operation`` once per key and replay its outcome afterwards.

        Without a key the operation simply runs. The key is claimed before the
        operation starts, so a concurrent duplicate is answered with
        ``IdempotencyInProgressError`` instead of running twice. Retryable
        failures release the claim so that the client can try again.
        """
        if idempotency_key is None:
            return JSONResponse(status_code=200, content=await operation())

        cached = await self.check_idempotency(idempotency_key, method, user_id, request_body)
        if cached is not None:
            status_code, body = cached
            return JSONResponse(status_code=status_code, content=body)

        record_id = await self.claim_key(idempotency_key, method, user_id, request_body)
        if record_id is None:
            # The winning request either finished or is still running
            cached = await self.check_idempotency(idempotency_key, method, user_id, request_body)
            if cached is None:
                raise IdempotencyInProgressError(idempotency_key, method)
            status_code, body = cached
            return JSONResponse(status_code=status_code, content=body)

        try:
            response_body = await operation()
        except ProblemDetailsException as e:
            await self.db.rollback()
            if not e.problem_details.get("retryable", False) and e.status_code < 500:
                await self.store_response(record_id, e.status_code, e.problem_details)
            else:
                await self.release_key(record_id)
            raise
        except Exception:
            await self.db.rollback()
            await self.release_key(record_id)
            raise

        await self.store_response(record_id, 200, response_body)
        return JSONResponse(status_code=200, content=response_body)

    async def cleanup_expired_records(self) -> int:
        """Delete expired records and return how many were removed."""
        result = await self.db.execute(
            delete(IdempotencyRecord).where(IdempotencyRecord.expires_at <= utcnow())
        )
        await self.db.commit()

        if result.rowcount:
            logger.info(
                "Cleaned up expired idempotency records",
                extra={"deleted_count": result.rowcount}
            )
        return result.rowcount
