"""Per-record critical sections for capacity and rating mutations."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, TypeVar
import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from .config import settings
from .database import is_postgresql
from .observability import metrics_collector

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLockRegistry:
    """
    In-process mutual exclusion keyed by record identity.

    Entries are created on first use and dropped once no task holds or waits
    on them, so the registry never grows with the number of tours.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry()
            self._entries[key] = entry

        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    def active_keys(self) -> list[str]:
        """Keys currently held or awaited."""
        return list(self._entries)


# Process-wide registry shared by every service instance
record_locks = KeyedLockRegistry()


def tour_lock_key(tour_id) -> str:
    return f"tour:{tour_id}"


def park_lock_key(park_id) -> str:
    return f"park:{park_id}"


async def acquire_advisory_lock(db: AsyncSession, key: str) -> None:
    """
    Take a transaction-scoped PostgreSQL advisory lock for ``key``.

    Serializes writers across processes; released automatically at commit or
    rollback. A no-op on other backends.
    """
    if not is_postgresql(db):
        return

    await db.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
        {"lock_key": key}
    )

    logger.debug(
        "Acquired advisory lock",
        extra={"lock_key": key}
    )


@asynccontextmanager
async def critical_section(db: AsyncSession, *keys: str) -> AsyncIterator[None]:
    """
    Hold the in-process locks for ``keys`` (in the given order) and the matching
    advisory locks for the current transaction.

    Any exception raised inside the block rolls the session back before the
    locks are released.
    """
    async with _hold_all(list(keys)):
        try:
            for key in keys:
                await acquire_advisory_lock(db, key)
            yield
        except BaseException:
            await db.rollback()
            raise


@asynccontextmanager
async def _hold_all(keys: list[str]) -> AsyncIterator[None]:
    if not keys:
        yield
        return

    async with record_locks.hold(keys[0]):
        async with _hold_all(keys[1:]):
            yield


async def retry_on_version_conflict(
    operation: Callable[[], Awaitable[T]],
    operation_name: str,
) -> T:
    """
    Run ``operation`` and re-run it when a versioned row changed underneath it.

    ``operation`` must open its own critical section so that each attempt
    starts from freshly read rows. After ``booking_retry_attempts`` attempts
    the last ``StaleDataError`` propagates for the caller to translate.
    """
    attempts = settings.booking_retry_attempts
    attempt = 1
    while True:
        try:
            return await operation()
        except StaleDataError:
            metrics_collector.record_ledger_conflict(operation_name)
            if attempt >= attempts:
                logger.error(
                    "Version conflict persisted after retries",
                    extra={"operation": operation_name, "attempts": attempts}
                )
                raise

            delay = settings.booking_retry_backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                "Version conflict, retrying",
                extra={"operation": operation_name, "attempt": attempt, "delay_seconds": delay}
            )
            await asyncio.sleep(delay)
            attempt += 1
