"""
referral_genie.db.retry

Retry helper for transient database connectivity failures.

Responsibilities:
- Re-run an async DB operation when the connection (not the query) failed.
- Back off exponentially with jitter, capped, and give up after a bounded number of attempts.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_genie.observability.logging import get_logger
from referral_genie.settings import Settings

T = TypeVar("T")

log = get_logger(__name__)


def is_connection_error(exc: BaseException) -> bool:
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, OperationalError)


@dataclass(frozen=True, slots=True)
class DbRetryPolicy:
    max_retries: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> DbRetryPolicy:
        return cls(
            max_retries=settings.db_max_retries,
            base_delay=settings.db_retry_base_delay_seconds,
            max_delay=settings.db_retry_max_delay_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        # Exponential step scaled by a 50-100% jitter factor.
        return min(self.base_delay * (2**attempt) * (0.5 + random.random() * 0.5), self.max_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        session: AsyncSession | None = None,
    ) -> T:
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if not is_connection_error(e):
                    raise
                if attempt >= self.max_retries:
                    log.error("db_retry_exhausted", attempts=attempt, error=str(e))
                    raise
                if session is not None:
                    # A failed connection leaves the session's transaction unusable.
                    await session.rollback()
                delay = self.delay_for(attempt)
                attempt += 1
                log.warning(
                    "db_connection_failed_retrying",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_seconds=round(delay, 2),
                )
                await asyncio.sleep(delay)


# --- Module Notes -----------------------------------------------------------
# Only reads go through the policy; writes surface connection errors to the caller so a
# half-applied request is never silently replayed.
