from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from referral_genie.db.retry import DbRetryPolicy, is_connection_error


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class Flaky:
    def __init__(self, failures: int, exc_factory=_operational_error) -> None:
        self.failures = failures
        self.calls = 0
        self._exc_factory = exc_factory

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self._exc_factory()
        return "ok"


@pytest.mark.asyncio
async def test_retries_connection_errors_until_success() -> None:
    policy = DbRetryPolicy(max_retries=3, base_delay=0, max_delay=0)
    op = Flaky(failures=2)
    assert await policy.run(op) == "ok"
    assert op.calls == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_retries() -> None:
    policy = DbRetryPolicy(max_retries=2, base_delay=0, max_delay=0)
    op = Flaky(failures=10)
    with pytest.raises(OperationalError):
        await policy.run(op)
    assert op.calls == 3


@pytest.mark.asyncio
async def test_other_errors_are_not_retried() -> None:
    policy = DbRetryPolicy(max_retries=5, base_delay=0, max_delay=0)
    op = Flaky(
        failures=1,
        exc_factory=lambda: IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")),
    )
    with pytest.raises(IntegrityError):
        await policy.run(op)
    assert op.calls == 1


def test_delay_grows_with_jitter_and_is_capped() -> None:
    policy = DbRetryPolicy(max_retries=5, base_delay=1.0, max_delay=5.0)
    for attempt in range(3):
        delay = policy.delay_for(attempt)
        assert 0.5 * 2**attempt <= delay <= 2**attempt
    assert policy.delay_for(10) == 5.0


def test_is_connection_error() -> None:
    assert is_connection_error(_operational_error())
    assert not is_connection_error(ValueError("nope"))
