"""Startup connectivity retry."""
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from urlmon.utils import db_utils
from urlmon.utils.db_utils import wait_for_database


class FlakyEngine:
    """Refuses the first `failures` connections."""

    def __init__(self, failures: int, error=None):
        self.failures = failures
        self.attempts = 0
        self.error = error or OperationalError("SELECT 1", {}, Exception("connection refused"))

    @asynccontextmanager
    async def connect(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error
        yield self

    async def execute(self, statement):
        return None


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(db_utils.asyncio, "sleep", fake_sleep)
    return delays


async def test_connects_first_time(sleeps):
    assert await wait_for_database(FlakyEngine(failures=0)) == 1
    assert sleeps == []


async def test_retries_with_fixed_delay(sleeps):
    engine = FlakyEngine(failures=3)

    assert await wait_for_database(engine, delay=2.5) == 4
    assert sleeps == [2.5, 2.5, 2.5]


async def test_other_errors_propagate(sleeps):
    engine = FlakyEngine(failures=1, error=ProgrammingError("SELECT 1", {}, Exception("syntax")))

    with pytest.raises(ProgrammingError):
        await wait_for_database(engine)
    assert sleeps == []


async def test_real_sqlite(engine):
    assert await wait_for_database(engine) == 1
