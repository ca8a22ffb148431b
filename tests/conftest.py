"""Shared fixtures: fakeredis server with Lua support, per-"process" clients, fake clock, settings."""

import asyncio
import random

import fakeredis
import pytest

from unique_jobs.config.settings import UniqueJobsSettings
from unique_jobs.locking.locksmith import Locksmith
from unique_jobs.locking.request import LockRequest
from unique_jobs.scripts.engine import ScriptCache, ScriptEngine


class FakeClock:
    """Clock whose monotonic time only moves on sleep() or advance(). Records sleeps."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._start = start
        self._elapsed = 0.0
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._start + self._elapsed

    def monotonic(self) -> float:
        return self._elapsed

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._elapsed += seconds

    def advance(self, seconds: float) -> None:
        self._elapsed += seconds


@pytest.fixture
def server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis(server):
    return fakeredis.FakeAsyncRedis(server=server, decode_responses=True)


class BlockingRedis:
    """
    Wraps a fake client so BLMOVE really blocks: LMOVE is polled until it yields a value
    or the timeout (seconds, 0 = forever) runs out. Like Redis, a waiter only sees the
    state a script leaves behind, never the state in the middle of it.
    """

    def __init__(self, redis, poll_interval: float = 0.005) -> None:
        self._redis = redis
        self._poll_interval = poll_interval

    def __getattr__(self, name):
        return getattr(self._redis, name)

    async def blmove(self, source, destination, timeout, src="LEFT", dest="RIGHT"):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout else None
        while True:
            value = await self._redis.lmove(source, destination, src, dest)
            if value is not None:
                return value
            if deadline is not None and loop.time() >= deadline:
                return None
            await asyncio.sleep(self._poll_interval)


@pytest.fixture
def make_redis(server):
    """Another client on the same server: stands in for a separate worker process."""

    def _make():
        return BlockingRedis(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))

    return _make


@pytest.fixture
def settings():
    return UniqueJobsSettings(changelog_max_entries=100)


@pytest.fixture
def script_cache():
    return ScriptCache()


@pytest.fixture
def engine(redis, script_cache):
    return ScriptEngine(redis, script_cache)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_locksmith(make_redis, settings):
    """Build a Locksmith on its own client and script cache, like an independent worker."""

    def _make(jid: str, digest: str = "uniquejobs:digest", clock=None, **overrides):
        request = LockRequest(digest=digest, jid=jid, **overrides)
        engine = ScriptEngine(make_redis(), ScriptCache(), clock=clock)
        return Locksmith(
            request,
            engine=engine,
            clock=clock,
            settings=settings,
            rng=random.Random(7),
        )

    return _make


class SteppingClock(FakeClock):
    """Every monotonic() read moves time forward by `step` seconds."""

    def __init__(self, step: float) -> None:
        super().__init__()
        self._step = step

    def monotonic(self) -> float:
        self.advance(self._step)
        return super().monotonic()


@pytest.fixture
def stepping_clock():
    return SteppingClock(step=1.0)
