"""
Locksmith: drives one lock request through queue -> prime -> obtain and back to unlocked.

All shared state lives in Redis and is changed only by the lock scripts; the Locksmith
itself keeps no lock state between calls, so any process can unlock what another locked.
Failing to get a lock is a normal outcome (None/False), never an exception.
"""

import logging
import math
import random
from typing import Any, Awaitable, Callable, TypeVar

from unique_jobs.config.settings import UniqueJobsSettings, get_settings
from unique_jobs.core.context import bind_lock_context
from unique_jobs.core.timing import Clock, SystemClock, elapsed_ms
from unique_jobs.locking.request import LockRequest
from unique_jobs.scripts.engine import ScriptEngine

T = TypeVar("T")

CLOCK_DRIFT_FACTOR = 0.01


class Locksmith:
    """
    Lock manager for one (digest, jid) pair.

    lock() retries prepare() with jittered backoff, then obtain()s a permit. With a body,
    the body only runs once a permit is held and the lock is always released afterwards.
    """

    def __init__(
        self,
        request: LockRequest,
        redis: Any = None,
        *,
        engine: ScriptEngine | None = None,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
        metrics: Any = None,
        settings: UniqueJobsSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if engine is None and redis is None:
            raise ValueError("Locksmith needs a redis client or a script engine")
        self._request = request
        self._keys = request.keys
        self._clock = clock or SystemClock()
        self._logger = logger or logging.getLogger(__name__)
        self._metrics = metrics
        self._engine = engine or ScriptEngine(
            redis, clock=self._clock, logger=self._logger, metrics=metrics
        )
        self._max_history = (settings or get_settings()).changelog_max_entries
        self._random = rng or random.Random()

    @property
    def request(self) -> LockRequest:
        return self._request

    @property
    def jid(self) -> str:
        return self._request.jid

    @property
    def digest(self) -> str:
        return self._request.digest

    @property
    def ttl(self) -> int:
        return self._request.ttl

    @property
    def drift(self) -> int:
        # Redis expires with 1ms precision, plus 1ms minimum drift for small TTLs.
        return int(self.ttl * CLOCK_DRIFT_FACTOR) + 2

    def _argv(self, mode: str = "") -> list[Any]:
        return [
            self.jid,
            self.ttl,
            self._request.lock_type,
            self._request.limit,
            self._clock.now(),
            self._max_history,
            self.digest,
            mode,
        ]

    def _count(self, name: str) -> None:
        if self._metrics and hasattr(self._metrics, "increment"):
            self._metrics.increment(name, 1, lock_type=self._request.lock_type)

    async def prepare(self) -> str | None:
        """
        Queue the jid and admit it to wait for a permit if one is free.
        Returns the jid only when admitted in time to still be valid:
        ttl - elapsed - drift must stay non-negative unless the lock never expires.
        """
        with bind_lock_context(self.digest, self.jid):
            started = self._clock.monotonic()
            admitted = await self._engine.execute("prepare", self._keys.to_list(), self._argv())
            elapsed = elapsed_ms(self._clock, started)
            if self._metrics and hasattr(self._metrics, "observe_latency"):
                self._metrics.observe_latency("lock_prepare_ms", elapsed)

            if admitted != self.jid:
                return None
            validity = self.ttl - elapsed - self.drift
            if validity >= 0 or self.ttl == 0:
                return self.jid
            self._logger.warning(
                "Admitted after %.2fms, past the %sms validity window", elapsed, self.ttl
            )
            return None

    async def obtain(self) -> str | None:
        """
        Take a permit token. When none is free, block on the permit pool for up to
        timeout seconds (None or 0 waits forever); a negative timeout tries once.
        A caller that stops waiting without a token is taken off the queues again.
        """
        timeout = self._request.timeout
        deadline = self._clock.monotonic() + timeout if timeout else None
        with bind_lock_context(self.digest, self.jid):
            token = None
            try:
                token = await self._take_or_wait(deadline)
                return token
            finally:
                if token is None and self._request.waits:
                    await self.abandon()

    async def _take_or_wait(self, deadline: float | None) -> str | None:
        mode = "wait" if self._request.waits else ""
        while True:
            token = await self._engine.execute("obtain", self._keys.to_list(), self._argv(mode))
            if token is not None:
                return token
            if not self._request.waits:
                return None

            wait = 0
            if deadline is not None:
                remaining = deadline - self._clock.monotonic()
                if remaining <= 0:
                    return None
                # Blocking timeouts go to Redis in whole seconds.
                wait = math.ceil(remaining)
            # Rotating the list onto itself wakes us when a token is pushed without taking it.
            popped = await self._engine.redis.blmove(
                self._keys.permits, self._keys.permits, wait, "RIGHT", "LEFT"
            )
            if popped is None:
                self._logger.debug("Timed out waiting %ss for a permit", self._request.timeout)
                return None

    async def lock(
        self, body: Callable[[str], Awaitable[T]] | None = None
    ) -> str | T | None:
        """
        Acquire the lock. Without a body returns the jid (None on failure).
        With a body, runs body(token) only when locked, releases afterwards on every exit
        path and returns the body's result.
        """
        token = await self._acquire()
        if token is None:
            return None
        if body is None:
            return self.jid
        try:
            return await body(token)
        finally:
            await self.unlock()

    async def _acquire(self) -> str | None:
        attempts = 1 if self._request.extend else self._request.retry_count + 1
        for attempt in range(attempts):
            if attempt > 0:
                await self._clock.sleep(self._backoff())
            if await self.prepare() is None:
                continue
            token = await self.obtain()
            if token is not None:
                self._count("lock_acquired")
                self._logger.debug("Locked %s for %s", self.digest, self.jid)
                return token

        await self.abandon()
        self._count("lock_failed")
        with bind_lock_context(self.digest, self.jid):
            self._logger.debug("Gave up after %s attempt(s)", attempts)
        return None

    def _backoff(self) -> float:
        """Seconds to sleep before the next attempt: [delay, delay + jitter) ms."""
        jitter = self._random.random() * self._request.retry_jitter
        return (self._request.retry_delay + jitter) / 1000

    async def unlock(self) -> str | bool:
        """Release the lock if this jid holds it. Returns the jid, or False if it was not held."""
        if not await self.locked():
            return False
        return await self.force_unlock()

    async def force_unlock(self) -> str:
        """Release every permit this jid holds and drop it from the queues, whatever the state."""
        result = await self._engine.execute("unlock", self._keys.to_list(), self._argv())
        self._count("lock_released")
        with bind_lock_context(self.digest, self.jid):
            self._logger.debug("Unlocked %s", self.digest)
        return result

    async def abandon(self) -> str | None:
        """
        Stop waiting: drop this jid from the queued and primed lists unless it holds a permit.
        Decided in one script, so a permit taken meanwhile is never released by accident.
        """
        return await self._engine.execute("unlock", self._keys.to_list(), self._argv("abandon"))

    async def locked(self) -> bool:
        """True when this jid currently holds a permit for the digest."""
        result = await self._engine.execute("locked", self._keys.to_list(), [self.jid])
        return bool(result) and int(result) >= 1

    async def delete(self) -> int | None:
        """Delete the lock keys unless the lock has a ttl; those are left to expire."""
        if self.ttl > 0:
            return None
        return await self.force_delete()

    async def force_delete(self) -> int:
        """Delete every lock key of the digest regardless of ttl. The changelog is kept."""
        return await self._engine.execute("delete", self._keys.to_list(), self._argv())
