"""
Base lock variant. A variant decides at which lifecycle points (before enqueue, around
execution) the Locksmith is called; it adds no locking logic of its own. When a lock
cannot be had it asks the conflict strategy what to do instead of raising.
"""

import logging
import random
from typing import Any, Awaitable, Callable, TypeVar

from unique_jobs.config.settings import UniqueJobsSettings, get_settings
from unique_jobs.core.timing import Clock, SystemClock
from unique_jobs.locking.locksmith import Locksmith
from unique_jobs.locking.request import LockRequest, LockType
from unique_jobs.on_conflict import (
    ConflictHook,
    ConflictOutcome,
    ConflictStrategy,
    LockConflict,
    build_conflict_strategy,
)
from unique_jobs.scripts.engine import ScriptEngine

T = TypeVar("T")

Work = Callable[[], Awaitable[T]]
AfterUnlock = Callable[[], Awaitable[Any]]


class BaseLock:
    """
    Common wiring for lock variants.

    lock() is the before-enqueue hook: returns the jid when the job may be enqueued,
    None when it must not. execute(work) is the execution hook: returns work's result,
    or None when the job was skipped.
    """

    lock_type: LockType = LockType.UNTIL_EXECUTED

    def __init__(
        self,
        request: LockRequest,
        redis: Any = None,
        *,
        engine: ScriptEngine | None = None,
        on_conflict: ConflictStrategy | None = None,
        after_unlock: AfterUnlock | None = None,
        reject_job: ConflictHook | None = None,
        delete_job: ConflictHook | None = None,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
        metrics: Any = None,
        settings: UniqueJobsSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if engine is None and redis is None:
            raise ValueError(f"{type(self).__name__} needs a redis client or a script engine")
        self._request = request
        self._clock = clock or SystemClock()
        self._logger = logger or logging.getLogger(__name__)
        self._metrics = metrics
        self._settings = settings or get_settings()
        self._rng = rng
        self._engine = engine or ScriptEngine(
            redis, clock=self._clock, logger=self._logger, metrics=metrics
        )
        self._on_conflict = on_conflict or build_conflict_strategy(
            request.on_conflict,
            self._engine,
            reject_job=reject_job,
            delete_job=delete_job,
            clock=self._clock,
            settings=self._settings,
            logger=self._logger,
            metrics=metrics,
        )
        self._after_unlock = after_unlock
        self._locksmith = self._locksmith_for(request)

    def _locksmith_for(self, request: LockRequest) -> Locksmith:
        return Locksmith(
            request,
            engine=self._engine,
            clock=self._clock,
            logger=self._logger,
            metrics=self._metrics,
            settings=self._settings,
            rng=self._rng,
        )

    @property
    def request(self) -> LockRequest:
        return self._request

    @property
    def jid(self) -> str:
        return self._request.jid

    @property
    def locksmith(self) -> Locksmith:
        return self._locksmith

    @property
    def on_conflict(self) -> ConflictStrategy:
        return self._on_conflict

    async def lock(self) -> str | None:
        """Acquire the digest lock before enqueueing; on conflict defer to the strategy."""
        jid = await self._locksmith.lock()
        if jid is not None:
            return jid
        if await self._handle_conflict(self._locksmith):
            return await self._locksmith.lock()
        return None

    async def execute(self, work: Work[T]) -> T | None:
        raise NotImplementedError(f"{type(self).__name__!r} does not implement execute")

    async def unlock(self) -> str | bool:
        return await self._locksmith.unlock()

    async def delete(self) -> int | None:
        return await self._locksmith.delete()

    async def locked(self) -> bool:
        return await self._locksmith.locked()

    async def _handle_conflict(self, locksmith: Locksmith) -> bool:
        """Run the conflict strategy. True when the caller should try the lock once more."""
        conflict = LockConflict(locksmith.digest, locksmith.jid, self._request.lock_type)
        outcome = await self._on_conflict.call(conflict)
        return outcome is ConflictOutcome.REPLACED

    async def _execute_exclusively(self, locksmith: Locksmith, work: Work[T]) -> T | None:
        """Run work while holding locksmith's lock; on conflict defer to the strategy once."""
        ran, result = await self._run_locked(locksmith, work)
        if ran:
            return result
        if await self._handle_conflict(locksmith):
            ran, result = await self._run_locked(locksmith, work)
        return result if ran else None

    async def _run_locked(self, locksmith: Locksmith, work: Work[T]) -> tuple[bool, T | None]:
        ran = False

        async def body(token: str) -> T:
            nonlocal ran
            ran = True
            return await work()

        result = await locksmith.lock(body)
        if ran:
            await self._callback()
        return ran, result

    async def _unlock_with_callback(self, locksmith: Locksmith | None = None) -> str | bool:
        unlocked = await (locksmith or self._locksmith).unlock()
        if unlocked:
            await self._callback()
        return unlocked

    async def _callback(self) -> None:
        if self._after_unlock is None:
            return
        try:
            await self._after_unlock()
        except Exception:
            self._logger.exception("after_unlock callback failed for job %s", self.jid)
            raise
