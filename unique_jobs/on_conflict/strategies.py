"""Concrete conflict strategies: raise, drop, log, reject, replace."""

import logging
from typing import Any

from unique_jobs.config.settings import UniqueJobsSettings
from unique_jobs.core.exceptions import LockConflictError
from unique_jobs.core.timing import Clock
from unique_jobs.locking.digests import delete_by_digest
from unique_jobs.on_conflict.base import (
    ConflictHook,
    ConflictOutcome,
    ConflictStrategy,
    LockConflict,
)
from unique_jobs.scripts.engine import ScriptEngine


class RaiseStrategy(ConflictStrategy):
    """Surface the conflict as LockConflictError so the dispatcher can report it."""

    name = "raise"

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        self._count()
        raise LockConflictError(conflict.digest, conflict.jid, conflict.lock_type)


class DropStrategy(ConflictStrategy):
    """Silently drop the duplicate."""

    name = "drop"

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        self._count()
        return ConflictOutcome.DROPPED


class LogStrategy(ConflictStrategy):
    """Log the duplicate and carry on without the lock."""

    name = "log"

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        self._count()
        self._logger.info(
            "Skipping job %s, digest %s is already locked (%s)",
            conflict.jid,
            conflict.digest,
            conflict.lock_type,
        )
        return ConflictOutcome.LOGGED


class RejectStrategy(ConflictStrategy):
    """Hand the new duplicate to the dispatcher's reject hook (e.g. a dead-letter set)."""

    name = "reject"

    def __init__(
        self,
        reject_job: ConflictHook | None = None,
        logger: logging.Logger | None = None,
        metrics: Any = None,
    ) -> None:
        super().__init__(logger=logger, metrics=metrics)
        self._reject_job = reject_job

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        self._count()
        self._logger.info("Rejecting job %s with digest %s", conflict.jid, conflict.digest)
        if self._reject_job is not None:
            await self._reject_job(conflict)
        return ConflictOutcome.REJECTED


class ReplaceStrategy(ConflictStrategy):
    """
    Remove the queued duplicate (dispatcher's delete_job hook) and its lock keys,
    so the new job can take the lock on the caller's retry.
    """

    name = "replace"

    def __init__(
        self,
        engine: ScriptEngine,
        delete_job: ConflictHook | None = None,
        *,
        clock: Clock | None = None,
        settings: UniqueJobsSettings | None = None,
        logger: logging.Logger | None = None,
        metrics: Any = None,
    ) -> None:
        super().__init__(logger=logger, metrics=metrics)
        self._engine = engine
        self._delete_job = delete_job
        self._clock = clock
        self._settings = settings

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        self._count()
        if self._delete_job is not None:
            await self._delete_job(conflict)
        deleted = await delete_by_digest(
            self._engine, conflict.digest, clock=self._clock, settings=self._settings
        )
        self._logger.info(
            "Replaced digest %s for job %s (%s keys removed)", conflict.digest, conflict.jid, deleted
        )
        return ConflictOutcome.REPLACED
