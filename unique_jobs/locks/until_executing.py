"""Held from enqueue until the job starts executing."""

from unique_jobs.locking.request import LockType
from unique_jobs.locks.base import BaseLock, T, Work


class UntilExecuting(BaseLock):
    lock_type = LockType.UNTIL_EXECUTING

    async def execute(self, work: Work[T]) -> T | None:
        await self._unlock_with_callback()
        return await work()
