"""Held from enqueue until the job has executed, successfully or not."""

from unique_jobs.locking.request import LockType
from unique_jobs.locks.base import BaseLock, T, Work


class UntilExecuted(BaseLock):
    lock_type = LockType.UNTIL_EXECUTED

    async def execute(self, work: Work[T]) -> T | None:
        if not await self._locksmith.locked():
            # Lost between enqueue and execution (expired or never taken): take it now.
            if await self._locksmith.lock() is None:
                if not await self._handle_conflict(self._locksmith):
                    return None
                if await self._locksmith.lock() is None:
                    return None
        try:
            return await work()
        finally:
            await self._unlock_with_callback()
