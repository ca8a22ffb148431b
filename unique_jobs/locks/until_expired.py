"""Held from enqueue until the ttl runs out; never released explicitly."""

from unique_jobs.locking.request import LockType
from unique_jobs.locks.base import BaseLock, T, Work


class UntilExpired(BaseLock):
    lock_type = LockType.UNTIL_EXPIRED

    async def execute(self, work: Work[T]) -> T | None:
        return await work()
