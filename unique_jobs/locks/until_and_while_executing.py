"""
Until-executing lock on the digest plus a while-executing lock on `<digest>:RUN`.
The first is released when execution starts, the second when it ends.
"""

from typing import Any

from unique_jobs.locking.locksmith import Locksmith
from unique_jobs.locking.request import LockRequest, LockType
from unique_jobs.locks.base import BaseLock, T, Work


class UntilAndWhileExecuting(BaseLock):
    lock_type = LockType.UNTIL_AND_WHILE_EXECUTING

    def __init__(self, request: LockRequest, redis: Any = None, **kwargs: Any) -> None:
        super().__init__(request, redis, **kwargs)
        self._runtime = self._locksmith_for(request.for_runtime())

    @property
    def runtime_locksmith(self) -> Locksmith:
        return self._runtime

    async def execute(self, work: Work[T]) -> T | None:
        await self._locksmith.unlock()
        return await self._execute_exclusively(self._runtime, work)
