"""
Runtime lock: enqueueing is never blocked, but only one job per digest (or `limit`
jobs) executes at a time. Held on `<digest>:RUN` so it can coexist with an enqueue lock.
"""

from typing import Any

from unique_jobs.locking.locksmith import Locksmith
from unique_jobs.locking.request import LockRequest, LockType
from unique_jobs.locks.base import BaseLock, T, Work


class WhileExecuting(BaseLock):
    lock_type = LockType.WHILE_EXECUTING

    def __init__(self, request: LockRequest, redis: Any = None, **kwargs: Any) -> None:
        super().__init__(request, redis, **kwargs)
        self._runtime = self._locksmith_for(self._runtime_request(request))

    def _runtime_request(self, request: LockRequest) -> LockRequest:
        return request.for_runtime()

    @property
    def runtime_locksmith(self) -> Locksmith:
        return self._runtime

    async def lock(self) -> str | None:
        return self.jid

    async def unlock(self) -> str | bool:
        return await self._runtime.unlock()

    async def locked(self) -> bool:
        return await self._runtime.locked()

    async def delete(self) -> int | None:
        return await self._runtime.delete()

    async def execute(self, work: Work[T]) -> T | None:
        return await self._execute_exclusively(self._runtime, work)
