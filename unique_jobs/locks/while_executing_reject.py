"""Runtime lock that rejects a conflicting job immediately instead of waiting for the lock."""

from typing import Any

from unique_jobs.config.settings import NO_WAIT
from unique_jobs.locking.request import LockRequest, LockType
from unique_jobs.locks.while_executing import WhileExecuting
from unique_jobs.on_conflict import RejectStrategy


class WhileExecutingReject(WhileExecuting):
    lock_type = LockType.WHILE_EXECUTING_REJECT

    def __init__(self, request: LockRequest, redis: Any = None, **kwargs: Any) -> None:
        if kwargs.get("on_conflict") is None:
            kwargs["on_conflict"] = RejectStrategy(
                kwargs.get("reject_job"),
                logger=kwargs.get("logger"),
                metrics=kwargs.get("metrics"),
            )
        super().__init__(request, redis, **kwargs)

    def _runtime_request(self, request: LockRequest) -> LockRequest:
        return request.for_runtime(timeout=NO_WAIT, retry_count=0)
