"""Lock variants and the registry mapping a LockType tag to its class."""

from typing import Any

from unique_jobs.core.exceptions import InvalidLockTypeError
from unique_jobs.locking.request import LockRequest, LockType
from unique_jobs.locks.base import BaseLock
from unique_jobs.locks.until_and_while_executing import UntilAndWhileExecuting
from unique_jobs.locks.until_executed import UntilExecuted
from unique_jobs.locks.until_executing import UntilExecuting
from unique_jobs.locks.until_expired import UntilExpired
from unique_jobs.locks.while_executing import WhileExecuting
from unique_jobs.locks.while_executing_reject import WhileExecutingReject

LOCKS: dict[LockType, type[BaseLock]] = {
    LockType.UNTIL_EXECUTED: UntilExecuted,
    LockType.UNTIL_EXECUTING: UntilExecuting,
    LockType.UNTIL_EXPIRED: UntilExpired,
    LockType.WHILE_EXECUTING: WhileExecuting,
    LockType.WHILE_EXECUTING_REJECT: WhileExecutingReject,
    LockType.UNTIL_AND_WHILE_EXECUTING: UntilAndWhileExecuting,
}


def lock_class_for(tag: LockType | str) -> type[BaseLock]:
    try:
        return LOCKS[LockType(tag)]
    except ValueError:
        raise InvalidLockTypeError(f"Unknown lock type: {tag!r}") from None


def build_lock(request: LockRequest, redis: Any = None, **kwargs: Any) -> BaseLock:
    """Instantiate the variant named by request.lock_type."""
    return lock_class_for(request.lock_type)(request, redis, **kwargs)


__all__ = [
    "BaseLock",
    "LOCKS",
    "UntilAndWhileExecuting",
    "UntilExecuted",
    "UntilExecuting",
    "UntilExpired",
    "WhileExecuting",
    "WhileExecutingReject",
    "build_lock",
    "lock_class_for",
]
