"""Core: context variables for logging, clock, exceptions. No Redis."""

from unique_jobs.core.context import bind_lock_context, digest_ctx, jid_ctx
from unique_jobs.core.exceptions import (
    InvalidConflictStrategyError,
    InvalidLockTypeError,
    LockConflictError,
    ScriptExecutionError,
    UniqueJobsError,
)
from unique_jobs.core.timing import Clock, SystemClock, elapsed_ms

__all__ = [
    "Clock",
    "InvalidConflictStrategyError",
    "InvalidLockTypeError",
    "LockConflictError",
    "ScriptExecutionError",
    "SystemClock",
    "UniqueJobsError",
    "bind_lock_context",
    "digest_ctx",
    "elapsed_ms",
    "jid_ctx",
]
