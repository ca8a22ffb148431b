"""Distributed unique-job locks on Redis: atomic Lua lock protocol, lock variants and conflict strategies."""

from unique_jobs.config import NO_WAIT, UniqueJobsSettings, configure_logging, get_settings
from unique_jobs.core.exceptions import (
    InvalidConflictStrategyError,
    InvalidLockTypeError,
    LockConflictError,
    ScriptExecutionError,
    UniqueJobsError,
)
from unique_jobs.infrastructure import RedisClient
from unique_jobs.locking import LockKeys, LockRequest, LockType, Locksmith, delete_by_digest
from unique_jobs.locks import BaseLock, build_lock
from unique_jobs.on_conflict import ConflictOutcome, LockConflict, OnConflict
from unique_jobs.scripts import ScriptCache, ScriptEngine

__version__ = "0.1.0"

__all__ = [
    "BaseLock",
    "ConflictOutcome",
    "InvalidConflictStrategyError",
    "InvalidLockTypeError",
    "LockConflict",
    "LockConflictError",
    "LockKeys",
    "LockRequest",
    "LockType",
    "Locksmith",
    "NO_WAIT",
    "OnConflict",
    "RedisClient",
    "ScriptCache",
    "ScriptEngine",
    "ScriptExecutionError",
    "UniqueJobsError",
    "UniqueJobsSettings",
    "build_lock",
    "configure_logging",
    "delete_by_digest",
    "get_settings",
]
