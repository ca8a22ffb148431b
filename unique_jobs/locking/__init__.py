"""Locking: key namespace, lock request model and the Locksmith state machine."""

from unique_jobs.locking.digests import delete_by_digest
from unique_jobs.locking.keys import DIGESTS_KEY, LockKeys
from unique_jobs.locking.locksmith import CLOCK_DRIFT_FACTOR, Locksmith
from unique_jobs.locking.request import LockRequest, LockType

__all__ = [
    "CLOCK_DRIFT_FACTOR",
    "DIGESTS_KEY",
    "LockKeys",
    "LockRequest",
    "LockType",
    "Locksmith",
    "delete_by_digest",
]
