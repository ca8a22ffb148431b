"""Lock request: everything a Locksmith needs to know about one acquisition."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from unique_jobs.config.settings import UniqueJobsSettings, get_settings
from unique_jobs.locking.keys import LockKeys


class LockType(str, Enum):
    """When in a job's lifecycle the lock is held. Tag used by the strategy registry."""

    UNTIL_EXECUTED = "until_executed"
    UNTIL_EXECUTING = "until_executing"
    UNTIL_EXPIRED = "until_expired"
    WHILE_EXECUTING = "while_executing"
    WHILE_EXECUTING_REJECT = "while_executing_reject"
    UNTIL_AND_WHILE_EXECUTING = "until_and_while_executing"


class LockRequest(BaseModel):
    """
    Immutable description of one lock acquisition.
    ttl and retry delays are milliseconds; timeout is seconds (None or 0 waits forever,
    negative means a single non-blocking attempt).
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True, validate_default=True)

    digest: str = Field(..., min_length=1)
    jid: str = Field(..., min_length=1)
    ttl: int = Field(default=0, ge=0)
    lock_type: LockType = LockType.UNTIL_EXECUTED
    limit: int = Field(default=1, ge=1)
    timeout: float | None = None
    retry_count: int = Field(default=3, ge=0)
    retry_delay: int = Field(default=200, ge=0)
    retry_jitter: int = Field(default=50, ge=0)
    extend: bool = False
    on_conflict: str = "drop"

    @classmethod
    def from_settings(
        cls,
        digest: str,
        jid: str,
        lock_type: LockType | str = LockType.UNTIL_EXECUTED,
        settings: UniqueJobsSettings | None = None,
        **overrides: Any,
    ) -> "LockRequest":
        """Build a request from configured defaults; keyword overrides win."""
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "digest": digest,
            "jid": jid,
            "lock_type": lock_type,
            "ttl": settings.lock_ttl * 1000,
            "limit": settings.lock_limit,
            "timeout": settings.lock_timeout,
            "retry_count": settings.lock_retry_count,
            "retry_delay": settings.lock_retry_delay,
            "retry_jitter": settings.lock_retry_jitter,
            "on_conflict": settings.on_conflict,
        }
        values.update(overrides)
        return cls(**values)

    @property
    def keys(self) -> LockKeys:
        return LockKeys.for_digest(self.digest)

    @property
    def waits(self) -> bool:
        """Whether obtain may block for a permit."""
        return self.timeout is None or self.timeout >= 0

    def for_runtime(self, **updates: Any) -> "LockRequest":
        """Request for the `<digest>:RUN` lock held while the job executes."""
        updates.setdefault("digest", LockKeys.run_digest(self.digest))
        return self.model_copy(update=updates)
