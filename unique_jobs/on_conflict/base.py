"""What happens when a duplicate job cannot get its lock."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable


class ConflictOutcome(str, Enum):
    """
    Result reported back to the lock variant (and through it to the dispatcher).
    Only REPLACED makes the variant try the lock once more.
    """

    DROPPED = "dropped"
    LOGGED = "logged"
    REJECTED = "rejected"
    REPLACED = "replaced"


@dataclass(frozen=True)
class LockConflict:
    """The duplicate that lost: its digest, its jid and the lock variant that refused it."""

    digest: str
    jid: str
    lock_type: str


ConflictHook = Callable[[LockConflict], Awaitable[Any]]


class ConflictStrategy:
    """
    Base strategy. Stateless: maps a conflict to an outcome, optionally calling a
    dispatcher hook on the way. Subclasses set `name` and implement call().
    """

    name = "base"

    def __init__(self, logger: logging.Logger | None = None, metrics: Any = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._metrics = metrics

    def _count(self) -> None:
        if self._metrics and hasattr(self._metrics, "increment"):
            self._metrics.increment("lock_conflict", 1, category=self.name)

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        raise NotImplementedError(f"{type(self).__name__!r} does not implement call")
