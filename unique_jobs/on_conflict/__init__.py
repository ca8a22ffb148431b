"""Conflict strategies and the registry that maps an on_conflict tag to one."""

import logging
from enum import Enum
from typing import Any

from unique_jobs.config.settings import UniqueJobsSettings
from unique_jobs.core.exceptions import InvalidConflictStrategyError
from unique_jobs.core.timing import Clock
from unique_jobs.on_conflict.base import (
    ConflictHook,
    ConflictOutcome,
    ConflictStrategy,
    LockConflict,
)
from unique_jobs.on_conflict.strategies import (
    DropStrategy,
    LogStrategy,
    RaiseStrategy,
    RejectStrategy,
    ReplaceStrategy,
)
from unique_jobs.scripts.engine import ScriptEngine


class OnConflict(str, Enum):
    RAISE = "raise"
    DROP = "drop"
    LOG = "log"
    REJECT = "reject"
    REPLACE = "replace"


STRATEGIES: dict[OnConflict, type[ConflictStrategy]] = {
    OnConflict.RAISE: RaiseStrategy,
    OnConflict.DROP: DropStrategy,
    OnConflict.LOG: LogStrategy,
    OnConflict.REJECT: RejectStrategy,
    OnConflict.REPLACE: ReplaceStrategy,
}


def build_conflict_strategy(
    tag: OnConflict | str,
    engine: ScriptEngine,
    *,
    reject_job: ConflictHook | None = None,
    delete_job: ConflictHook | None = None,
    clock: Clock | None = None,
    settings: UniqueJobsSettings | None = None,
    logger: logging.Logger | None = None,
    metrics: Any = None,
) -> ConflictStrategy:
    """Instantiate the strategy registered for tag, wiring only the collaborators it uses."""
    try:
        kind = OnConflict(tag)
    except ValueError:
        raise InvalidConflictStrategyError(f"Unknown on_conflict strategy: {tag!r}") from None

    if kind is OnConflict.REJECT:
        return RejectStrategy(reject_job, logger=logger, metrics=metrics)
    if kind is OnConflict.REPLACE:
        return ReplaceStrategy(
            engine, delete_job, clock=clock, settings=settings, logger=logger, metrics=metrics
        )
    return STRATEGIES[kind](logger=logger, metrics=metrics)


__all__ = [
    "ConflictHook",
    "ConflictOutcome",
    "ConflictStrategy",
    "DropStrategy",
    "LockConflict",
    "LogStrategy",
    "OnConflict",
    "RaiseStrategy",
    "RejectStrategy",
    "ReplaceStrategy",
    "STRATEGIES",
    "build_conflict_strategy",
]
