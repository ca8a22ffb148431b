"""Digest-level operations that span a digest and its runtime lock."""

from typing import Any

from unique_jobs.config.settings import UniqueJobsSettings, get_settings
from unique_jobs.core.timing import Clock, SystemClock
from unique_jobs.locking.keys import DIGESTS_KEY, LockKeys
from unique_jobs.scripts.engine import ScriptEngine


async def delete_by_digest(
    engine: ScriptEngine,
    digest: str,
    *,
    clock: Clock | None = None,
    settings: UniqueJobsSettings | None = None,
) -> int:
    """Delete both `<digest>` and `<digest>:RUN` locks atomically. Returns the number of keys removed."""
    clock = clock or SystemClock()
    settings = settings or get_settings()
    keys = LockKeys.for_digest(digest)
    run_keys = LockKeys.for_digest(LockKeys.run_digest(digest))
    script_keys = [
        *keys.state_keys(),
        keys.changelog,
        *run_keys.state_keys(),
        run_keys.changelog,
        DIGESTS_KEY,
    ]
    args: list[Any] = [digest, run_keys.digest, clock.now(), settings.changelog_max_entries]
    return await engine.execute("delete_by_digest", script_keys, args)
