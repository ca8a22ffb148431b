"""
Atomic script engine. Lock state is only ever mutated by the Lua scripts in ./lua, each run
atomically by Redis. Scripts are loaded once (SCRIPT LOAD) and invoked by SHA; the SHA cache is
per process and an entry is dropped only when Redis reports it no longer knows the script.
"""

import logging
import re
import threading
from functools import lru_cache
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any, Sequence

from redis.exceptions import NoScriptError, ResponseError

from unique_jobs.core.exceptions import ScriptExecutionError
from unique_jobs.core.timing import Clock, SystemClock, elapsed_ms

SCRIPT_NAMES = ("prepare", "obtain", "locked", "unlock", "delete", "delete_by_digest")
COMMON_SCRIPT = "_common"
MAX_ATTEMPTS = 2

_SCRIPT_ERROR = re.compile(r"Error (running|compiling) script|user_script")
_SCRIPT_LINE = re.compile(r"user_script:(\d+)")


class ScriptCache:
    """Script name -> SHA1 handle. Filled lazily; entries are only evicted on NOSCRIPT."""

    def __init__(self) -> None:
        self._shas: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> str | None:
        with self._lock:
            return self._shas.get(name)

    def put(self, name: str, sha: str) -> None:
        with self._lock:
            self._shas[name] = sha

    def evict(self, name: str) -> None:
        with self._lock:
            self._shas.pop(name, None)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._shas

    def __len__(self) -> int:
        with self._lock:
            return len(self._shas)


# Lives for the process lifetime; injected into every engine that is not given its own cache.
PROCESS_SCRIPT_CACHE = ScriptCache()


def script_path(name: str) -> Traversable:
    return resources.files("unique_jobs.scripts").joinpath("lua", f"{name}.lua")


@lru_cache(maxsize=None)
def script_source(name: str) -> str:
    """Lua source for a script, with the shared helpers prepended."""
    if name not in SCRIPT_NAMES:
        raise KeyError(f"Unknown lock script: {name}")
    common = script_path(COMMON_SCRIPT).read_text(encoding="utf-8")
    return common + script_path(name).read_text(encoding="utf-8")


class ScriptEngine:
    """Runs named lock scripts against Redis, reloading a script once if Redis lost it."""

    def __init__(
        self,
        redis: Any,
        cache: ScriptCache | None = None,
        *,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
        metrics: Any = None,
    ) -> None:
        self._redis = redis
        self._cache = cache if cache is not None else PROCESS_SCRIPT_CACHE
        self._clock = clock or SystemClock()
        self._logger = logger or logging.getLogger(__name__)
        self._metrics = metrics

    @property
    def redis(self) -> Any:
        return self._redis

    async def load(self, name: str) -> str:
        """SCRIPT LOAD the named script and cache its SHA. Loading twice is harmless."""
        sha = await self._redis.script_load(script_source(name))
        self._cache.put(name, sha)
        return sha

    async def preload(self) -> None:
        for name in SCRIPT_NAMES:
            await self.load(name)

    async def _sha(self, name: str) -> str:
        sha = self._cache.get(name)
        if sha is None:
            sha = await self.load(name)
        return sha

    async def execute(self, name: str, keys: Sequence[str], args: Sequence[Any] = ()) -> Any:
        """
        Run a script atomically. Returns nil/integer/string as Redis does.
        NOSCRIPT triggers one reload and retry; Lua errors raise ScriptExecutionError.
        """
        started = self._clock.monotonic()
        for attempt in range(1, MAX_ATTEMPTS + 1):
            sha = await self._sha(name)
            try:
                result = await self._redis.evalsha(sha, len(keys), *keys, *args)
            except NoScriptError:
                self._cache.evict(name)
                if attempt == MAX_ATTEMPTS:
                    raise
                self._logger.warning("Script %s.lua not loaded in Redis, reloading", name)
                if self._metrics and hasattr(self._metrics, "increment"):
                    self._metrics.increment("script_reloaded", 1, category=name)
                continue
            except ResponseError as exc:
                if _SCRIPT_ERROR.search(str(exc)):
                    raise self._script_error(name, exc) from exc
                raise

            elapsed = elapsed_ms(self._clock, started)
            self._logger.debug("Executed %s.lua in %.2fms", name, elapsed)
            if self._metrics and hasattr(self._metrics, "observe_latency"):
                self._metrics.observe_latency("script_execution_ms", elapsed, script=name)
            return result
        raise RuntimeError(f"Script {name} exhausted {MAX_ATTEMPTS} attempts")  # pragma: no cover

    @staticmethod
    def _script_error(name: str, exc: ResponseError) -> ScriptExecutionError:
        match = _SCRIPT_LINE.search(str(exc))
        return ScriptExecutionError(
            str(exc),
            script_name=name,
            script_path=str(script_path(name)),
            script_source=script_source(name),
            line=int(match.group(1)) if match else None,
        )
