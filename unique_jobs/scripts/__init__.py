"""Atomic script engine and the Lua sources it runs."""

from unique_jobs.scripts.engine import (
    PROCESS_SCRIPT_CACHE,
    SCRIPT_NAMES,
    ScriptCache,
    ScriptEngine,
    script_source,
)

__all__ = [
    "PROCESS_SCRIPT_CACHE",
    "SCRIPT_NAMES",
    "ScriptCache",
    "ScriptEngine",
    "script_source",
]
