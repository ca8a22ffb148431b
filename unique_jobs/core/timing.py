"""Clock used for lock timestamps, elapsed-time measurement and backoff sleeps. Injected; tests swap it."""

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float: ...
    def monotonic(self) -> float: ...
    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock for timestamps stored in Redis, monotonic clock for durations."""

    def now(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def elapsed_ms(clock: Clock, started: float) -> float:
    """Milliseconds since `started` (a value from clock.monotonic())."""
    return (clock.monotonic() - started) * 1000.0
