"""Lock variants: which lifecycle points take and release the digest and runtime locks."""

from unittest.mock import AsyncMock, patch

import pytest

from unique_jobs.core.exceptions import InvalidLockTypeError, LockConflictError
from unique_jobs.locking.keys import LockKeys
from unique_jobs.locking.locksmith import Locksmith
from unique_jobs.locking.request import LockRequest, LockType
from unique_jobs.locks import (
    LOCKS,
    UntilAndWhileExecuting,
    UntilExecuted,
    WhileExecuting,
    WhileExecutingReject,
    build_lock,
    lock_class_for,
)
from unique_jobs.observability.metrics import MetricsCollector
from unique_jobs.on_conflict import ConflictOutcome, ConflictStrategy, LockConflict, RejectStrategy
from unique_jobs.scripts.engine import ScriptCache, ScriptEngine

DIGEST = "uniquejobs:digest"
RUN_KEYS = LockKeys.for_digest(f"{DIGEST}:RUN")


@pytest.fixture
def make_lock(make_redis, settings, clock):
    """Build a lock variant for one job, on its own client, failing fast on contention."""

    def _make(lock_type, jid, digest=DIGEST, strategy=None, **kwargs):
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k in LockRequest.model_fields}
        fields.setdefault("retry_count", 0)
        request = LockRequest(digest=digest, jid=jid, lock_type=lock_type, **fields)
        engine = ScriptEngine(make_redis(), ScriptCache(), clock=clock)
        return build_lock(
            request, engine=engine, clock=clock, settings=settings, on_conflict=strategy, **kwargs
        )

    return _make


def test_registry_covers_every_lock_type():
    assert set(LOCKS) == set(LockType)
    for lock_type in LockType:
        assert lock_class_for(lock_type.value) is LOCKS[lock_type]
        assert LOCKS[lock_type].lock_type is lock_type


def test_unknown_lock_type():
    with pytest.raises(InvalidLockTypeError):
        lock_class_for("until_the_end_of_time")


def test_build_lock_picks_class_from_request(make_lock):
    assert isinstance(make_lock("until_executed", "jid-a"), UntilExecuted)
    assert isinstance(make_lock("while_executing", "jid-a"), WhileExecuting)


def test_lock_needs_redis_or_engine(settings):
    request = LockRequest(digest=DIGEST, jid="jid-a")
    with pytest.raises(ValueError):
        UntilExecuted(request, settings=settings)


class TestUntilExecuted:
    @pytest.mark.asyncio
    async def test_blocks_duplicates_until_executed(self, make_lock):
        after_unlock = AsyncMock()
        a = make_lock("until_executed", "jid-a", after_unlock=after_unlock)
        b = make_lock("until_executed", "jid-b")

        assert await a.lock() == "jid-a"
        assert await b.lock() is None

        async def work():
            assert await b.lock() is None
            return "done"

        assert await a.execute(work) == "done"
        after_unlock.assert_awaited_once()
        assert await a.locked() is False
        assert await b.lock() == "jid-b"

    @pytest.mark.asyncio
    async def test_releases_when_work_fails(self, make_lock):
        a = make_lock("until_executed", "jid-a")
        await a.lock()

        async def work():
            raise RuntimeError("job failed")

        with pytest.raises(RuntimeError):
            await a.execute(work)
        assert await a.locked() is False

    @pytest.mark.asyncio
    async def test_retakes_a_lost_lock_before_running(self, make_lock):
        a = make_lock("until_executed", "jid-a")
        await a.lock()
        await a.locksmith.force_delete()
        seen = []

        async def work():
            seen.append(await a.locked())
            return 1

        assert await a.execute(work) == 1
        assert seen == [True]

    @pytest.mark.asyncio
    async def test_skips_work_when_someone_else_holds_the_lock(self, make_lock):
        await make_lock("until_executed", "jid-a").lock()
        b = make_lock("until_executed", "jid-b")
        work = AsyncMock()

        assert await b.execute(work) is None
        work.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_after_unlock_failure_propagates(self, make_lock, caplog):
        a = make_lock(
            "until_executed", "jid-a", after_unlock=AsyncMock(side_effect=RuntimeError("hook"))
        )
        await a.lock()

        with pytest.raises(RuntimeError, match="hook"):
            await a.execute(AsyncMock(return_value=None))
        assert await a.locked() is False
        assert "after_unlock callback failed" in caplog.text


class TestUntilExecuting:
    @pytest.mark.asyncio
    async def test_released_before_work_runs(self, make_lock):
        after_unlock = AsyncMock()
        a = make_lock("until_executing", "jid-a", after_unlock=after_unlock)
        b = make_lock("until_executing", "jid-b")
        await a.lock()
        assert await b.lock() is None

        async def work():
            after_unlock.assert_awaited_once()
            return await b.lock()

        assert await a.execute(work) == "jid-b"


class TestUntilExpired:
    @pytest.mark.asyncio
    async def test_never_released_by_execution(self, make_lock, redis):
        after_unlock = AsyncMock()
        a = make_lock("until_expired", "jid-a", ttl=5000, after_unlock=after_unlock)
        await a.lock()

        assert await a.execute(AsyncMock(return_value="ran")) == "ran"
        assert await a.locked() is True
        after_unlock.assert_not_awaited()
        assert await a.delete() is None
        assert 0 < await redis.pttl(LockKeys.for_digest(DIGEST).exists) <= 5000


class TestWhileExecuting:
    @pytest.mark.asyncio
    async def test_never_blocks_enqueue(self, make_lock, redis):
        a = make_lock("while_executing", "jid-a")
        b = make_lock("while_executing", "jid-b")

        assert await a.lock() == "jid-a"
        assert await b.lock() == "jid-b"
        assert await redis.keys("*") == []

    @pytest.mark.asyncio
    async def test_runs_one_job_at_a_time(self, make_lock, redis):
        after_unlock = AsyncMock()
        a = make_lock("while_executing", "jid-a", after_unlock=after_unlock)
        b = make_lock("while_executing", "jid-b")
        b_work = AsyncMock()

        async def work():
            assert await redis.get(RUN_KEYS.exists) == "jid-a"
            assert await a.locked() is True
            assert await b.execute(b_work) is None
            return "a"

        assert await a.execute(work) == "a"
        b_work.assert_not_awaited()
        after_unlock.assert_awaited_once()
        assert await a.locked() is False
        assert await b.execute(AsyncMock(return_value="b")) == "b"

    @pytest.mark.asyncio
    async def test_releases_runtime_lock_when_work_fails(self, make_lock):
        a = make_lock("while_executing", "jid-a")

        with pytest.raises(ValueError):
            await a.execute(AsyncMock(side_effect=ValueError("bad input")))
        assert await a.locked() is False

    @pytest.mark.asyncio
    async def test_limit_runs_n_jobs_concurrently(self, make_lock):
        a = make_lock("while_executing", "jid-a", limit=2)
        b = make_lock("while_executing", "jid-b", limit=2)
        c = make_lock("while_executing", "jid-c", limit=2)

        results = {}

        async def work_b():
            results["c"] = await c.execute(AsyncMock(return_value="c"))
            return "b"

        async def work_a():
            results["b"] = await b.execute(work_b)
            return "a"

        assert await a.execute(work_a) == "a"
        assert results == {"b": "b", "c": None}


class TestWhileExecutingReject:
    def test_defaults_to_reject_strategy(self, make_lock):
        lock = make_lock("while_executing_reject", "jid-a")
        assert isinstance(lock, WhileExecutingReject)
        assert isinstance(lock.on_conflict, RejectStrategy)
        assert lock.runtime_locksmith.request.retry_count == 0
        assert lock.runtime_locksmith.request.timeout < 0

    @pytest.mark.asyncio
    async def test_rejects_concurrent_duplicate(self, make_lock):
        metrics = MetricsCollector()
        reject_job = AsyncMock()
        a = make_lock("while_executing_reject", "jid-a")
        b = make_lock(
            "while_executing_reject", "jid-b", reject_job=reject_job, metrics=metrics, retry_count=5
        )

        async def work():
            return await b.execute(AsyncMock(return_value="b"))

        assert await a.execute(work) is None
        reject_job.assert_awaited_once_with(
            LockConflict(f"{DIGEST}:RUN", "jid-b", "while_executing_reject")
        )
        assert metrics.count("lock_conflict", "lock_conflict:category=reject") == 1


class TestUntilAndWhileExecuting:
    @pytest.mark.asyncio
    async def test_hands_over_from_enqueue_lock_to_runtime_lock(self, make_lock):
        a = make_lock("until_and_while_executing", "jid-a")
        b = make_lock("until_and_while_executing", "jid-b")
        assert isinstance(a, UntilAndWhileExecuting)

        assert await a.lock() == "jid-a"
        assert await b.lock() is None

        async def work():
            assert await a.runtime_locksmith.locked() is True
            assert await a.locked() is False
            assert await b.lock() == "jid-b"
            assert await b.execute(AsyncMock()) is None
            return "a"

        assert await a.execute(work) == "a"
        assert await a.runtime_locksmith.locked() is False
        assert await b.locked() is False

    def test_builds_only_the_digest_and_runtime_locksmiths(self, make_lock):
        with patch("unique_jobs.locks.base.Locksmith", wraps=Locksmith) as built:
            lock = make_lock("until_and_while_executing", "jid-a")

        assert built.call_count == 2
        assert lock.locksmith.digest == DIGEST
        assert lock.runtime_locksmith.digest == f"{DIGEST}:RUN"


class TestConflictHandling:
    @pytest.mark.asyncio
    async def test_raise_strategy(self, make_lock):
        await make_lock("until_executed", "jid-a").lock()
        b = make_lock("until_executed", "jid-b", on_conflict="raise")

        with pytest.raises(LockConflictError) as excinfo:
            await b.lock()
        assert excinfo.value.jid == "jid-b"
        assert excinfo.value.digest == DIGEST

    @pytest.mark.asyncio
    async def test_replace_strategy_takes_over_the_digest(self, make_lock):
        delete_job = AsyncMock()
        a = make_lock("until_executed", "jid-a")
        b = make_lock("until_executed", "jid-b", on_conflict="replace", delete_job=delete_job)
        await a.lock()

        assert await b.lock() == "jid-b"
        delete_job.assert_awaited_once_with(LockConflict(DIGEST, "jid-b", "until_executed"))
        assert await a.locked() is False
        assert await b.locked() is True

    @pytest.mark.asyncio
    async def test_log_strategy_skips_job(self, make_lock, caplog):
        await make_lock("until_executed", "jid-a").lock()
        b = make_lock("until_executed", "jid-b", on_conflict="log")

        with caplog.at_level("INFO", logger="unique_jobs"):
            assert await b.lock() is None
        assert "Skipping job jid-b" in caplog.text


class FixedOutcome(ConflictStrategy):
    name = "fixed"

    def __init__(self, outcome: ConflictOutcome) -> None:
        super().__init__()
        self.outcome = outcome
        self.calls = 0

    async def call(self, conflict: LockConflict) -> ConflictOutcome:
        self.calls += 1
        return self.outcome


class TestConflictRetry:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "outcome, attempts",
        [
            (ConflictOutcome.REPLACED, 2),
            (ConflictOutcome.DROPPED, 1),
            (ConflictOutcome.LOGGED, 1),
            (ConflictOutcome.REJECTED, 1),
        ],
    )
    async def test_only_replaced_retries_the_lock(self, make_lock, outcome, attempts):
        await make_lock("until_executed", "jid-a").lock()
        strategy = FixedOutcome(outcome)
        b = make_lock("until_executed", "jid-b", strategy=strategy)

        with patch.object(b.locksmith, "lock", wraps=b.locksmith.lock) as lock:
            assert await b.lock() is None

        assert lock.await_count == attempts
        assert strategy.calls == 1
