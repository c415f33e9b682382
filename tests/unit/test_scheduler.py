"""Unit tests for AsyncJobScheduler."""

import asyncio

import pytest

from wifiauto.config import MemoryConfigStore
from wifiauto.constants import KEY_SCHEDULED_JOBS
from wifiauto.exceptions import SchedulerError
from wifiauto.scheduler import AsyncJobScheduler
from wifiauto.types import JobResult

TAG = "wifiauto.test"


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class Counter:
    def __init__(self, result=JobResult.SUCCESS):
        self.calls = 0
        self.result = result

    async def __call__(self):
        self.calls += 1
        return self.result


class TestScheduling:
    @pytest.mark.asyncio
    async def test_recurring_runs_immediately(self):
        scheduler = AsyncJobScheduler()
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.schedule_recurring(TAG, 60)
        await _settle()
        assert job.calls == 1
        assert scheduler.is_scheduled(TAG)
        assert scheduler.history == [(TAG, JobResult.SUCCESS)]
        await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_recurring_repeats(self):
        scheduler = AsyncJobScheduler()
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.schedule_recurring(TAG, 0.01)
        await asyncio.sleep(0.1)
        await scheduler.shutdown()
        assert job.calls >= 2

    @pytest.mark.asyncio
    async def test_rescheduling_replaces(self):
        scheduler = AsyncJobScheduler()
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.schedule_recurring(TAG, 60)
        await _settle()
        scheduler.schedule_recurring(TAG, 60)
        await _settle()
        assert job.calls == 2
        assert len(scheduler._schedules) == 1
        await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_once_runs_once(self):
        scheduler = AsyncJobScheduler()
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.schedule_once(TAG)
        await _settle()
        assert job.calls == 1
        assert not scheduler.is_scheduled(TAG)

    @pytest.mark.asyncio
    async def test_failing_job_reports_failure(self):
        scheduler = AsyncJobScheduler()

        async def _boom():
            raise RuntimeError("boom")

        scheduler.register(TAG, _boom)
        scheduler.schedule_once(TAG)
        await _settle()
        assert scheduler.history == [(TAG, JobResult.FAILURE)]

    @pytest.mark.asyncio
    async def test_invalid_interval(self):
        scheduler = AsyncJobScheduler()
        scheduler.register(TAG, Counter())
        with pytest.raises(SchedulerError):
            scheduler.schedule_recurring(TAG, 0)

    @pytest.mark.asyncio
    async def test_unknown_tag(self):
        with pytest.raises(SchedulerError):
            AsyncJobScheduler().schedule_once("nope")

    def test_requires_running_loop(self):
        scheduler = AsyncJobScheduler()
        scheduler.register(TAG, Counter())
        with pytest.raises(SchedulerError):
            scheduler.schedule_once(TAG)


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_stops_future_runs(self):
        scheduler = AsyncJobScheduler()
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.schedule_recurring(TAG, 0.01)
        await _settle()
        scheduler.cancel(TAG)
        calls = job.calls
        await asyncio.sleep(0.05)
        assert job.calls == calls
        assert not scheduler.is_scheduled(TAG)

    @pytest.mark.asyncio
    async def test_cancel_lets_running_invocation_finish(self):
        scheduler = AsyncJobScheduler()
        release = asyncio.Event()
        finished = []

        async def _slow():
            await release.wait()
            finished.append(True)
            return JobResult.SUCCESS

        scheduler.register(TAG, _slow)
        scheduler.schedule_recurring(TAG, 0.01)
        await _settle()
        scheduler.cancel(TAG)
        release.set()
        await asyncio.sleep(0.05)
        assert finished == [True]
        assert scheduler.history == [(TAG, JobResult.SUCCESS)]

    @pytest.mark.asyncio
    async def test_cancel_unknown_tag_is_noop(self):
        AsyncJobScheduler().cancel("nope")


class TestPersistence:
    @pytest.mark.asyncio
    async def test_recurring_persisted_and_cancel_removes(self):
        store = MemoryConfigStore()
        scheduler = AsyncJobScheduler(store)
        scheduler.register(TAG, Counter())
        scheduler.schedule_recurring(TAG, 900)
        assert store.get(KEY_SCHEDULED_JOBS) == {TAG: 900}
        scheduler.cancel(TAG)
        assert store.get(KEY_SCHEDULED_JOBS) == {}
        await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_once_not_persisted(self):
        store = MemoryConfigStore()
        scheduler = AsyncJobScheduler(store)
        scheduler.register(TAG, Counter())
        scheduler.schedule_once(TAG)
        assert store.get(KEY_SCHEDULED_JOBS) is None
        await _settle()

    @pytest.mark.asyncio
    async def test_restore_after_restart(self):
        store = MemoryConfigStore({KEY_SCHEDULED_JOBS: {TAG: 900, "gone": 60}})
        scheduler = AsyncJobScheduler(store)
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.restore()
        await _settle()
        assert job.calls == 1
        assert scheduler.is_scheduled(TAG)
        assert not scheduler.is_scheduled("gone")
        await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_restore_keeps_running_schedule(self):
        store = MemoryConfigStore()
        scheduler = AsyncJobScheduler(store)
        job = Counter()
        scheduler.register(TAG, job)
        scheduler.schedule_recurring(TAG, 900)
        await _settle()
        scheduler.restore()
        await _settle()
        assert job.calls == 1
        await scheduler.shutdown()
