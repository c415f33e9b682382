"""
Job scheduler for wifiauto.

asyncio implementation of the JobScheduler contract: recurring and one-shot
jobs keyed by tag, one task per schedule. Recurring schedules are written to
the settings store so ``restore()`` can re-arm them after a restart.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .constants import KEY_SCHEDULED_JOBS
from .exceptions import SchedulerError
from .log import LogComponent, get_logger
from .types import JobResult

logger = get_logger(LogComponent.SCHEDULER)

Job = Callable[[], Awaitable[JobResult]]


class _Schedule:
    def __init__(self, tag: str, interval_s: Optional[float]) -> None:
        self.tag = tag
        self.interval_s = interval_s
        self.task: Optional[asyncio.Task] = None
        self.cancelled = False
        self.running = False


class AsyncJobScheduler:
    """
    Runs registered jobs on the current event loop.

    A recurring job runs once right away, then every ``interval_s``.
    Cancelling a tag stops future invocations; an invocation already running
    is left to complete.
    """

    def __init__(self, store=None) -> None:
        self._store = store
        self._jobs: Dict[str, Job] = {}
        self._schedules: Dict[str, _Schedule] = {}
        self.history: List[Tuple[str, JobResult]] = []

    def register(self, tag: str, job: Job) -> None:
        self._jobs[tag] = job

    def is_scheduled(self, tag: str) -> bool:
        return tag in self._schedules

    def schedule_recurring(self, tag: str, interval_s: float) -> None:
        if interval_s <= 0:
            raise SchedulerError(f"Invalid interval {interval_s}", tag=tag)
        logger.info(f"Scheduling {tag} every {interval_s:.0f}s")
        self._start(tag, interval_s)
        self._persist(tag, interval_s)

    def schedule_once(self, tag: str) -> None:
        logger.info(f"Scheduling {tag} once")
        self._start(tag, None)

    def cancel(self, tag: str) -> None:
        logger.info(f"Cancelling {tag}")
        self._stop(tag)
        self._persist(tag, None)

    def restore(self) -> None:
        """Re-arm recurring schedules persisted before a restart."""
        for tag, interval_s in self._persisted().items():
            if tag in self._schedules:
                continue
            if tag not in self._jobs:
                logger.warning(f"No job registered for persisted schedule {tag}")
                continue
            logger.info(f"Restoring {tag} every {interval_s:.0f}s")
            self._start(tag, float(interval_s))

    async def shutdown(self) -> None:
        """Cancel every task, including running invocations."""
        tasks = [s.task for s in self._schedules.values() if s.task is not None]
        self._schedules.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _start(self, tag: str, interval_s: Optional[float]) -> None:
        if tag not in self._jobs:
            raise SchedulerError("No job registered for tag", tag=tag)
        self._stop(tag)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerError("Scheduler requires a running event loop", tag=tag) from e
        schedule = _Schedule(tag, interval_s)
        schedule.task = loop.create_task(self._loop(schedule))
        self._schedules[tag] = schedule

    def _stop(self, tag: str) -> None:
        schedule = self._schedules.pop(tag, None)
        if schedule is None:
            return
        schedule.cancelled = True
        if not schedule.running and schedule.task is not None:
            schedule.task.cancel()

    async def _loop(self, schedule: _Schedule) -> None:
        while not schedule.cancelled:
            await self._invoke(schedule)
            if schedule.interval_s is None:
                break
            await asyncio.sleep(schedule.interval_s)
        if self._schedules.get(schedule.tag) is schedule:
            del self._schedules[schedule.tag]

    async def _invoke(self, schedule: _Schedule) -> None:
        job = self._jobs[schedule.tag]
        schedule.running = True
        try:
            result = await job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Job {schedule.tag} failed: {e}")
            result = JobResult.FAILURE
        finally:
            schedule.running = False
        self.history.append((schedule.tag, result))
        logger.debug(f"Job {schedule.tag} completed: {result.name}")

    def _persisted(self) -> Dict[str, float]:
        if self._store is None:
            return {}
        return dict(self._store.get(KEY_SCHEDULED_JOBS, {}) or {})

    def _persist(self, tag: str, interval_s: Optional[float]) -> None:
        if self._store is None:
            return
        with self._store.edit() as editor:
            jobs = dict(editor.get(KEY_SCHEDULED_JOBS, {}) or {})
            if interval_s is None:
                jobs.pop(tag, None)
            else:
                jobs[tag] = interval_s
            editor.set(KEY_SCHEDULED_JOBS, jobs)
