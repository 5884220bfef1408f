# services/scheduler.py

"""
In-process render scheduler.

Jobs wait in a strict FIFO queue and are dispatched onto a fixed number of
concurrency slots. Each dispatched job runs as its own asyncio task so slow
browser or encoder calls never block the dispatch loop. Nothing is persisted:
a restart loses pending and in-flight jobs.
"""

import asyncio
import logging
from collections import deque
from datetime import timedelta
from functools import partial
from typing import Deque, Dict, Optional

from render_server.models.job import Job, JobResult, JobStats
from render_server.models.render import RenderOptions
from render_server.services.job_service import (
    IllegalTransitionError,
    JobNotFoundError,
    JobService
)
from render_server.services.render_service import RenderService

logger = logging.getLogger(__name__)


class JobTimeoutError(Exception):
    """A job ran past the scheduler's per-job deadline."""


class Scheduler:
    def __init__(
            self,
            render_service: RenderService,
            job_service: Optional[JobService] = None,
            concurrency_limit: int = 2,
            job_timeout: Optional[float] = None
    ):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.render_service = render_service
        self.jobs = job_service or JobService()
        self.concurrency_limit = concurrency_limit
        self.job_timeout = job_timeout if job_timeout and job_timeout > 0 else None

        self._queue: Deque[str] = deque()
        self._active: Dict[str, asyncio.Task] = {}
        self._wakeup = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._running

    def submit(self, asset: str, options: RenderOptions) -> str:
        """Enqueue a render job and return its id. Never waits on rendering."""
        job = self.jobs.create_job(asset, options)
        self._queue.append(job.id)
        logger.info(f"Job queued: {job.id} (queue depth {len(self._queue)})")
        self._wakeup.set()
        return job.id

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get_job(job_id)

    def cancel(self, job_id: str) -> Job:
        """Cancel a pending job. Raises JobNotCancellableError once it is dispatched."""
        job = self.jobs.cancel(job_id)
        try:
            self._queue.remove(job_id)
        except ValueError:
            logger.warning(f"Cancelled job {job_id} was not in the queue")
        return job

    def stats(self) -> JobStats:
        stats = self.jobs.stats()
        stats.active_count = self.active_count
        stats.queue_depth = self.queue_depth
        stats.concurrency_limit = self.concurrency_limit
        return stats

    def cleanup(self, max_age: timedelta) -> int:
        return self.jobs.cleanup(max_age)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._dispatch_loop())
        logger.info(f"Scheduler started (concurrency={self.concurrency_limit}, timeout={self.job_timeout})")

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        in_flight = list(self._active.values())
        for task in in_flight:
            task.cancel()
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)
        logger.info(f"Scheduler stopped ({len(self._queue)} jobs left pending)")

    async def join(self, poll_interval: float = 0.01) -> None:
        """Wait until the queue is drained and no job is in flight."""
        while self._queue or self._active:
            await asyncio.sleep(poll_interval)

    async def _dispatch_loop(self) -> None:
        while self._running:
            await self._wakeup.wait()
            self._wakeup.clear()
            self._fill_slots()

    def _fill_slots(self) -> None:
        while len(self._active) < self.concurrency_limit and self._queue:
            job_id = self._queue.popleft()
            try:
                self.jobs.start(job_id)
            except (IllegalTransitionError, JobNotFoundError) as e:
                logger.error(f"Not dispatching job {job_id}: {e!r}")
                continue

            logger.info(f"Dispatching job {job_id} ({len(self._active) + 1}/{self.concurrency_limit} slots)")
            self._active[job_id] = asyncio.create_task(self._run_job(job_id))

    async def _render(self, job_id: str) -> JobResult:
        """Run the render, bounded by the per-job timeout when one is set.

        Only the scheduler's own deadline becomes a JobTimeoutError; a TimeoutError
        raised by the driver or encoder propagates unchanged.
        """
        job = self.jobs.get_job(job_id)
        render = self.render_service.render(job, partial(self.jobs.update_progress, job_id))
        if not self.job_timeout:
            return await render

        task = asyncio.ensure_future(render)
        try:
            done, _ = await asyncio.wait({task}, timeout=self.job_timeout)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise

        if task not in done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise JobTimeoutError(f"Job timed out after {self.job_timeout:g}s")
        return task.result()

    async def _run_job(self, job_id: str) -> None:
        try:
            result = await self._render(job_id)
            self.jobs.complete(job_id, result)
        except JobTimeoutError as e:
            self.jobs.fail(job_id, str(e))
        except asyncio.CancelledError:
            self.jobs.fail(job_id, "Service shutting down")
            raise
        except IllegalTransitionError:
            logger.error(f"Job {job_id} halted on a state machine violation", exc_info=True)
        except Exception as e:
            logger.error(f"Job {job_id} raised {type(e).__name__}: {e}", exc_info=True)
            self.jobs.fail(job_id, str(e) or type(e).__name__)
        finally:
            self._active.pop(job_id, None)
            self._wakeup.set()
