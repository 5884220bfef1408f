# services/job_service.py

"""
Job service - owns every job record and enforces its lifecycle
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from render_server.models.job import Job, JobResult, JobState, JobStats
from render_server.models.render import RenderOptions

logger = logging.getLogger(__name__)

LEGAL_TRANSITIONS = {
    JobState.PENDING: {JobState.PROCESSING, JobState.CANCELLED},
    JobState.PROCESSING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
    JobState.CANCELLED: set(),
}


class IllegalTransitionError(RuntimeError):
    """A job was asked to move along a path its state machine does not allow."""

    def __init__(self, job_id: str, current: JobState, target: JobState):
        super().__init__(f"Job {job_id}: illegal transition {current.value} -> {target.value}")
        self.job_id = job_id
        self.current = current
        self.target = target


class JobNotFoundError(KeyError):
    pass


class JobNotCancellableError(Exception):
    def __init__(self, job_id: str, status: JobState):
        super().__init__(f"Job {job_id} is {status.value} and cannot be cancelled")
        self.job_id = job_id
        self.status = status


class JobService:
    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def _get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _transition(self, job: Job, target: JobState) -> None:
        if target not in LEGAL_TRANSITIONS[job.status]:
            raise IllegalTransitionError(job.id, job.status, target)
        logger.debug(f"Job {job.id}: {job.status.value} -> {target.value}")
        job.status = target

    def create_job(self, asset: str, options: RenderOptions) -> Job:
        """Create a new pending job"""
        job = Job(asset=asset, options=options.model_copy(deep=True))
        with self._lock:
            self._jobs[job.id] = job
        logger.info(f"Job created: {job.id} ({asset}, mode={options.mode.value})")
        return job.model_copy(deep=True)

    def start(self, job_id: str) -> None:
        with self._lock:
            job = self._get(job_id)
            self._transition(job, JobState.PROCESSING)
            job.started_at = datetime.now()

    def update_progress(self, job_id: str, progress: int) -> None:
        """Single progress channel for a processing job. Never moves backwards."""
        with self._lock:
            job = self._get(job_id)
            if job.status != JobState.PROCESSING:
                raise IllegalTransitionError(job_id, job.status, JobState.PROCESSING)
            job.progress = max(job.progress, min(int(progress), 99))

    def complete(self, job_id: str, result: JobResult) -> None:
        """Mark job as completed"""
        if not result.artifacts:
            raise ValueError(f"Job {job_id}: a completed job needs at least one artifact")
        with self._lock:
            job = self._get(job_id)
            self._transition(job, JobState.COMPLETED)
            job.result = result.model_copy(deep=True)
            job.progress = 100
            job.completed_at = datetime.now()
        logger.info(f"Job completed: {job_id} ({len(result.artifacts)} artifacts, {len(result.errors)} errors)")

    def fail(self, job_id: str, error: str) -> None:
        """Mark job as failed"""
        with self._lock:
            job = self._get(job_id)
            self._transition(job, JobState.FAILED)
            job.error = error
            job.progress = 100
            job.completed_at = datetime.now()
        logger.warning(f"Job failed: {job_id}: {error}")

    def cancel(self, job_id: str) -> Job:
        with self._lock:
            job = self._get(job_id)
            if job.status != JobState.PENDING:
                raise JobNotCancellableError(job_id, job.status)
            self._transition(job, JobState.CANCELLED)
            job.completed_at = datetime.now()
            snapshot = job.model_copy(deep=True)
        logger.info(f"Job cancelled: {job_id}")
        return snapshot

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def list_jobs(self) -> List[Job]:
        with self._lock:
            jobs = [j.model_copy(deep=True) for j in self._jobs.values()]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def stats(self) -> JobStats:
        with self._lock:
            counts = {state: 0 for state in JobState}
            for job in self._jobs.values():
                counts[job.status] += 1
            total = len(self._jobs)

        return JobStats(
            pending=counts[JobState.PENDING],
            processing=counts[JobState.PROCESSING],
            completed=counts[JobState.COMPLETED],
            failed=counts[JobState.FAILED],
            cancelled=counts[JobState.CANCELLED],
            total=total
        )

    def cleanup(self, max_age: timedelta) -> int:
        """Drop terminal jobs that finished more than max_age ago"""
        cutoff = datetime.now() - max_age
        with self._lock:
            stale = [
                jid for jid, job in self._jobs.items()
                if job.status.is_terminal and job.completed_at and job.completed_at < cutoff
            ]
            for jid in stale:
                del self._jobs[jid]

        if stale:
            logger.info(f"Cleaned up {len(stale)} old jobs")
        return len(stale)
