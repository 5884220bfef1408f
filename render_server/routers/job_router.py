# routers/job_router.py

"""
Render Job API Routes
"""

import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from render_server.core.config import settings
from render_server.models.job import JobStats, JobStatus
from render_server.models.render import RenderRequest
from render_server.services.job_service import JobNotCancellableError, JobNotFoundError
from render_server.services.scheduler import Scheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])

# Set by main.py during lifespan
_scheduler: Optional[Scheduler] = None


def set_scheduler(scheduler: Optional[Scheduler]):
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> Scheduler:
    if _scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler not initialized")
    return _scheduler


@router.post("", status_code=202)
async def submit_render_job(request: RenderRequest):
    """Queue a render job"""
    logger.info(f"POST /api/jobs - asset='{request.asset}', format={request.options.format.value}")
    logger.debug(f"Request details: {request.model_dump()}")

    scheduler = get_scheduler()
    job_id = scheduler.submit(request.asset, request.options)

    return {
        "job_id": job_id,
        "status": "pending",
        "queue_depth": scheduler.queue_depth,
        "message": f"Render job queued for '{request.asset}'. Poll GET /api/jobs/{job_id} for status."
    }


@router.get("", response_model=List[JobStatus])
async def list_jobs():
    """List all jobs, newest first"""
    return [JobStatus.from_job(job) for job in get_scheduler().jobs.list_jobs()]


@router.get("/stats", response_model=JobStats)
async def job_stats():
    """Aggregate job counts, queue depth and active slots"""
    return get_scheduler().stats()


@router.get("/{job_id}", response_model=JobStatus)
async def get_job_status(job_id: str):
    """Get status of a render job"""
    job = get_scheduler().get_job(job_id)

    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobStatus.from_job(job)


@router.delete("/{job_id}", response_model=JobStatus)
async def cancel_job(job_id: str):
    """Cancel a job that is still waiting in the queue"""
    logger.info(f"DELETE /api/jobs/{job_id} - cancel requested")
    try:
        job = get_scheduler().cancel(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except JobNotCancellableError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return JobStatus.from_job(job)


@router.delete("")
async def clear_old_jobs(
        max_age_hours: float = Query(settings.job_retention_hours, ge=0, description="Remove finished jobs older than this")
):
    """Clear finished jobs from memory"""
    scheduler = get_scheduler()
    cleared_count = scheduler.cleanup(timedelta(hours=max_age_hours))

    return {
        "message": f"Cleared {cleared_count} finished jobs",
        "remaining_jobs": scheduler.stats().total
    }
