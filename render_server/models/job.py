# models/job.py

"""
Job-related data models
"""

import uuid
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum

from render_server.models.render import RenderOptions


class JobState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


class ArtifactKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    GIF = "gif"


class Artifact(BaseModel):
    label: str
    kind: ArtifactKind = ArtifactKind.IMAGE
    file_name: str
    path: str
    size: int
    frames: Optional[int] = None
    fps: Optional[int] = None
    duration: Optional[float] = None


class ArtifactError(BaseModel):
    label: str
    error: str


class JobResult(BaseModel):
    artifacts: List[Artifact] = []
    errors: List[ArtifactError] = []
    duration_ms: Optional[int] = None
    manifest: Optional[str] = None


class Job(BaseModel):
    """Tracks the lifecycle of a render job."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    asset: str
    options: RenderOptions
    status: JobState = JobState.PENDING
    progress: int = 0
    result: Optional[JobResult] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class JobStatus(BaseModel):
    job_id: str
    asset: str
    status: JobState
    progress: int
    options: RenderOptions
    result: Optional[JobResult] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatus":
        return cls(
            job_id=job.id,
            asset=job.asset,
            status=job.status,
            progress=job.progress,
            options=job.options,
            result=job.result,
            error=job.error,
            created_at=job.created_at.isoformat(),
            started_at=job.started_at.isoformat() if job.started_at else None,
            completed_at=job.completed_at.isoformat() if job.completed_at else None,
        )


class JobStats(BaseModel):
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    total: int = 0
    active_count: int = 0
    queue_depth: int = 0
    concurrency_limit: int = 0
