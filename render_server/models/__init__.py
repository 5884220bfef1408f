# models/__init__.py

from .render import (
    OutputFormat,
    QualityPreset,
    RenderMode,
    RenderOptions,
    RenderRequest,
    ViewDescriptor
)
from .job import (
    JobState,
    Job,
    JobStatus,
    JobStats,
    JobResult,
    Artifact,
    ArtifactKind,
    ArtifactError
)

__all__ = [
    'OutputFormat',
    'QualityPreset',
    'RenderMode',
    'RenderOptions',
    'RenderRequest',
    'ViewDescriptor',
    'JobState',
    'Job',
    'JobStatus',
    'JobStats',
    'JobResult',
    'Artifact',
    'ArtifactKind',
    'ArtifactError'
]
