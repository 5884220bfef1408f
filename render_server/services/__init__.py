# services/__init__.py

from .job_service import JobService
from .render_service import RenderService
from .scheduler import Scheduler

__all__ = ['JobService', 'RenderService', 'Scheduler']
