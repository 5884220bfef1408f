# services/render_service.py

"""
Render service - runs one job end to end against the render driver
"""

import logging
import time
from datetime import datetime
from typing import Any

from render_server.drivers.base import RenderDriver
from render_server.encoders.ffmpeg_encoder import Encoder
from render_server.models.job import Artifact, ArtifactKind, Job, JobResult
from render_server.models.render import RenderMode, ViewDescriptor
from render_server.services.capture_loop import (
    CaptureLoop,
    CaptureOutcome,
    ProgressCallback
)
from render_server.services.view_expander import (
    clamp_gif_timing,
    expand_views,
    turntable_views
)
from render_server.utils.file_handler import RenderStorage

logger = logging.getLogger(__name__)


class RenderService:
    def __init__(
            self,
            driver: RenderDriver,
            encoder: Encoder,
            storage: RenderStorage,
            still_settle: float = 0.5,
            video_settle: float = 0.05,
            gif_settle: float = 0.1,
            progress_every: int = 10,
            gif_max_duration: float = 3.0,
            gif_max_fps: int = 15
    ):
        self.driver = driver
        self.storage = storage
        self.capture_loop = CaptureLoop(
            driver,
            encoder,
            still_settle=still_settle,
            progress_every=progress_every
        )
        self.video_settle = video_settle
        self.gif_settle = gif_settle
        self.gif_max_duration = gif_max_duration
        self.gif_max_fps = gif_max_fps

    async def render(self, job: Job, on_progress: ProgressCallback) -> JobResult:
        """Render a job and return its result. Raises when no usable output exists."""
        start_time = time.monotonic()
        options = job.options
        mode = options.mode
        logger.info(f"Rendering job {job.id}: asset='{job.asset}', mode={mode.value}")

        try:
            session = await self.driver.open_session(job.asset, options)
            try:
                if mode == RenderMode.STILL:
                    outcome = await self._render_stills(job, session, on_progress)
                else:
                    outcome = await self._render_turntable(job, session, mode, on_progress)
            finally:
                try:
                    await self.driver.close_session(session)
                except Exception as e:
                    logger.warning(f"Job {job.id}: failed to close render session: {e}")
        finally:
            self.storage.remove_job_temp(job.id)

        result = JobResult(
            artifacts=outcome.artifacts,
            errors=outcome.errors,
            duration_ms=int((time.monotonic() - start_time) * 1000)
        )
        result.manifest = self.storage.save_manifest(job.id, {
            "job_id": job.id,
            "asset": job.asset,
            "created_at": datetime.now().isoformat(),
            "options": options.model_dump(mode="json"),
            "artifacts": [a.model_dump(mode="json") for a in result.artifacts],
            "errors": [e.model_dump(mode="json") for e in result.errors]
        })
        logger.info(f"Job {job.id} rendered in {result.duration_ms}ms")
        return result

    async def _render_stills(self, job: Job, session: Any,
                             on_progress: ProgressCallback) -> CaptureOutcome:
        options = job.options
        views = expand_views(options.views)
        extension = options.image_extension

        def sink(view: ViewDescriptor, data: bytes) -> Artifact:
            path = self.storage.output_path(job.id, job.asset, view.label, extension)
            size = self.storage.save_artifact(path, data)
            return Artifact(
                label=view.label,
                kind=ArtifactKind.IMAGE,
                file_name=path.name,
                path=str(path),
                size=size
            )

        return await self.capture_loop.capture_stills(session, views, options, sink, on_progress)

    async def _render_turntable(self, job: Job, session: Any, mode: RenderMode,
                                on_progress: ProgressCallback) -> CaptureOutcome:
        options = job.options
        duration, fps = options.duration, options.fps

        if mode == RenderMode.GIF:
            duration, fps = clamp_gif_timing(duration, fps, self.gif_max_duration, self.gif_max_fps)
            # GIF has no real alpha channel
            capture_options = options.model_copy(update={"transparent": False})
            label, extension, kind, settle = "animated", "gif", ArtifactKind.GIF, self.gif_settle
        else:
            capture_options = options
            label, extension, kind, settle = "turntable", "mp4", ArtifactKind.VIDEO, self.video_settle

        frames = turntable_views(duration, fps)
        output_path = self.storage.output_path(job.id, job.asset, label, extension)

        try:
            await self.capture_loop.capture_turntable(
                session,
                frames,
                capture_options,
                fps,
                self.storage.job_frame_dir(job.id),
                output_path,
                settle=settle,
                on_progress=on_progress
            )
        except BaseException:
            # Video/GIF output is all-or-nothing
            output_path.unlink(missing_ok=True)
            raise

        artifact = Artifact(
            label=label,
            kind=kind,
            file_name=output_path.name,
            path=str(output_path),
            size=output_path.stat().st_size,
            frames=len(frames),
            fps=fps,
            duration=duration
        )
        return CaptureOutcome(artifacts=[artifact])
