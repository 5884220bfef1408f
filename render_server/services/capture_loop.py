# services/capture_loop.py

"""
Capture loop - drives a render session through camera placements
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any, Callable, List, Optional

from pydantic import BaseModel

from render_server.drivers.base import RenderDriver
from render_server.encoders.ffmpeg_encoder import Encoder
from render_server.models.job import Artifact, ArtifactError
from render_server.models.render import RenderOptions, ViewDescriptor

logger = logging.getLogger(__name__)

# Share of progress reported while capturing; the rest is left for encode/assembly
CAPTURE_PROGRESS_SHARE = 95

ProgressCallback = Callable[[int], None]
# Persists one captured still and returns its artifact record
FrameSink = Callable[[ViewDescriptor, bytes], Artifact]


class CaptureError(Exception):
    """Unrecoverable capture failure: the job cannot produce usable output."""

    def __init__(self, message: str, errors: Optional[List[ArtifactError]] = None):
        super().__init__(message)
        self.errors = errors or []


class CaptureOutcome(BaseModel):
    artifacts: List[Artifact] = []
    errors: List[ArtifactError] = []


def capture_progress(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return (done * CAPTURE_PROGRESS_SHARE) // total


def _noop_progress(value: int) -> None:
    pass


class CaptureLoop:
    def __init__(
            self,
            driver: RenderDriver,
            encoder: Encoder,
            still_settle: float = 0.5,
            progress_every: int = 10
    ):
        self.driver = driver
        self.encoder = encoder
        self.still_settle = still_settle
        self.progress_every = max(1, progress_every)

    async def capture_stills(
            self,
            session: Any,
            views: List[ViewDescriptor],
            options: RenderOptions,
            sink: FrameSink,
            on_progress: ProgressCallback = _noop_progress
    ) -> CaptureOutcome:
        """Capture each view in order. A failing view is recorded and skipped."""
        outcome = CaptureOutcome()
        total = len(views)
        logger.info(f"Capturing {total} views")

        for i, view in enumerate(views):
            try:
                await self.driver.position_camera(session, view)
                await asyncio.sleep(self.still_settle)
                data = await self.driver.capture_frame(session, options)
                outcome.artifacts.append(sink(view, data))
                logger.info(f"Captured view {i + 1}/{total}: {view.label}")
            except Exception as e:
                logger.warning(f"Failed to capture view '{view.label}': {e}")
                outcome.errors.append(ArtifactError(label=view.label, error=str(e)))

            on_progress(capture_progress(i + 1, total))

        if not outcome.artifacts:
            raise CaptureError(
                f"All {total} views failed to render",
                errors=outcome.errors
            )

        logger.info(f"Still capture finished: {len(outcome.artifacts)}/{total} views succeeded")
        return outcome

    async def capture_turntable(
            self,
            session: Any,
            frames: List[ViewDescriptor],
            options: RenderOptions,
            fps: int,
            frame_dir: Path,
            output_path: Path,
            settle: float = 0.05,
            on_progress: ProgressCallback = _noop_progress
    ) -> Path:
        """Capture a contiguous rotation and encode it. Any frame failure aborts.

        ``frame_dir`` is removed on every exit path.
        """
        total = len(frames)
        if total == 0:
            raise CaptureError("Turntable produced no frames (duration * fps rounds to 0)")

        logger.info(f"Capturing {total} turntable frames at {fps} fps into {frame_dir}")
        frame_dir.mkdir(parents=True, exist_ok=True)

        try:
            for i, frame in enumerate(frames):
                try:
                    await self.driver.position_camera(session, frame)
                    await asyncio.sleep(settle)
                    data = await self.driver.capture_frame(session, options)
                    (frame_dir / f"frame_{i:06d}.png").write_bytes(data)
                except Exception as e:
                    raise CaptureError(f"Frame {i + 1}/{total} failed: {e}") from e

                done = i + 1
                if done % self.progress_every == 0 or done == total:
                    on_progress(capture_progress(done, total))
                    logger.debug(f"Turntable progress: {done}/{total} frames")

            pattern = str(frame_dir / "frame_%06d.png")
            logger.info(f"Encoding {total} frames to {output_path}")
            await self.encoder.encode(pattern, fps, str(output_path))
            return output_path
        finally:
            shutil.rmtree(frame_dir, ignore_errors=True)
            logger.debug(f"Removed frame directory {frame_dir}")
