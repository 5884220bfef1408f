# encoders/ffmpeg_encoder.py

"""
Frame sequence encoders
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import List

logger = logging.getLogger(__name__)


class EncoderError(Exception):
    """Raised when a frame sequence cannot be turned into an output file."""


class Encoder(ABC):
    """Turns an ordered frame sequence plus a frame rate into a video or GIF."""

    @abstractmethod
    async def encode(self, frame_pattern: str, fps: int, output_path: str) -> str:
        ...


class FFmpegEncoder(Encoder):
    """Shells out to ffmpeg. The container is picked from the output extension."""

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.ffmpeg_path = ffmpeg_path

    async def _run(self, args: List[str]) -> None:
        cmd = [self.ffmpeg_path, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise EncoderError(f"Could not start ffmpeg: {e}") from e

        try:
            _, stderr = await process.communicate()
        except BaseException:
            # Cancelled mid-encode: the child must not outlive its job
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            raise

        if process.returncode != 0:
            tail = stderr.decode(errors="replace").strip().splitlines()[-5:]
            logger.error(f"ffmpeg exited with code {process.returncode}: {' | '.join(tail)}")
            raise EncoderError(f"ffmpeg failed with code {process.returncode}")

    async def encode(self, frame_pattern: str, fps: int, output_path: str) -> str:
        if output_path.endswith(".gif"):
            await self._encode_gif(frame_pattern, fps, output_path)
        else:
            await self._run([
                "-y",
                "-framerate", str(fps),
                "-i", frame_pattern,
                "-c:v", "libx264",
                "-pix_fmt", "yuv420p",
                "-crf", "18",
                output_path
            ])
        logger.info(f"Encoded {output_path}")
        return output_path

    async def _encode_gif(self, frame_pattern: str, fps: int, output_path: str) -> None:
        palette_path = os.path.join(os.path.dirname(output_path), "palette.png")
        try:
            await self._run([
                "-y",
                "-framerate", str(fps),
                "-i", frame_pattern,
                "-vf", "palettegen=stats_mode=diff",
                palette_path
            ])
            await self._run([
                "-y",
                "-framerate", str(fps),
                "-i", frame_pattern,
                "-i", palette_path,
                "-lavfi", "paletteuse=dither=bayer:bayer_scale=5",
                output_path
            ])
        finally:
            if os.path.exists(palette_path):
                os.remove(palette_path)
