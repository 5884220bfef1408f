"""In-memory render driver and encoder doubles for tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from render_server.drivers.base import RenderDriver, RenderDriverError
from render_server.encoders.ffmpeg_encoder import Encoder, EncoderError
from render_server.models.render import RenderOptions, ViewDescriptor


class FakeRenderDriver(RenderDriver):
    def __init__(
        self,
        fail_labels: Optional[Set[str]] = None,
        fail_open: Optional[Set[str]] = None,
        open_error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
        capture_delay: float = 0.0,
        on_open: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.fail_labels = fail_labels or set()
        self.fail_open = fail_open or set()
        self.open_error = open_error
        self.gate = gate
        self.capture_delay = capture_delay
        self.on_open = on_open
        self.opened: List[str] = []
        self.closed = 0
        self.positions: List[ViewDescriptor] = []
        self.open_sessions = 0
        self.max_open_sessions = 0

    async def open_session(self, asset: str, options: RenderOptions) -> Dict[str, Any]:
        self.opened.append(asset)
        if self.on_open is not None:
            self.on_open(asset)
        if asset in self.fail_open:
            raise RenderDriverError(f"Failed to load '{asset}'")
        if self.open_error is not None:
            raise self.open_error
        self.open_sessions += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        if self.gate is not None:
            try:
                await self.gate.wait()
            except BaseException:
                self.open_sessions -= 1
                raise
        return {"asset": asset}

    async def position_camera(self, session: Any, view: ViewDescriptor) -> None:
        self.positions.append(view)
        if view.label in self.fail_labels:
            raise RenderDriverError(f"Unknown view: '{view.label}'")

    async def capture_frame(self, session: Any, options: RenderOptions) -> bytes:
        if self.capture_delay:
            await asyncio.sleep(self.capture_delay)
        label = self.positions[-1].label if self.positions else "none"
        return b"\x89PNG-" + label.encode()

    async def close_session(self, session: Any) -> None:
        self.closed += 1
        self.open_sessions -= 1


class FakeEncoder(Encoder):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []
        self.frame_counts: List[int] = []

    async def encode(self, frame_pattern: str, fps: int, output_path: str) -> str:
        self.calls.append((frame_pattern, fps, output_path))
        self.frame_counts.append(len(list(Path(frame_pattern).parent.glob("frame_*.png"))))
        if self.fail:
            Path(output_path).write_bytes(b"partial")
            raise EncoderError("ffmpeg failed with code 1")
        Path(output_path).write_bytes(b"encoded" * 10)
        return output_path
