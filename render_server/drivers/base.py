# drivers/base.py

"""
Render driver interface
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from render_server.models.render import RenderOptions, ViewDescriptor


class RenderDriverError(Exception):
    """Raised by a driver when a session, camera move or capture fails."""


class RenderDriver(ABC):
    """Loads an asset into a rendering session, moves its camera and captures frames."""

    async def start(self) -> None:
        """Acquire shared resources (e.g. launch the browser)."""

    async def stop(self) -> None:
        """Release shared resources."""

    async def health(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    @abstractmethod
    async def open_session(self, asset: str, options: RenderOptions) -> Any:
        """Load an asset and return an opaque session handle."""
        ...

    @abstractmethod
    async def position_camera(self, session: Any, view: ViewDescriptor) -> None:
        ...

    @abstractmethod
    async def capture_frame(self, session: Any, options: RenderOptions) -> bytes:
        ...

    @abstractmethod
    async def close_session(self, session: Any) -> None:
        ...
