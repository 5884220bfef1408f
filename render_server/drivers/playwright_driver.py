# drivers/playwright_driver.py

"""
Playwright Render Driver Adapter
"""

import sys
import asyncio
import logging
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional
from playwright.async_api import async_playwright, Page

from render_server.drivers.base import RenderDriver, RenderDriverError
from render_server.models.render import RenderOptions, ViewDescriptor

logger = logging.getLogger(__name__)

# Fix for Windows asyncio + Playwright subprocess issues
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
    logger.info("Windows asyncio event loop policy set to ProactorEventLoopPolicy")


class PlaywrightRenderDriver(RenderDriver):
    """Drives the browser-hosted GLB viewer through a shared Chromium instance.

    Each session is its own page, so concurrent jobs never share camera state.
    The viewer page is expected to expose ``loadGLBModel``, ``applyRenderSettings``,
    ``setCameraView`` and ``rotateCameraToAngle`` on ``window`` and to set
    ``window.modelLoaded`` once the model is in the scene. ``setCameraView(name)``
    must return a truthy value for a view it knows; any falsy return (``false``,
    ``undefined``, ``null``) is treated as an unknown view. ``rotateCameraToAngle``
    has no return-value contract.
    """

    def __init__(
            self,
            viewer_url: str,
            asset_base_url: str = "/storage/uploads",
            headless: bool = True,
            browser_args: Optional[List[str]] = None,
            load_timeout_ms: int = 30000
    ):
        self.viewer_url = viewer_url
        self.asset_base_url = asset_base_url.rstrip("/")
        self.headless = headless
        self.browser_args = browser_args or []
        self.load_timeout_ms = load_timeout_ms
        self._playwright = None
        self._browser = None
        logger.info(f"Initialized PlaywrightRenderDriver with viewer: {viewer_url}")

    async def start(self) -> None:
        if self._browser is not None:
            return
        logger.info(f"Launching Chromium (headless={self.headless})")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=self.browser_args
        )
        logger.info(f"Chromium launched: version {self._browser.version}")

    async def stop(self) -> None:
        if self._browser is not None:
            logger.info("Closing Chromium")
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("Playwright stopped")

    async def health(self) -> Dict[str, Any]:
        if self._browser is None:
            return {"status": "not_initialized"}
        if not self._browser.is_connected():
            return {"status": "unhealthy", "error": "browser disconnected"}
        return {
            "status": "healthy",
            "contexts": len(self._browser.contexts),
            "version": self._browser.version
        }

    def _asset_url(self, asset: str) -> str:
        return f"{self.asset_base_url}/{PurePosixPath(asset).name}"

    async def open_session(self, asset: str, options: RenderOptions) -> Page:
        if self._browser is None:
            raise RenderDriverError("Browser not started")

        viewport = options.viewport()
        logger.info(f"Opening session for '{asset}' at {viewport['width']}x{viewport['height']}")
        context = await self._browser.new_context(viewport=viewport)
        page = await context.new_page()

        try:
            await page.goto(self.viewer_url, wait_until="networkidle")
            await page.wait_for_function("() => window.THREE !== undefined", timeout=self.load_timeout_ms)
            logger.debug("Viewer scripts loaded")

            await page.evaluate(
                "([url, opts]) => window.loadGLBModel(url, opts)",
                [self._asset_url(asset), options.model_dump(mode="json")]
            )
            await page.wait_for_function("() => window.modelLoaded === true", timeout=self.load_timeout_ms)
            logger.info(f"Model loaded: '{asset}'")

            await page.evaluate(
                "(opts) => window.applyRenderSettings(opts)",
                options.model_dump(mode="json")
            )
            logger.debug("Render settings applied")
        except Exception as e:
            await context.close()
            raise RenderDriverError(f"Failed to load '{asset}': {e}") from e

        return page

    async def position_camera(self, session: Page, view: ViewDescriptor) -> None:
        try:
            if view.is_rotation:
                await session.evaluate("(angle) => window.rotateCameraToAngle(angle)", view.angle)
                return
            found = await session.evaluate("(name) => window.setCameraView(name)", view.view)
        except Exception as e:
            raise RenderDriverError(f"Failed to position camera for '{view.label}': {e}") from e

        if not found:
            raise RenderDriverError(f"Unknown view: '{view.view}'")

    async def capture_frame(self, session: Page, options: RenderOptions) -> bytes:
        screenshot_options = {"omit_background": options.transparent}
        if options.image_extension == "jpg":
            screenshot_options.update(type="jpeg", quality=options.quality)
        else:
            screenshot_options["type"] = "png"

        try:
            return await session.screenshot(**screenshot_options)
        except Exception as e:
            raise RenderDriverError(f"Screenshot failed: {e}") from e

    async def close_session(self, session: Page) -> None:
        logger.debug("Closing session page")
        await session.context.close()
