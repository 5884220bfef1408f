# main.py

"""
FastAPI GLB Render API - Main Entry Point
"""

import sys
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from render_server.core.config import settings
from render_server.drivers.base import RenderDriver
from render_server.drivers.playwright_driver import PlaywrightRenderDriver
from render_server.encoders.ffmpeg_encoder import Encoder, FFmpegEncoder
from render_server.routers import job_router
from render_server.services.render_service import RenderService
from render_server.services.scheduler import Scheduler
from render_server.utils.file_handler import RenderStorage

# Fix for Windows asyncio + Playwright
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(driver: Optional[RenderDriver] = None,
               encoder: Optional[Encoder] = None) -> FastAPI:
    """Build the app. Driver and encoder default to Playwright and ffmpeg."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        render_driver = driver or PlaywrightRenderDriver(
            viewer_url=settings.viewer_url,
            asset_base_url=settings.asset_base_url,
            headless=settings.headless,
            browser_args=settings.browser_args,
            load_timeout_ms=settings.model_load_timeout_ms
        )
        storage = RenderStorage(settings.renders_dir, settings.temp_dir)
        storage.setup_directories()

        render_service = RenderService(
            render_driver,
            encoder or FFmpegEncoder(settings.ffmpeg_path),
            storage,
            still_settle=settings.still_settle_seconds,
            video_settle=settings.video_settle_seconds,
            gif_settle=settings.gif_settle_seconds,
            progress_every=settings.progress_every_frames,
            gif_max_duration=settings.gif_max_duration,
            gif_max_fps=settings.gif_max_fps
        )
        scheduler = Scheduler(
            render_service,
            concurrency_limit=settings.concurrency_limit,
            job_timeout=settings.job_timeout_seconds
        )

        await render_driver.start()
        await scheduler.start()
        app.state.driver = render_driver
        app.state.scheduler = scheduler
        job_router.set_scheduler(scheduler)
        logger.info("Render driver and scheduler started")

        yield

        logger.info(f"Shutting down {settings.app_name}")
        job_router.set_scheduler(None)
        await scheduler.stop()
        await render_driver.stop()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(job_router.router)

    @app.get("/")
    async def root():
        """API root endpoint"""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "submit": "/api/jobs",
                "jobs": "/api/jobs",
                "job_status": "/api/jobs/{job_id}",
                "cancel": "/api/jobs/{job_id}",
                "stats": "/api/jobs/stats",
                "health": "/health",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        scheduler: Scheduler = app.state.scheduler
        renderer = await app.state.driver.health()
        return {
            "status": "healthy" if renderer.get("status") == "healthy" else "degraded",
            "timestamp": datetime.now().isoformat(),
            "version": settings.app_version,
            "renderer": renderer,
            "jobs": scheduler.stats().model_dump()
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "render_server.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
