# core/config.py

"""
Application Configuration
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    app_name: str = "GLB Render API"
    app_version: str = "2.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 8000

    # Directory Settings
    uploads_dir: str = "storage/uploads"
    renders_dir: str = "storage/renders"
    temp_dir: str = "storage/temp"

    # Browser / viewer Settings
    viewer_url: str = "http://localhost:8000/viewer/glb-viewer.html"
    asset_base_url: str = "/storage/uploads"
    headless: bool = True
    browser_args: List[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--enable-webgl",
        "--use-gl=swiftshader",
    ]
    model_load_timeout_ms: int = 30000

    # Render defaults
    default_width: int = 1200
    default_height: int = 800
    default_views: List[str] = ["front", "back", "left", "right", "top", "bottom"]
    default_quality: int = 90

    # Scheduler Settings
    concurrency_limit: int = 2
    job_timeout_seconds: float = 300.0
    job_retention_hours: int = 24

    # Capture loop timing
    still_settle_seconds: float = 0.5
    video_settle_seconds: float = 0.05
    gif_settle_seconds: float = 0.1
    progress_every_frames: int = 10

    # GIF limits
    gif_max_duration: float = 3.0
    gif_max_fps: int = 15

    # Encoder Settings
    ffmpeg_path: str = "ffmpeg"

    class Config:
        env_prefix = "RENDER_API_"
        case_sensitive = False


settings = Settings()
