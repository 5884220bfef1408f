# models/render.py

"""
Render-related data models
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum


class OutputFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    MP4 = "mp4"
    GIF = "gif"


class QualityPreset(str, Enum):
    ULTRA = "ultra"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RenderMode(str, Enum):
    STILL = "still"
    VIDEO = "video"
    GIF = "gif"


# Viewport multiplier applied to the requested dimensions
PRESET_SCALE = {
    QualityPreset.ULTRA: 2.0,
    QualityPreset.HIGH: 1.0,
    QualityPreset.MEDIUM: 0.75,
    QualityPreset.LOW: 0.5,
}


class RenderOptions(BaseModel):
    format: OutputFormat = Field(OutputFormat.PNG, description="Output format (png/jpg/mp4/gif)")
    width: int = Field(1200, ge=64, le=4096, description="Output width in pixels")
    height: int = Field(800, ge=64, le=4096, description="Output height in pixels")
    views: List[str] = Field(["all"], min_length=1, description="Named views, 'all' expands to the six canonical views")
    preset: QualityPreset = Field(QualityPreset.HIGH, description="Quality preset (ultra/high/medium/low)")
    quality: int = Field(90, ge=1, le=100, description="JPEG quality")
    turntable: bool = Field(False, description="Render a turntable video instead of stills")
    duration: float = Field(5.0, gt=0, le=30, description="Turntable duration in seconds")
    fps: int = Field(30, ge=1, le=60, description="Turntable frames per second")
    transparent: bool = Field(False, description="Omit the background in captured frames")
    background: str = Field("#f0f0f0", description="Viewer background color")
    post_processing: bool = Field(False, description="Ask the viewer to apply post-processing")

    @property
    def mode(self) -> RenderMode:
        if self.format == OutputFormat.MP4 or self.turntable:
            return RenderMode.VIDEO
        if self.format == OutputFormat.GIF or "animated" in self.views:
            return RenderMode.GIF
        return RenderMode.STILL

    @property
    def image_extension(self) -> str:
        return "jpg" if self.format == OutputFormat.JPG else "png"

    def viewport(self) -> dict:
        scale = PRESET_SCALE.get(self.preset, 1.0)
        return {
            "width": int(self.width * scale),
            "height": int(self.height * scale),
        }


class RenderRequest(BaseModel):
    asset: str = Field(..., min_length=1, description="GLB/GLTF file name in the uploads directory")
    options: RenderOptions = Field(default_factory=RenderOptions)


class ViewDescriptor(BaseModel):
    """A concrete camera placement: a named view or an explicit turntable angle."""

    model_config = ConfigDict(frozen=True)

    label: str
    view: Optional[str] = None
    angle: Optional[float] = None

    @property
    def is_rotation(self) -> bool:
        return self.angle is not None
