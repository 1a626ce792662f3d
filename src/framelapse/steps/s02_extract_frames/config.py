"""Configuration for Step 02: Sample frames from one video."""

from pydantic import BaseModel, Field

from framelapse.core.contracts import ExtractionBackend, HardwareAccelConfig


class ExtractFramesConfig(BaseModel):
    frame_interval: int = Field(30, description="Keep every Nth frame (must be >= 1)")
    backend: ExtractionBackend = Field(ExtractionBackend.OPENCV, description="opencv|ffmpeg")
    jpeg_quality: int = Field(95, ge=1, le=100, description="JPEG quality for OpenCV-written frames")
    process_timeout_seconds: float | None = Field(None, gt=0, description="Bound on the ffmpeg call")
    hardware_acceleration: HardwareAccelConfig = Field(
        default_factory=HardwareAccelConfig, description="Accelerated decoding for the OpenCV backend"
    )
