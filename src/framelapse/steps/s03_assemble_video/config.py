"""Configuration for Step 03: Assemble sampled frames into a video."""

from pydantic import BaseModel, Field


class AssembleVideoConfig(BaseModel):
    output_fps: float = Field(30.0, gt=0, description="Frame rate of the assembled video")
    video_codec: str = Field("libx264", description="ffmpeg encoder (frames are always re-encoded)")
    pixel_format: str = Field("yuv420p", description="ffmpeg output pixel format")
    process_timeout_seconds: float | None = Field(None, gt=0, description="Bound on the ffmpeg call")
