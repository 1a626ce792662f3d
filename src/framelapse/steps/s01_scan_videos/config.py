"""Configuration for Step 01: Scan input locations for videos."""

from pydantic import BaseModel, Field

from framelapse.core.config import DEFAULT_VIDEO_EXTENSIONS


class ScanVideosConfig(BaseModel):
    extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS),
        description="Container extensions accepted (case-insensitive, with or without dot)",
    )
