"""I/O contracts for Step 03: Assemble sampled frames into a video."""

from pathlib import Path
from pydantic import BaseModel, Field


class AssembleVideoInput(BaseModel):
    frames_dir: Path = Field(..., description="Directory holding frame artifacts (may hold other files)")
    output_path: Path = Field(..., description="Video file to create")


class AssembleVideoOutput(BaseModel):
    output_path: Path | None = Field(None, description="Created video, None when there were no frames")
    frame_count: int = Field(0, description="Artifacts listed in the manifest")
    frame_rate: float = Field(..., description="Frame rate the video was encoded at")
    manifest_path: Path | None = Field(None, description="concat manifest handed to ffmpeg")
