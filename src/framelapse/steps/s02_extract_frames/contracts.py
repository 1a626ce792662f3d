"""I/O contracts for Step 02: Sample frames from one video."""

from pathlib import Path
from pydantic import BaseModel, Field

from framelapse.core.contracts import ExtractionBackend


class ExtractFramesInput(BaseModel):
    video_path: Path = Field(..., description="Path to input video file")
    video_index: int = Field(0, ge=0, description="Position of the video in its sorted job list")
    target_dir: Path = Field(..., description="Directory receiving the frame artifacts")


class ExtractFramesOutput(BaseModel):
    frames_dir: Path = Field(..., description="Directory containing extracted frames")
    frame_count: int = Field(..., description="Number of frames written")
    frames_skipped: int = Field(0, description="Candidate frames that could not be read or written")
    candidate_count: int | None = Field(None, description="Candidates attempted (None when unknown)")
    backend: ExtractionBackend = Field(..., description="Backend that produced the frames")
    frame_list: list[str] = Field(default_factory=list, description="List of frame filenames")
    skip_messages: list[str] = Field(default_factory=list, description="One line per skipped frame")
