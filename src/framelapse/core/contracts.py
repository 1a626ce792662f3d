"""Common Pydantic models shared across pipeline steps."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from framelapse.utils.frame_naming import parse_artifact_name


class ExtractionBackend(str, Enum):
    """How frames are pulled out of a video."""

    OPENCV = "opencv"
    FFMPEG = "ffmpeg"


class OutputMode(str, Enum):
    """What happens to sampled frames after extraction."""

    TEMP_FRAMES = "temp_frames"
    DIRECT = "direct"
    SKIP = "skip"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.lower() == "none":
            return cls.SKIP
        return None


class HardwareAccelConfig(BaseModel):
    """Hardware-accelerated decoding for OpenCV captures.

    Each backend in ``prefer_backends`` is tried in order with the requested
    acceleration; when none opens the video and ``fallback_to_cpu`` is set,
    a plain CPU capture is used instead.
    """

    enabled: bool = Field(False, description="Request hardware decoding from OpenCV")
    mode: Literal["auto", "d3d11", "vaapi", "mfx"] = Field("auto", description="Acceleration type")
    fallback_to_cpu: bool = Field(True, description="Use a CPU capture when no accelerated one opens")
    prefer_backends: list[
        Literal["any", "ffmpeg", "gstreamer", "msmf", "dshow", "v4l2", "avfoundation"]
    ] = Field(default_factory=lambda: ["ffmpeg", "any"], description="Capture APIs to try, in order")


class ConcurrencyMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class JobStrategy(str, Enum):
    """Resolved per-directory output strategy, one per backend/mode combination."""

    DIRECT_STREAM = "direct_stream"
    DIRECT_PROCESS = "direct_process"
    EXTRACTION_ONLY = "extraction_only"
    TEMP_FRAMES = "temp_frames"


class ExtractionJob(BaseModel):
    """All videos found in one directory (or one file's parent directory)."""

    model_config = ConfigDict(frozen=True)

    directory: str
    directory_tag: str
    video_list: tuple[Path, ...] = Field(default_factory=tuple)


class SamplingPlan(BaseModel):
    """Every ``interval``-th frame, pulled with ``backend``."""

    model_config = ConfigDict(frozen=True)

    interval: int
    backend: ExtractionBackend = ExtractionBackend.OPENCV

    @field_validator("interval")
    @classmethod
    def _interval_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"frame interval must be >= 1, got {v}")
        return v


class FrameArtifact(BaseModel):
    """One persisted sampled frame; identity lives in the filename."""

    model_config = ConfigDict(frozen=True)

    source_video_index: int = Field(..., ge=0)
    frame_number: int = Field(..., ge=0)
    path: Path

    @classmethod
    def from_path(cls, path: Path) -> FrameArtifact | None:
        """Parse an artifact from its filename, ``None`` if the name is foreign."""
        key = parse_artifact_name(Path(path).name)
        if key is None:
            return None
        return cls(source_video_index=key[0], frame_number=key[1], path=Path(path))

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.source_video_index, self.frame_number


class OutputVideo(BaseModel):
    path: Path
    expected_frame_rate: float


class ProcessingStats(BaseModel):
    """Aggregate outcome of a run. Mutated per job, merged by the coordinator."""

    files_processed: int = 0
    files_failed: int = 0
    total_bytes: int = 0
    frames_written: int = 0
    frames_skipped: int = 0
    elapsed_time: float = 0.0
    error_messages: list[str] = Field(default_factory=list)
    outputs: list[Path] = Field(default_factory=list)

    def add_processed_file(self, size_bytes: int, frames_written: int = 0) -> None:
        self.files_processed += 1
        self.total_bytes += size_bytes
        self.frames_written += frames_written

    def add_failed_file(self, message: str) -> None:
        self.files_failed += 1
        self.error_messages.append(message)

    def add_skipped_frames(self, count: int, message: str | None = None) -> None:
        self.frames_skipped += count
        if message:
            self.error_messages.append(message)

    def merge(self, other: ProcessingStats) -> None:
        """Fold another stats record into this one (elapsed time excluded)."""
        self.files_processed += other.files_processed
        self.files_failed += other.files_failed
        self.total_bytes += other.total_bytes
        self.frames_written += other.frames_written
        self.frames_skipped += other.frames_skipped
        self.error_messages.extend(other.error_messages)
        self.outputs.extend(other.outputs)

    def success_rate(self) -> float:
        total = self.files_processed + self.files_failed
        if total == 0:
            return 0.0
        return 100.0 * self.files_processed / total

    def summary_lines(self) -> list[str]:
        return [
            f"Files processed: {self.files_processed}",
            f"Files failed: {self.files_failed}",
            f"Success rate: {self.success_rate():.2f}%",
            f"Frames written: {self.frames_written}",
            f"Frames skipped: {self.frames_skipped}",
            f"Input bytes: {self.total_bytes}",
            f"Processing time: {self.elapsed_time:.2f}s",
        ]


class JobResult(BaseModel):
    """What one directory job produced."""

    directory_tag: str
    strategy: JobStrategy
    output_video: OutputVideo | None = None
    frames_dir: Path | None = None
    frames_written: int = 0
