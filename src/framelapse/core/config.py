"""Run configuration: one validated record consumed by the whole pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .contracts import ConcurrencyMode, ExtractionBackend, HardwareAccelConfig, OutputMode
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_EXTENSIONS = [".mp4", ".mov", ".avi", ".mkv"]


class VideoExtractionConfig(BaseModel):
    """Top-level configuration loaded from a YAML or JSON file."""

    model_config = ConfigDict(extra="ignore")

    input_directories: list[str] = Field(default_factory=lambda: ["input"], description="Video files or directories")
    output_directory: str = Field("output", description="Where outputs and temp workspaces go")
    output_prefix: str = Field("extract", description="Prefix for every output name")
    num_threads: int | None = Field(None, ge=1, description="Worker pool size (None = CPU count)")
    output_fps: float = Field(30.0, gt=0, description="Frame rate of assembled videos")
    frame_interval: int = Field(30, description="Sample every Nth frame (must be >= 1)")
    extraction_mode: ExtractionBackend = Field(ExtractionBackend.OPENCV, description="opencv|ffmpeg")
    video_creation_mode: OutputMode = Field(OutputMode.TEMP_FRAMES, description="temp_frames|direct|skip")
    processing_mode: ConcurrencyMode = Field(ConcurrencyMode.PARALLEL, description="sequential|parallel")
    jpeg_quality: int = Field(95, ge=1, le=100, description="JPEG quality for OpenCV-written frames")
    video_codec: str = Field("libx264", description="ffmpeg encoder for assembly")
    pixel_format: str = Field("yuv420p", description="ffmpeg pixel format for assembly")
    stream_fourcc: str = Field("mp4v", min_length=4, max_length=4, description="FourCC for direct OpenCV writing")
    max_file_size_mb: int | None = Field(None, ge=1, description="Reject larger input videos")
    process_timeout_seconds: float | None = Field(
        None, gt=0, description="Bound on each ffmpeg call (None = wait indefinitely)"
    )
    hardware_acceleration: HardwareAccelConfig = Field(
        default_factory=HardwareAccelConfig, description="Accelerated decoding for OpenCV captures"
    )
    video_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS), description="Container allow-list"
    )


def load_extraction_config(config_path: Path) -> VideoExtractionConfig:
    """Load and validate a config file.

    Accepts the bare record or a wrapper object with a ``video_config`` key.
    JSON files parse through the YAML loader.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")
    with open(config_path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Unable to parse config file {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    if "input_path" in raw or "processing_options" in raw:
        if raw.get("video_config") is None:
            raise ConfigurationError(
                f"Config file {config_path} is a process config but missing 'video_config' field."
            )
    if "video_config" in raw:
        raw = raw["video_config"] or {}

    try:
        return VideoExtractionConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Error parsing {config_path}: {e}") from e


def generate_default_config(config_path: Path) -> Path:
    """Write the default configuration as YAML and return its path."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = VideoExtractionConfig().model_dump(mode="json")
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    logger.info(f"Wrote default config to {config_path}")
    return config_path
