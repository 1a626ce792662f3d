"""Step 02: Sample every Nth frame of one video into numbered JPEG artifacts."""

from __future__ import annotations

import logging
from typing import ClassVar

from framelapse.core.contracts import ExtractionBackend
from framelapse.core.step_base import BaseStep
from ._library_backend import extract_frames_opencv
from ._process_backend import extract_frames_ffmpeg
from ._sampling import validate_interval
from .config import ExtractFramesConfig
from .contracts import ExtractFramesInput, ExtractFramesOutput

logger = logging.getLogger(__name__)


class ExtractFramesStep(BaseStep[ExtractFramesInput, ExtractFramesOutput, ExtractFramesConfig]):
    name: ClassVar[str] = "extract_frames"
    input_type: ClassVar = ExtractFramesInput
    output_type: ClassVar = ExtractFramesOutput
    config_type: ClassVar = ExtractFramesConfig

    def validate_inputs(self, inputs: ExtractFramesInput) -> bool:
        if not inputs.video_path.is_file():
            logger.error(f"Video not found: {inputs.video_path}")
            return False
        return True

    def run(self, inputs: ExtractFramesInput) -> ExtractFramesOutput:
        validate_interval(self.config.frame_interval)
        backend = self.config.backend

        if backend == ExtractionBackend.OPENCV:
            written, tally = extract_frames_opencv(
                inputs.video_path,
                inputs.video_index,
                inputs.target_dir,
                self.config.frame_interval,
                jpeg_quality=self.config.jpeg_quality,
                hw_accel=self.config.hardware_acceleration,
            )
            return ExtractFramesOutput(
                frames_dir=inputs.target_dir,
                frame_count=len(written),
                frames_skipped=tally.skipped,
                candidate_count=tally.candidates,
                backend=backend,
                frame_list=[p.name for p in written],
                skip_messages=tally.messages,
            )

        if backend == ExtractionBackend.FFMPEG:
            written = extract_frames_ffmpeg(
                inputs.video_path,
                inputs.video_index,
                inputs.target_dir,
                self.config.frame_interval,
                timeout=self.config.process_timeout_seconds,
            )
            return ExtractFramesOutput(
                frames_dir=inputs.target_dir,
                frame_count=len(written),
                backend=backend,
                frame_list=[p.name for p in written],
            )

        raise ValueError(f"Unknown extraction backend: {backend}")
