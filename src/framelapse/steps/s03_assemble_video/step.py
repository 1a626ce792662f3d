"""Step 03: Concatenate ordered frame artifacts into one video with ffmpeg."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import ClassVar

from framelapse.core.errors import AssemblyError, WorkspaceError
from framelapse.core.step_base import BaseStep
from framelapse.utils.subprocess_utils import run_command, stderr_tail
from ._manifest import MANIFEST_NAME, collect_artifacts, write_concat_manifest
from .config import AssembleVideoConfig
from .contracts import AssembleVideoInput, AssembleVideoOutput

logger = logging.getLogger(__name__)

FFMPEG_BIN = "ffmpeg"

# libx264 + yuv420p need even dimensions.
_EVEN_SIZE_FILTER = "scale=trunc(iw/2)*2:trunc(ih/2)*2"


def _file_non_empty(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


class AssembleVideoStep(BaseStep[AssembleVideoInput, AssembleVideoOutput, AssembleVideoConfig]):
    name: ClassVar[str] = "assemble_video"
    input_type: ClassVar = AssembleVideoInput
    output_type: ClassVar = AssembleVideoOutput
    config_type: ClassVar = AssembleVideoConfig

    def validate_inputs(self, inputs: AssembleVideoInput) -> bool:
        if inputs.output_path.is_dir():
            logger.error(f"Output path is a directory: {inputs.output_path}")
            return False
        return True

    def build_command(self, manifest_path: Path, output_path: Path) -> list[str]:
        return [
            FFMPEG_BIN,
            "-hide_banner",
            "-loglevel", "warning",
            "-f", "concat",
            "-safe", "0",
            "-i", str(manifest_path),
            "-vf", _EVEN_SIZE_FILTER,
            "-c:v", self.config.video_codec,
            "-pix_fmt", self.config.pixel_format,
            "-r", f"{self.config.output_fps:g}",
            "-y",
            str(output_path),
        ]

    def run(self, inputs: AssembleVideoInput) -> AssembleVideoOutput:
        fps = self.config.output_fps
        artifacts = collect_artifacts(inputs.frames_dir)
        if not artifacts:
            logger.info(f"No frame artifacts found in {inputs.frames_dir}. No video will be created.")
            return AssembleVideoOutput(frame_rate=fps)

        output_path = inputs.output_path
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Failed to create output directory {output_path.parent}: {e}") from e

        manifest_path = write_concat_manifest(artifacts, fps, inputs.frames_dir / MANIFEST_NAME)
        logger.info(f"Creating video from {len(artifacts)} frames at {fps:g} FPS: {output_path}")

        cmd = self.build_command(manifest_path, output_path)
        try:
            run_command(cmd, timeout=self.config.process_timeout_seconds)
        except subprocess.CalledProcessError as e:
            output_path.unlink(missing_ok=True)
            tail = stderr_tail(e.stderr)
            logger.warning(f"ffmpeg assembly failed for {output_path}:\n{tail}")
            raise AssemblyError(f"Failed to create output video {output_path} (exit {e.returncode})") from e
        except subprocess.TimeoutExpired as e:
            output_path.unlink(missing_ok=True)
            raise AssemblyError(
                f"ffmpeg assembly timed out after {self.config.process_timeout_seconds}s for {output_path}"
            ) from e
        except OSError as e:
            raise AssemblyError(f"Failed to execute ffmpeg for video creation: {e}") from e

        if not _file_non_empty(output_path):
            output_path.unlink(missing_ok=True)
            raise AssemblyError(f"ffmpeg reported success but {output_path} is missing or empty")

        logger.info(f"Successfully created video: {output_path}")
        return AssembleVideoOutput(
            output_path=output_path,
            frame_count=len(artifacts),
            frame_rate=fps,
            manifest_path=manifest_path,
        )
