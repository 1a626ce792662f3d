"""ffmpeg backend: one ``select`` filter invocation per video.

ffmpeg numbers its outputs 0, 1, 2, ...; once it exits cleanly the staged
files are renamed so the filename carries the source frame number
(``sequence * interval``), same as the OpenCV backend.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from framelapse.core.errors import ExternalProcessError, ExtractionError, WorkspaceError
from framelapse.utils.frame_naming import artifact_name, parse_staging_name, staging_pattern
from framelapse.utils.subprocess_utils import run_command, stderr_tail
from ._sampling import validate_interval

logger = logging.getLogger(__name__)

FFMPEG_BIN = "ffmpeg"


def select_filter(interval: int) -> str:
    """ffmpeg filter expression keeping frames whose index is a multiple of ``interval``."""
    validate_interval(interval)
    return f"select=not(mod(n\\,{interval}))"


def build_extract_command(video_path: Path, video_index: int, target_dir: Path, interval: int) -> list[str]:
    return [
        FFMPEG_BIN,
        "-hide_banner",
        "-loglevel", "warning",
        "-y",
        "-i", str(video_path),
        "-vf", select_filter(interval),
        "-vsync", "vfr",
        "-q:v", "2",
        "-start_number", "0",
        str(target_dir / staging_pattern(video_index)),
    ]


def _staged_files(target_dir: Path, video_index: int) -> list[tuple[int, Path]]:
    staged = []
    for path in target_dir.iterdir():
        key = parse_staging_name(path.name)
        if key is not None and key[0] == video_index:
            staged.append((key[1], path))
    staged.sort()
    return staged


def _discard_staged(target_dir: Path, video_index: int) -> None:
    for _, path in _staged_files(target_dir, video_index):
        path.unlink(missing_ok=True)


def extract_frames_ffmpeg(
    video_path: Path,
    video_index: int,
    target_dir: Path,
    interval: int,
    timeout: float | None = None,
) -> list[Path]:
    """Extract every ``interval``-th frame with ffmpeg.

    Exit status is the only success signal; on failure nothing from this
    call is kept.
    """
    cmd = build_extract_command(video_path, video_index, target_dir, interval)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WorkspaceError(f"Failed to create frame directory {target_dir}: {e}") from e

    logger.info(f"Running ffmpeg frame extraction for video {video_index}: {video_path}")
    try:
        run_command(cmd, timeout=timeout)
    except subprocess.CalledProcessError as e:
        _discard_staged(target_dir, video_index)
        tail = stderr_tail(e.stderr)
        logger.warning(f"ffmpeg frame extraction failed for {video_path}:\n{tail}")
        raise ExternalProcessError(
            f"ffmpeg frame extraction failed for video {video_path} (exit {e.returncode})",
            returncode=e.returncode,
            stderr=tail,
        ) from e
    except subprocess.TimeoutExpired as e:
        _discard_staged(target_dir, video_index)
        raise ExternalProcessError(
            f"ffmpeg frame extraction timed out after {timeout}s for video {video_path}"
        ) from e
    except OSError as e:
        raise ExternalProcessError(f"Failed to execute ffmpeg: {e}") from e

    written = []
    try:
        for sequence, staged in _staged_files(target_dir, video_index):
            final = target_dir / artifact_name(video_index, sequence * interval)
            os.replace(staged, final)
            written.append(final)
    except OSError as e:
        _discard_staged(target_dir, video_index)
        for path in written:
            path.unlink(missing_ok=True)
        raise ExtractionError(f"Failed to rename extracted frames for video {video_path}: {e}") from e

    logger.info(f"Extracted {len(written)} frames with ffmpeg from {video_path}")
    return written
