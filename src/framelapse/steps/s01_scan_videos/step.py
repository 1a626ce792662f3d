"""Step 01: Group videos from files and directories by containing directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import ClassVar

from framelapse.core.contracts import ExtractionJob
from framelapse.core.step_base import BaseStep
from .config import ScanVideosConfig
from .contracts import ScanVideosInput, ScanVideosOutput

logger = logging.getLogger(__name__)


def normalize_location(location: Path | str) -> Path:
    """Drop ``.`` and ``..`` segments without touching the filesystem."""
    return Path(os.path.normpath(str(location)))


def directory_tag(directory: Path | str) -> str:
    """Short tag used in output names: the directory's last component."""
    name = normalize_location(directory).name
    if name in ("", ".", ".."):
        return "default"
    return name


def _add_videos(videos_by_dir: dict[str, list[Path]], group: str, videos: list[Path]) -> None:
    """Append to a group, skipping videos it already holds (a file listed next to its directory)."""
    existing = videos_by_dir.setdefault(group, [])
    for video in videos:
        if video in existing:
            logger.debug(f"Skipping duplicate input {video}")
            continue
        existing.append(video)


def build_jobs(videos_by_dir: dict[str, list[Path]]) -> list[ExtractionJob]:
    """One immutable job per grouping directory, in scan order."""
    return [
        ExtractionJob(directory=directory, directory_tag=directory_tag(directory), video_list=tuple(videos))
        for directory, videos in videos_by_dir.items()
        if videos
    ]


class ScanVideosStep(BaseStep[ScanVideosInput, ScanVideosOutput, ScanVideosConfig]):
    name: ClassVar[str] = "scan_videos"
    input_type: ClassVar = ScanVideosInput
    output_type: ClassVar = ScanVideosOutput
    config_type: ClassVar = ScanVideosConfig

    def validate_inputs(self, inputs: ScanVideosInput) -> bool:
        if not inputs.input_locations:
            logger.error("No input locations configured")
            return False
        return True

    def _is_video(self, path: Path) -> bool:
        allowed = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in self.config.extensions}
        return path.suffix.lower() in allowed

    def run(self, inputs: ScanVideosInput) -> ScanVideosOutput:
        videos_by_dir: dict[str, list[Path]] = {}
        skipped: list[Path] = []

        for location in inputs.input_locations:
            path = normalize_location(location)

            if path.is_file():
                if not self._is_video(path):
                    logger.warning(f"Input file {path} is not a supported video format")
                    skipped.append(path)
                    continue
                parent = str(path.parent)
                _add_videos(videos_by_dir, parent, [path])

            elif path.is_dir():
                try:
                    entries = list(path.iterdir())
                except OSError as e:
                    logger.warning(f"Failed to read directory {path}: {e}")
                    skipped.append(path)
                    continue
                found = [normalize_location(p) for p in entries if p.is_file() and self._is_video(p)]
                if found:
                    _add_videos(videos_by_dir, str(path), found)
                else:
                    logger.info(f"No videos found in {path}")

            else:
                logger.warning(f"Input path does not exist or is inaccessible: {path}")
                skipped.append(path)

        output = ScanVideosOutput(videos_by_dir=videos_by_dir, skipped_locations=skipped)
        logger.info(f"Found {output.video_count} videos in {len(videos_by_dir)} directories")
        return output
