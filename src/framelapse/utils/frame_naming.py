"""Artifact filename codec: ``video{NNN}_frame{NNNNNNN}.jpg``.

The filename is the only record of where a sampled frame came from, so the
writer side (both extraction backends) and the reader side (the assembler)
must go through this module.
"""

from __future__ import annotations

import re
from pathlib import Path

ARTIFACT_EXTENSION = ".jpg"
VIDEO_INDEX_WIDTH = 3
FRAME_NUMBER_WIDTH = 7

_ARTIFACT_RE = re.compile(r"^video(\d+)_frame(\d+)\.jpg$", re.IGNORECASE)

# ffmpeg writes sequence-numbered files first; they are renamed afterwards.
_STAGING_RE = re.compile(r"^video(\d+)_seq(\d+)\.jpg$", re.IGNORECASE)


def artifact_name(video_index: int, frame_number: int) -> str:
    """Canonical artifact filename for one sampled frame."""
    if video_index < 0 or frame_number < 0:
        raise ValueError(
            f"video_index and frame_number must be non-negative, got ({video_index}, {frame_number})"
        )
    return (
        f"video{video_index:0{VIDEO_INDEX_WIDTH}d}"
        f"_frame{frame_number:0{FRAME_NUMBER_WIDTH}d}{ARTIFACT_EXTENSION}"
    )


def parse_artifact_name(filename: str) -> tuple[int, int] | None:
    """Recover ``(video_index, frame_number)``; ``None`` for foreign files."""
    match = _ARTIFACT_RE.match(filename)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def staging_pattern(video_index: int) -> str:
    """printf-style output pattern handed to ffmpeg for one video."""
    return f"video{video_index:0{VIDEO_INDEX_WIDTH}d}_seq%0{FRAME_NUMBER_WIDTH}d{ARTIFACT_EXTENSION}"


def parse_staging_name(filename: str) -> tuple[int, int] | None:
    """Recover ``(video_index, sequence)`` from a staged ffmpeg output."""
    match = _STAGING_RE.match(filename)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def list_artifacts(directory: Path) -> list[tuple[int, int, Path]]:
    """All artifacts in ``directory`` sorted by ``(video_index, frame_number)``.

    Files that do not parse are ignored. A missing directory yields ``[]``.
    """
    if not directory.is_dir():
        return []
    found = []
    for path in directory.iterdir():
        if not path.is_file():
            continue
        key = parse_artifact_name(path.name)
        if key is None:
            continue
        found.append((key[0], key[1], path))
    found.sort(key=lambda item: (item[0], item[1], item[2].name))
    return found
