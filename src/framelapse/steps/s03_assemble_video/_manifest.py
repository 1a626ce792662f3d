"""ffmpeg concat-demuxer manifest for an ordered list of frame artifacts."""

from __future__ import annotations

from pathlib import Path

from framelapse.core.contracts import FrameArtifact
from framelapse.utils.frame_naming import list_artifacts

MANIFEST_NAME = "ffmpeg_list.txt"


def collect_artifacts(frames_dir: Path) -> list[FrameArtifact]:
    """Artifacts in total order: video index first, then frame number."""
    return [
        FrameArtifact(source_video_index=video_index, frame_number=frame_number, path=path)
        for video_index, frame_number, path in list_artifacts(frames_dir)
    ]


def _quote(path: Path) -> str:
    return "'" + path.resolve().as_posix().replace("'", "'\\''") + "'"


def build_concat_manifest(artifacts: list[FrameArtifact], frame_rate: float) -> str:
    duration = f"{1.0 / frame_rate:.6f}"
    lines = []
    for artifact in sorted(artifacts, key=lambda a: a.sort_key):
        lines.append(f"file {_quote(artifact.path)}")
        lines.append(f"duration {duration}")
    return "\n".join(lines) + "\n"


def write_concat_manifest(artifacts: list[FrameArtifact], frame_rate: float, manifest_path: Path) -> Path:
    manifest_path.write_text(build_concat_manifest(artifacts, frame_rate), encoding="utf-8")
    return manifest_path
