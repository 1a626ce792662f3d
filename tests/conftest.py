"""Shared pytest fixtures for framelapse tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest


def write_video(
    path: Path,
    num_frames: int,
    resolution: tuple[int, int] = (64, 48),
    fps: float = 30.0,
) -> Path:
    """Write a small mp4v video whose frames differ in brightness."""
    cv2 = pytest.importorskip("cv2")
    path.parent.mkdir(parents=True, exist_ok=True)
    width, height = resolution
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"mp4v"), fps, (width, height))
    assert writer.isOpened(), f"could not open VideoWriter for {path}"
    for i in range(num_frames):
        frame = np.full((height, width, 3), (i * 7) % 256, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path


@pytest.fixture
def make_video():
    """Factory fixture: ``make_video(path, num_frames, resolution=(w, h))``."""
    return write_video


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "output"
    out.mkdir()
    return out


class FakeCapture:
    """Stand-in for ``cv2.VideoCapture`` driven by plain Python data.

    ``frames`` maps frame index -> image (or None for an empty read);
    ``bad_seeks`` lists indices whose seek reports failure.
    """

    def __init__(self, frames: dict, frame_count: int | None = None, bad_seeks=(), opened: bool = True,
                 size: tuple[int, int] = (8, 8)):
        self.frames = frames
        self.frame_count = len(frames) if frame_count is None else frame_count
        self.bad_seeks = set(bad_seeks)
        self.opened = opened
        self.size = size
        self.position = 0
        self.released = False
        self.seeks: list[int] = []

    def isOpened(self) -> bool:
        return self.opened

    def get(self, prop):
        import cv2

        if prop == cv2.CAP_PROP_FRAME_COUNT:
            return float(self.frame_count)
        if prop == cv2.CAP_PROP_FPS:
            return 30.0
        if prop == cv2.CAP_PROP_FRAME_WIDTH:
            return float(self.size[0])
        if prop == cv2.CAP_PROP_FRAME_HEIGHT:
            return float(self.size[1])
        return 0.0

    def set(self, prop, value) -> bool:
        index = int(value)
        self.seeks.append(index)
        if index in self.bad_seeks:
            return False
        self.position = index
        return True

    def read(self):
        if self.position not in self.frames:
            return False, None
        frame = self.frames[self.position]
        self.position += 1
        if frame is None:
            return True, np.empty((0, 0, 3), dtype=np.uint8)
        return True, frame

    def release(self) -> None:
        self.released = True


@pytest.fixture
def fake_capture_factory():
    """Build ``FakeCapture`` objects with solid-colour 8x8 frames."""

    def _factory(num_frames: int, missing=(), **kwargs) -> FakeCapture:
        frames = {
            i: (None if i in missing else np.full((8, 8, 3), i % 256, dtype=np.uint8))
            for i in range(num_frames)
        }
        return FakeCapture(frames, **kwargs)

    return _factory
