"""OpenCV backend: seek to each candidate frame and persist it as JPEG."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

import cv2
import numpy as np

from framelapse.core.contracts import HardwareAccelConfig
from framelapse.core.errors import ExtractionError, WorkspaceError
from framelapse.utils.frame_naming import artifact_name
from ._sampling import candidate_frame_numbers, validate_interval

logger = logging.getLogger(__name__)


_ACCELERATION_FLAGS = {
    "auto": "VIDEO_ACCELERATION_ANY",
    "d3d11": "VIDEO_ACCELERATION_D3D11",
    "vaapi": "VIDEO_ACCELERATION_VAAPI",
    "mfx": "VIDEO_ACCELERATION_MFX",
}

_CAPTURE_APIS = {
    "any": "CAP_ANY",
    "ffmpeg": "CAP_FFMPEG",
    "gstreamer": "CAP_GSTREAMER",
    "msmf": "CAP_MSMF",
    "dshow": "CAP_DSHOW",
    "v4l2": "CAP_V4L2",
    "avfoundation": "CAP_AVFOUNDATION",
}


def _create_capture(video_path: Path, api_preference: int | None = None, params: list[int] | None = None):
    if api_preference is None:
        return cv2.VideoCapture(str(video_path))
    return cv2.VideoCapture(str(video_path), api_preference, params)


def open_capture(video_path: Path, hw_accel: HardwareAccelConfig | None = None) -> cv2.VideoCapture:
    """Open ``video_path``, trying accelerated decoding first when enabled.

    Returns the capture even when it is not opened; the caller checks.
    """
    if hw_accel is None or not hw_accel.enabled:
        return _create_capture(video_path)

    params = [cv2.CAP_PROP_HW_ACCELERATION, getattr(cv2, _ACCELERATION_FLAGS[hw_accel.mode])]
    for backend in hw_accel.prefer_backends:
        try:
            cap = _create_capture(video_path, getattr(cv2, _CAPTURE_APIS[backend]), params)
        except cv2.error as e:
            logger.debug(f"Accelerated capture via {backend} raised for {video_path}: {e}")
            continue
        if cap.isOpened():
            logger.debug(f"Opened {video_path} via {backend} with {hw_accel.mode} acceleration")
            return cap
        cap.release()

    if not hw_accel.fallback_to_cpu:
        raise ExtractionError(
            f"Failed to open video {video_path} with hardware acceleration ({hw_accel.mode})"
        )
    logger.warning(f"Hardware-accelerated decoding unavailable for {video_path}, falling back to CPU")
    return _create_capture(video_path)


def _prop_int(cap: cv2.VideoCapture, prop: int) -> int:
    value = cap.get(prop)
    if value is None or math.isnan(value) or value <= 0:
        return 0
    return int(value)


@dataclass
class SampleTally:
    """Per-video counters filled while sampled frames are consumed."""

    candidates: int | None = None
    delivered: int = 0
    skipped: int = 0
    messages: list[str] = field(default_factory=list)

    def skip(self, message: str) -> None:
        self.skipped += 1
        self.messages.append(message)
        logger.warning(message)


class VideoSource:
    """Context manager around an opened ``cv2.VideoCapture``."""

    def __init__(self, video_path: Path, hw_accel: HardwareAccelConfig | None = None):
        self.video_path = Path(video_path)
        self.hw_accel = hw_accel
        self._cap: cv2.VideoCapture | None = None

    def __enter__(self) -> VideoSource:
        cap = open_capture(self.video_path, self.hw_accel)
        if not cap.isOpened():
            cap.release()
            raise ExtractionError(f"Failed to open video: {self.video_path}")
        self._cap = cap
        return self

    def __exit__(self, *exc) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    @property
    def frame_count(self) -> int:
        return _prop_int(self._cap, cv2.CAP_PROP_FRAME_COUNT)

    @property
    def fps(self) -> float:
        value = self._cap.get(cv2.CAP_PROP_FPS)
        return 0.0 if value is None or math.isnan(value) else float(value)

    @property
    def frame_size(self) -> tuple[int, int]:
        """(width, height); zeros when the container does not report them."""
        return (
            _prop_int(self._cap, cv2.CAP_PROP_FRAME_WIDTH),
            _prop_int(self._cap, cv2.CAP_PROP_FRAME_HEIGHT),
        )

    def sampled_frames(self, interval: int, tally: SampleTally) -> Iterator[tuple[int, np.ndarray]]:
        """Yield ``(frame_number, frame)`` for every readable candidate."""
        total = self.frame_count
        candidates = candidate_frame_numbers(total, interval)
        if total > 0:
            tally.candidates = len(candidates)
            yield from self._seek_frames(candidates, tally)
        else:
            logger.info(f"Frame count unavailable for {self.video_path}, reading sequentially")
            yield from self._sequential_frames(interval, tally)

    def _seek_frames(self, candidates: range, tally: SampleTally) -> Iterator[tuple[int, np.ndarray]]:
        for frame_number in candidates:
            try:
                if not self._cap.set(cv2.CAP_PROP_POS_FRAMES, float(frame_number)):
                    tally.skip(f"Failed to seek to frame {frame_number} in {self.video_path}")
                    continue
                ok, frame = self._cap.read()
            except cv2.error as e:
                tally.skip(f"OpenCV error at frame {frame_number} in {self.video_path}: {e}")
                continue
            if not ok or frame is None or frame.size == 0:
                tally.skip(f"Read empty frame at index {frame_number} from {self.video_path}")
                continue
            tally.delivered += 1
            yield frame_number, frame

    def _sequential_frames(self, interval: int, tally: SampleTally) -> Iterator[tuple[int, np.ndarray]]:
        frame_index = 0
        while True:
            try:
                ok, frame = self._cap.read()
            except cv2.error as e:
                tally.skip(f"OpenCV error at frame {frame_index} in {self.video_path}: {e}")
                break
            if not ok:
                break
            if frame_index % interval == 0:
                if frame is None or frame.size == 0:
                    tally.skip(f"Read empty frame at index {frame_index} from {self.video_path}")
                else:
                    tally.delivered += 1
                    yield frame_index, frame
            frame_index += 1
        tally.candidates = len(candidate_frame_numbers(frame_index, interval))


def extract_frames_opencv(
    video_path: Path,
    video_index: int,
    target_dir: Path,
    interval: int,
    jpeg_quality: int = 95,
    hw_accel: HardwareAccelConfig | None = None,
) -> tuple[list[Path], SampleTally]:
    """Write every ``interval``-th frame of ``video_path`` into ``target_dir``.

    Unreadable or unwritable frames are counted in the tally, not raised.
    """
    validate_interval(interval)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WorkspaceError(f"Failed to create frame directory {target_dir}: {e}") from e

    tally = SampleTally()
    written: list[Path] = []
    params = [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)]

    with VideoSource(video_path, hw_accel) as source:
        for frame_number, frame in source.sampled_frames(interval, tally):
            out_path = target_dir / artifact_name(video_index, frame_number)
            try:
                ok = cv2.imwrite(str(out_path), frame, params)
            except cv2.error as e:
                tally.skip(f"Failed to write frame {frame_number} from {video_path}: {e}")
                continue
            if not ok:
                tally.skip(f"Failed to write frame {frame_number} from {video_path}")
                continue
            written.append(out_path)

    logger.info(
        f"Extracted {len(written)} frames from {video_path} "
        f"(interval={interval}, skipped={tally.skipped})"
    )
    return written, tally
