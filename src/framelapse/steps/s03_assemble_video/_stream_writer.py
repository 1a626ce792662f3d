"""Direct OpenCV assembly: sampled frames go straight into a VideoWriter.

No intermediate images are written. The writer's frame size comes from the
first video reporting positive dimensions; frames of any other size are
skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import cv2

from framelapse.core.contracts import HardwareAccelConfig
from framelapse.core.errors import AssemblyError, ExtractionError, WorkspaceError
from framelapse.steps.s02_extract_frames._library_backend import SampleTally, VideoSource
from framelapse.steps.s02_extract_frames._sampling import validate_interval

logger = logging.getLogger(__name__)


@dataclass
class StreamVideoOutcome:
    video_path: Path
    frames_written: int = 0
    tally: SampleTally = field(default_factory=SampleTally)
    error: str | None = None


@dataclass
class StreamResult:
    output_path: Path | None
    frames_written: int
    outcomes: list[StreamVideoOutcome]


class StreamAssembler:
    def __init__(
        self,
        output_path: Path,
        frame_rate: float,
        interval: int,
        fourcc: str = "mp4v",
        hw_accel: HardwareAccelConfig | None = None,
    ):
        self.output_path = Path(output_path)
        self.frame_rate = frame_rate
        self.interval = interval
        self.fourcc = fourcc
        self.hw_accel = hw_accel
        self._writer: cv2.VideoWriter | None = None
        self._frame_size: tuple[int, int] | None = None

    def _open_writer(self, size: tuple[int, int]) -> None:
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Failed to create output directory {self.output_path.parent}: {e}") from e
        writer = cv2.VideoWriter(
            str(self.output_path),
            cv2.VideoWriter_fourcc(*self.fourcc),
            float(self.frame_rate),
            size,
            True,
        )
        if not writer.isOpened():
            writer.release()
            raise AssemblyError(f"Failed to open VideoWriter for output file {self.output_path}")
        logger.info(f"Determined output frame size {size[0]}x{size[1]}")
        self._writer = writer
        self._frame_size = size

    def _release(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None

    def _stream_one(self, video_path: Path) -> StreamVideoOutcome:
        outcome = StreamVideoOutcome(video_path=video_path)
        try:
            with VideoSource(video_path, self.hw_accel) as source:
                if self._writer is None:
                    width, height = source.frame_size
                    if width <= 0 or height <= 0:
                        outcome.error = f"Could not get valid frame size from video {video_path}"
                        logger.warning(outcome.error)
                        return outcome
                    self._open_writer((width, height))

                for frame_number, frame in source.sampled_frames(self.interval, outcome.tally):
                    height, width = frame.shape[:2]
                    if (width, height) != self._frame_size:
                        outcome.tally.skip(
                            f"Frame {frame_number} size {width}x{height} does not match writer size "
                            f"{self._frame_size[0]}x{self._frame_size[1]} in video {video_path}"
                        )
                        continue
                    try:
                        self._writer.write(frame)
                    except cv2.error as e:
                        raise AssemblyError(
                            f"VideoWriter write error at frame {frame_number} of {video_path}: {e}"
                        ) from e
                    outcome.frames_written += 1
        except ExtractionError as e:
            outcome.error = str(e)
            logger.warning(f"Skipping video {video_path}: {e}")
        return outcome

    def write_videos(self, videos: list[Path]) -> StreamResult:
        validate_interval(self.interval)
        outcomes: list[StreamVideoOutcome] = []
        try:
            for position, video_path in enumerate(videos, 1):
                logger.info(f"Streaming video {position}/{len(videos)}: {video_path}")
                outcomes.append(self._stream_one(video_path))
        except Exception:
            self._release()
            self.output_path.unlink(missing_ok=True)
            raise
        self._release()

        total = sum(o.frames_written for o in outcomes)
        if total == 0:
            if self.output_path.exists():
                logger.info(f"No frames written, removing {self.output_path}")
                self.output_path.unlink(missing_ok=True)
            return StreamResult(output_path=None, frames_written=0, outcomes=outcomes)

        logger.info(f"Successfully created video (direct/opencv): {self.output_path}")
        return StreamResult(output_path=self.output_path, frames_written=total, outcomes=outcomes)
