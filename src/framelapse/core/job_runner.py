"""Directory job runner: one directory's videos -> frames -> (optionally) one video."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from pydantic import ValidationError

from framelapse.steps.s02_extract_frames.config import ExtractFramesConfig
from framelapse.steps.s02_extract_frames.contracts import ExtractFramesInput
from framelapse.steps.s02_extract_frames.step import ExtractFramesStep
from framelapse.steps.s03_assemble_video._stream_writer import StreamAssembler
from framelapse.steps.s03_assemble_video.config import AssembleVideoConfig
from framelapse.steps.s03_assemble_video.contracts import AssembleVideoInput
from framelapse.steps.s03_assemble_video.step import AssembleVideoStep
from .config import VideoExtractionConfig
from .contracts import (
    ExtractionBackend,
    ExtractionJob,
    JobResult,
    JobStrategy,
    OutputMode,
    OutputVideo,
    ProcessingStats,
    SamplingPlan,
)
from .errors import ConfigurationError, FileValidationError, ProcessError, WorkspaceError
from .ledger import CleanupLedger

logger = logging.getLogger(__name__)


def select_strategy(backend: ExtractionBackend, output_mode: OutputMode) -> JobStrategy:
    """Resolve backend + output mode to a strategy, in precedence order."""
    if output_mode == OutputMode.DIRECT and backend == ExtractionBackend.OPENCV:
        return JobStrategy.DIRECT_STREAM
    if output_mode == OutputMode.DIRECT and backend == ExtractionBackend.FFMPEG:
        return JobStrategy.DIRECT_PROCESS
    if output_mode == OutputMode.SKIP:
        return JobStrategy.EXTRACTION_ONLY
    return JobStrategy.TEMP_FRAMES


def sort_videos(videos) -> list[Path]:
    """Lexical path order; this is what fixes each video's index."""
    return sorted((Path(v) for v in videos), key=str)


def _record_video(
    stats: ProcessingStats,
    video: Path,
    size_bytes: int,
    frames_written: int,
    frames_skipped: int,
) -> None:
    if frames_written == 0 and frames_skipped > 0:
        stats.add_skipped_frames(frames_skipped)
        stats.add_failed_file(f"Failed to process {video}: none of {frames_skipped} sampled frames could be read")
        return
    stats.add_processed_file(size_bytes, frames_written)
    if frames_skipped:
        stats.add_skipped_frames(frames_skipped, f"{video}: {frames_skipped} sampled frames skipped")


class DirectoryJobRunner:
    """Runs one ``ExtractionJob`` under the configured strategy.

    Temp workspaces are registered with the shared ``CleanupLedger`` the
    moment they exist; the runner never deletes them itself.
    """

    def __init__(self, config: VideoExtractionConfig, ledger: CleanupLedger):
        self.config = config
        self.ledger = ledger

    def sampling_plan(self) -> SamplingPlan:
        try:
            return SamplingPlan(interval=self.config.frame_interval, backend=self.config.extraction_mode)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid sampling plan: {e.errors()[0]['msg']}") from e

    def output_names(self, tag: str) -> dict[str, str]:
        prefix = self.config.output_prefix
        worker = threading.get_ident()
        return {
            "video": f"{prefix}_{tag}.mp4",
            "frames": f"{prefix}_{tag}_frames",
            "temp": f"{prefix}_{tag}_temp_{worker}",
            "direct_temp": f"{prefix}_{tag}_ffmpeg_direct_temp_{worker}",
        }

    def run(self, job: ExtractionJob, stats: ProcessingStats) -> JobResult:
        plan = self.sampling_plan()
        videos = sort_videos(job.video_list)
        strategy = select_strategy(plan.backend, self.config.video_creation_mode)

        logger.info(
            f"Thread {threading.get_ident()} processing directory: {job.directory} "
            f"({len(videos)} videos, tag: '{job.directory_tag}', "
            f"extraction={plan.backend.value}, strategy={strategy.value})"
        )

        output_base = Path(self.config.output_directory)
        self._make_dir(output_base)
        names = self.output_names(job.directory_tag)
        output_video_path = output_base / names["video"]

        if strategy == JobStrategy.DIRECT_STREAM:
            return self._run_direct_stream(job, videos, plan, output_video_path, stats)
        if strategy == JobStrategy.DIRECT_PROCESS:
            workspace = self._create_workspace(output_base, names["direct_temp"])
            return self._run_with_assembly(job, strategy, videos, plan, workspace, output_video_path, stats)
        if strategy == JobStrategy.EXTRACTION_ONLY:
            frames_dir = output_base / names["frames"]
            self._make_dir(frames_dir)
            logger.info(f"Extracting frames to persistent directory: {frames_dir}")
            written = self._extract_all(videos, plan, frames_dir, stats)
            return JobResult(
                directory_tag=job.directory_tag, strategy=strategy, frames_dir=frames_dir, frames_written=written
            )
        if strategy == JobStrategy.TEMP_FRAMES:
            workspace = self._create_workspace(output_base, names["temp"])
            return self._run_with_assembly(job, strategy, videos, plan, workspace, output_video_path, stats)
        raise ConfigurationError(f"Unhandled job strategy: {strategy}")

    # -- setup ---------------------------------------------------------------

    def _make_dir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Failed to create directory {path}: {e}") from e

    def _create_workspace(self, output_base: Path, name: str) -> Path:
        """Fresh, uniquely named workspace; never shared with another job."""
        try:
            path = Path(tempfile.mkdtemp(prefix=f"{name}_", dir=output_base))
        except OSError as e:
            raise WorkspaceError(f"Failed to create temp workspace {output_base / name}: {e}") from e
        self.ledger.register(path)
        logger.info(f"Created transient temp directory for frames: {path}")
        return path

    def _check_video(self, video: Path) -> int:
        """Size of ``video`` in bytes, after the configured size limit check."""
        try:
            size = os.stat(video).st_size
        except OSError as e:
            raise FileValidationError(f"Failed to get file metadata for {video}: {e}") from e
        limit_mb = self.config.max_file_size_mb
        if limit_mb is not None and size > limit_mb * 1024 * 1024:
            raise FileValidationError(
                f"File size ({size} bytes) of {video} exceeds maximum allowed size ({limit_mb} MB)"
            )
        return size

    # -- strategies ----------------------------------------------------------

    def _extract_all(self, videos: list[Path], plan: SamplingPlan, target_dir: Path, stats: ProcessingStats) -> int:
        step = ExtractFramesStep(
            config=ExtractFramesConfig(
                frame_interval=plan.interval,
                backend=plan.backend,
                jpeg_quality=self.config.jpeg_quality,
                process_timeout_seconds=self.config.process_timeout_seconds,
                hardware_acceleration=self.config.hardware_acceleration,
            )
        )
        total = 0
        for video_index, video in enumerate(videos):
            logger.info(f"Extracting from video {video_index + 1}/{len(videos)}: {video}")
            try:
                size = self._check_video(video)
                output = step.execute(
                    ExtractFramesInput(video_path=video, video_index=video_index, target_dir=target_dir)
                )
            except ProcessError as e:
                logger.warning(f"Failed to process {video}: {e}")
                stats.add_failed_file(f"Failed to process {video}: {e}")
                continue
            _record_video(stats, video, size, output.frame_count, output.frames_skipped)
            total += output.frame_count
        return total

    def _run_with_assembly(
        self,
        job: ExtractionJob,
        strategy: JobStrategy,
        videos: list[Path],
        plan: SamplingPlan,
        workspace: Path,
        output_video_path: Path,
        stats: ProcessingStats,
    ) -> JobResult:
        written = self._extract_all(videos, plan, workspace, stats)

        step = AssembleVideoStep(
            config=AssembleVideoConfig(
                output_fps=self.config.output_fps,
                video_codec=self.config.video_codec,
                pixel_format=self.config.pixel_format,
                process_timeout_seconds=self.config.process_timeout_seconds,
            )
        )
        assembled = step.execute(AssembleVideoInput(frames_dir=workspace, output_path=output_video_path))

        output_video = None
        if assembled.output_path is not None:
            output_video = OutputVideo(path=assembled.output_path, expected_frame_rate=assembled.frame_rate)
            stats.outputs.append(assembled.output_path)
        return JobResult(
            directory_tag=job.directory_tag, strategy=strategy, output_video=output_video, frames_written=written
        )

    def _run_direct_stream(
        self,
        job: ExtractionJob,
        videos: list[Path],
        plan: SamplingPlan,
        output_video_path: Path,
        stats: ProcessingStats,
    ) -> JobResult:
        sizes: dict[Path, int] = {}
        for video in videos:
            try:
                sizes[video] = self._check_video(video)
            except FileValidationError as e:
                logger.warning(str(e))
                stats.add_failed_file(f"Failed to process {video}: {e}")

        assembler = StreamAssembler(
            output_video_path,
            frame_rate=self.config.output_fps,
            interval=plan.interval,
            fourcc=self.config.stream_fourcc,
            hw_accel=self.config.hardware_acceleration,
        )
        result = assembler.write_videos([v for v in videos if v in sizes])

        for outcome in result.outcomes:
            if outcome.error is not None:
                stats.add_failed_file(f"Failed to process {outcome.video_path}: {outcome.error}")
                continue
            _record_video(
                stats, outcome.video_path, sizes[outcome.video_path], outcome.frames_written, outcome.tally.skipped
            )

        output_video = None
        if result.output_path is not None:
            output_video = OutputVideo(path=result.output_path, expected_frame_rate=self.config.output_fps)
            stats.outputs.append(result.output_path)
        return JobResult(
            directory_tag=job.directory_tag,
            strategy=JobStrategy.DIRECT_STREAM,
            output_video=output_video,
            frames_written=result.frames_written,
        )
