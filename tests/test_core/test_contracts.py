"""Tests for shared contracts."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from framelapse.core.contracts import (
    ExtractionBackend,
    ExtractionJob,
    FrameArtifact,
    OutputMode,
    ProcessingStats,
    SamplingPlan,
)


class TestSamplingPlan:
    def test_valid(self):
        plan = SamplingPlan(interval=5, backend="ffmpeg")
        assert plan.interval == 5
        assert plan.backend == ExtractionBackend.FFMPEG

    @pytest.mark.parametrize("interval", [0, -3])
    def test_non_positive_interval_rejected(self, interval):
        with pytest.raises(ValidationError):
            SamplingPlan(interval=interval)


class TestOutputMode:
    def test_none_is_skip(self):
        assert OutputMode("none") is OutputMode.SKIP
        assert OutputMode("skip") is OutputMode.SKIP

    def test_unknown(self):
        with pytest.raises(ValueError):
            OutputMode("sideways")


class TestExtractionJob:
    def test_frozen(self):
        job = ExtractionJob(directory="/videos/a", directory_tag="a", video_list=(Path("/videos/a/x.mp4"),))
        with pytest.raises(ValidationError):
            job.directory_tag = "b"


class TestFrameArtifact:
    def test_from_path(self):
        art = FrameArtifact.from_path(Path("/tmp/w/video002_frame0000300.jpg"))
        assert art.source_video_index == 2
        assert art.frame_number == 300
        assert art.sort_key == (2, 300)

    def test_foreign(self):
        assert FrameArtifact.from_path(Path("/tmp/w/ffmpeg_list.txt")) is None


class TestProcessingStats:
    def test_counts_and_rate(self):
        stats = ProcessingStats()
        stats.add_processed_file(100, frames_written=3)
        stats.add_processed_file(50, frames_written=1)
        stats.add_failed_file("bad.mp4: broken")
        assert stats.files_processed == 2
        assert stats.files_failed == 1
        assert stats.total_bytes == 150
        assert stats.frames_written == 4
        assert stats.success_rate() == pytest.approx(200 / 3)
        assert stats.error_messages == ["bad.mp4: broken"]

    def test_empty_rate(self):
        assert ProcessingStats().success_rate() == 0.0

    def test_merge(self):
        a = ProcessingStats()
        a.add_processed_file(10, frames_written=2)
        b = ProcessingStats()
        b.add_failed_file("x")
        b.add_skipped_frames(4, "x: 4 sampled frames skipped")
        b.outputs.append(Path("out.mp4"))
        a.merge(b)
        assert (a.files_processed, a.files_failed, a.frames_skipped) == (1, 1, 4)
        assert a.error_messages == ["x", "x: 4 sampled frames skipped"]
        assert a.outputs == [Path("out.mp4")]

    def test_summary_lines(self):
        lines = ProcessingStats(files_processed=1).summary_lines()
        assert "Files processed: 1" in lines
