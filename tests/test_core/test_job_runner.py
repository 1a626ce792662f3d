"""Tests for the directory job runner and its four strategies."""

import subprocess
from pathlib import Path

import pytest

from framelapse.core.config import VideoExtractionConfig
from framelapse.core.contracts import (
    ExtractionBackend,
    ExtractionJob,
    JobStrategy,
    OutputMode,
    ProcessingStats,
)
from framelapse.core.errors import AssemblyError, ConfigurationError
from framelapse.core.job_runner import DirectoryJobRunner, select_strategy, sort_videos
from framelapse.core.ledger import CleanupLedger
from framelapse.steps.s02_extract_frames import _library_backend, _process_backend
from framelapse.steps.s03_assemble_video import step as assemble_module
from framelapse.utils.frame_naming import artifact_name


class FakeAssembler:
    """Replaces ``run_command`` in the assembly step and records each manifest."""

    def __init__(self, returncode: int = 0):
        self.returncode = returncode
        self.manifests: list[list[str]] = []

    def __call__(self, cmd, cwd=None, timeout=None, check=True):
        manifest = Path(cmd[cmd.index("-i") + 1])
        self.manifests.append(
            [Path(line[len("file '"):-1]).name for line in manifest.read_text().splitlines() if line.startswith("file ")]
        )
        if self.returncode != 0:
            raise subprocess.CalledProcessError(self.returncode, " ".join(cmd), "", "Conversion failed!")
        Path(cmd[-1]).write_bytes(b"\x00" * 64)
        return subprocess.CompletedProcess(cmd, 0, "", "")


@pytest.fixture
def fake_assembler(monkeypatch):
    fake = FakeAssembler()
    monkeypatch.setattr(assemble_module, "run_command", fake)
    return fake


def _job(directory: Path, *videos: Path) -> ExtractionJob:
    return ExtractionJob(directory=str(directory), directory_tag=directory.name, video_list=tuple(videos))


def _runner(output_dir: Path, **overrides) -> tuple[DirectoryJobRunner, CleanupLedger]:
    ledger = CleanupLedger()
    config = VideoExtractionConfig(output_directory=str(output_dir), output_prefix="extract", **overrides)
    return DirectoryJobRunner(config, ledger), ledger


class TestStrategySelection:
    @pytest.mark.parametrize(
        "backend,mode,expected",
        [
            (ExtractionBackend.OPENCV, OutputMode.DIRECT, JobStrategy.DIRECT_STREAM),
            (ExtractionBackend.FFMPEG, OutputMode.DIRECT, JobStrategy.DIRECT_PROCESS),
            (ExtractionBackend.OPENCV, OutputMode.SKIP, JobStrategy.EXTRACTION_ONLY),
            (ExtractionBackend.FFMPEG, OutputMode.SKIP, JobStrategy.EXTRACTION_ONLY),
            (ExtractionBackend.OPENCV, OutputMode.TEMP_FRAMES, JobStrategy.TEMP_FRAMES),
            (ExtractionBackend.FFMPEG, OutputMode.TEMP_FRAMES, JobStrategy.TEMP_FRAMES),
        ],
    )
    def test_precedence(self, backend, mode, expected):
        assert select_strategy(backend, mode) == expected

    def test_sort_videos_lexical(self):
        videos = [Path("/d/b.mp4"), Path("/d/a.mp4"), Path("/d/B.mp4"), Path("/d/a10.mp4")]
        assert [p.name for p in sort_videos(videos)] == ["B.mp4", "a.mp4", "a10.mp4", "b.mp4"]


class TestTempFramesStrategy:
    def test_two_videos_in_order(self, make_video, tmp_path: Path, output_dir: Path, fake_assembler):
        cam = tmp_path / "cam"
        b = make_video(cam / "b.mp4", num_frames=100)
        a = make_video(cam / "a.mp4", num_frames=300)
        runner, ledger = _runner(output_dir, frame_interval=100, output_fps=10)
        stats = ProcessingStats()

        result = runner.run(_job(cam, b, a), stats)

        assert fake_assembler.manifests == [
            [artifact_name(0, 0), artifact_name(0, 100), artifact_name(0, 200), artifact_name(1, 0)]
        ]
        assert result.strategy == JobStrategy.TEMP_FRAMES
        assert result.output_video.path == output_dir / "extract_cam.mp4"
        assert result.output_video.expected_frame_rate == 10
        assert result.frames_written == 4
        assert stats.files_processed == 2
        assert stats.files_failed == 0
        assert stats.outputs == [output_dir / "extract_cam.mp4"]

        workspaces = ledger.pending()
        assert len(workspaces) == 1
        assert workspaces[0].name.startswith("extract_cam_temp_")
        assert workspaces[0].exists()

    def test_corrupt_video_does_not_stop_siblings(self, make_video, tmp_path: Path, output_dir: Path, fake_assembler):
        cam = tmp_path / "cam"
        a = make_video(cam / "a.mp4", num_frames=20)
        broken = cam / "b.mp4"
        broken.write_bytes(b"this is not a video")
        c = make_video(cam / "c.mp4", num_frames=20)
        runner, _ = _runner(output_dir, frame_interval=10)
        stats = ProcessingStats()

        runner.run(_job(cam, a, broken, c), stats)

        assert stats.files_processed == 2
        assert stats.files_failed == 1
        assert any("b.mp4" in m for m in stats.error_messages)
        assert fake_assembler.manifests == [
            [artifact_name(0, 0), artifact_name(0, 10), artifact_name(2, 0), artifact_name(2, 10)]
        ]

    def test_unreadable_frames_do_not_stop_siblings(
        self, make_video, monkeypatch, tmp_path: Path, output_dir: Path, fake_assembler, fake_capture_factory
    ):
        cam = tmp_path / "cam"
        a = make_video(cam / "a.mp4", num_frames=20)
        b = cam / "b.mp4"
        b.write_bytes(b"opens, but every frame read fails")
        c = make_video(cam / "c.mp4", num_frames=20)
        real_open = _library_backend.open_capture

        def _open(path, hw_accel=None):
            if Path(path).name == "b.mp4":
                return fake_capture_factory(20, missing=set(range(20)))
            return real_open(path, hw_accel)

        monkeypatch.setattr(_library_backend, "open_capture", _open)
        runner, _ = _runner(output_dir, frame_interval=10)
        stats = ProcessingStats()

        result = runner.run(_job(cam, c, b, a), stats)

        assert stats.files_processed == 2
        assert stats.files_failed == 1
        assert stats.frames_skipped == 2
        assert any("b.mp4" in m for m in stats.error_messages)
        assert result.output_video is not None
        assert fake_assembler.manifests == [
            [artifact_name(0, 0), artifact_name(0, 10), artifact_name(2, 0), artifact_name(2, 10)]
        ]

    def test_same_tag_directories_get_separate_workspaces(
        self, make_video, tmp_path: Path, output_dir: Path, fake_assembler
    ):
        first = make_video(tmp_path / "day1" / "cam" / "a.mp4", num_frames=30)
        second = make_video(tmp_path / "day2" / "cam" / "b.mp4", num_frames=10)
        runner, ledger = _runner(output_dir, frame_interval=10)

        runner.run(_job(first.parent, first), ProcessingStats())
        runner.run(_job(second.parent, second), ProcessingStats())

        assert fake_assembler.manifests == [
            [artifact_name(0, 0), artifact_name(0, 10), artifact_name(0, 20)],
            [artifact_name(0, 0)],
        ]
        workspaces = ledger.pending()
        assert len(set(workspaces)) == 2
        assert all(w.name.startswith("extract_cam_temp_") for w in workspaces)

    def test_no_frames_means_no_video(self, tmp_path: Path, output_dir: Path, fake_assembler):
        cam = tmp_path / "cam"
        cam.mkdir()
        broken = cam / "a.mp4"
        broken.write_bytes(b"garbage")
        runner, _ = _runner(output_dir)
        stats = ProcessingStats()

        result = runner.run(_job(cam, broken), stats)

        assert result.output_video is None
        assert fake_assembler.manifests == []
        assert stats.outputs == []
        assert stats.files_failed == 1

    def test_assembly_failure_propagates(self, make_video, monkeypatch, tmp_path: Path, output_dir: Path):
        monkeypatch.setattr(assemble_module, "run_command", FakeAssembler(returncode=1))
        cam = tmp_path / "cam"
        a = make_video(cam / "a.mp4", num_frames=5)
        runner, ledger = _runner(output_dir, frame_interval=1)

        with pytest.raises(AssemblyError):
            runner.run(_job(cam, a), ProcessingStats())
        assert len(ledger.pending()) == 1

    def test_size_limit(self, make_video, tmp_path: Path, output_dir: Path, fake_assembler):
        cam = tmp_path / "cam"
        small = make_video(cam / "a.mp4", num_frames=5)
        big = cam / "b.mp4"
        big.write_bytes(b"\x00" * (2 * 1024 * 1024 + 1))
        runner, _ = _runner(output_dir, frame_interval=5, max_file_size_mb=1)
        stats = ProcessingStats()

        runner.run(_job(cam, small, big), stats)

        assert stats.files_processed == 1
        assert stats.files_failed == 1
        assert "exceeds maximum allowed size" in stats.error_messages[0]

    def test_zero_interval_rejects_job_before_work(self, make_video, tmp_path: Path, output_dir: Path):
        cam = tmp_path / "cam"
        a = make_video(cam / "a.mp4", num_frames=5)
        runner, ledger = _runner(output_dir / "nested", frame_interval=0)

        with pytest.raises(ConfigurationError):
            runner.run(_job(cam, a), ProcessingStats())
        assert ledger.pending() == []
        assert not (output_dir / "nested").exists()


class TestExtractionOnlyStrategy:
    def test_frames_persist(self, make_video, tmp_path: Path, output_dir: Path, fake_assembler):
        cam = tmp_path / "cam"
        a = make_video(cam / "a.mp4", num_frames=10)
        runner, ledger = _runner(output_dir, frame_interval=5, video_creation_mode="none")
        stats = ProcessingStats()

        result = runner.run(_job(cam, a), stats)

        frames_dir = output_dir / "extract_cam_frames"
        assert result.strategy == JobStrategy.EXTRACTION_ONLY
        assert result.frames_dir == frames_dir
        assert result.output_video is None
        assert sorted(p.name for p in frames_dir.iterdir()) == [artifact_name(0, 0), artifact_name(0, 5)]
        assert ledger.pending() == []
        assert fake_assembler.manifests == []
        assert stats.frames_written == 2


class TestDirectStrategies:
    def test_direct_process_workspace(self, monkeypatch, tmp_path: Path, output_dir: Path, fake_assembler):
        def _fake_extract(cmd, cwd=None, timeout=None, check=True):
            pattern = Path(cmd[-1])
            for seq in range(3):
                (pattern.parent / (pattern.name % seq)).write_bytes(b"jpeg")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(_process_backend, "run_command", _fake_extract)
        cam = tmp_path / "cam"
        cam.mkdir()
        video = cam / "a.mp4"
        video.write_bytes(b"decoded by the fake")
        runner, ledger = _runner(
            output_dir, frame_interval=50, extraction_mode="ffmpeg", video_creation_mode="direct"
        )
        stats = ProcessingStats()

        result = runner.run(_job(cam, video), stats)

        assert result.strategy == JobStrategy.DIRECT_PROCESS
        assert ledger.pending()[0].name.startswith("extract_cam_ffmpeg_direct_temp_")
        assert fake_assembler.manifests == [[artifact_name(0, 0), artifact_name(0, 50), artifact_name(0, 100)]]
        assert stats.files_processed == 1

    def test_direct_stream_writes_video(self, make_video, tmp_path: Path, output_dir: Path, fake_assembler):
        cam = tmp_path / "cam"
        a = make_video(cam / "a.mp4", num_frames=20)
        b = make_video(cam / "b.mp4", num_frames=10)
        runner, ledger = _runner(output_dir, frame_interval=10, video_creation_mode="direct")
        stats = ProcessingStats()

        result = runner.run(_job(cam, b, a), stats)

        assert result.strategy == JobStrategy.DIRECT_STREAM
        assert result.frames_written == 3
        assert result.output_video.path.stat().st_size > 0
        assert ledger.pending() == []
        assert fake_assembler.manifests == []
        assert stats.files_processed == 2
