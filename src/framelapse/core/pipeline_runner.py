"""Pipeline coordinator: fan directory jobs out, merge their stats, clean up once."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from framelapse.steps.s01_scan_videos.config import ScanVideosConfig
from framelapse.steps.s01_scan_videos.contracts import ScanVideosInput
from framelapse.steps.s01_scan_videos.step import ScanVideosStep, build_jobs
from .config import VideoExtractionConfig, load_extraction_config
from .contracts import ConcurrencyMode, ExtractionJob, JobResult, ProcessingStats
from .errors import NoVideosFoundError, ProcessError
from .job_runner import DirectoryJobRunner
from .ledger import CleanupLedger

logger = logging.getLogger(__name__)


class PipelineCoordinator:
    """Runs every job, sequentially or on a bounded thread pool.

    A failing job is recorded in the stats and never stops its siblings.
    Temp workspaces registered during the run are removed after all jobs
    have returned.
    """

    def __init__(self, config: VideoExtractionConfig, runner_factory=DirectoryJobRunner):
        self.config = config
        self.runner_factory = runner_factory
        self.job_results: list[JobResult] = []

    def worker_count(self) -> int:
        return self.config.num_threads or os.cpu_count() or 1

    def run_all(
        self,
        jobs: list[ExtractionJob],
        concurrency_mode: ConcurrencyMode | str | None = None,
        ledger: CleanupLedger | None = None,
    ) -> ProcessingStats:
        t0 = time.time()
        mode = ConcurrencyMode(concurrency_mode or self.config.processing_mode)
        ledger = ledger if ledger is not None else CleanupLedger()
        stats = ProcessingStats()
        lock = threading.Lock()
        self.job_results = []
        runner = self.runner_factory(self.config, ledger)

        try:
            if mode == ConcurrencyMode.SEQUENTIAL:
                logger.info(f"Running {len(jobs)} jobs in sequential mode.")
                for job in jobs:
                    self._run_job(runner, job, stats, lock)
            else:
                workers = self.worker_count()
                logger.info(f"Running {len(jobs)} jobs in parallel mode with {workers} workers.")
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="framelapse") as pool:
                    futures = {pool.submit(self._run_job, runner, job, stats, lock): job for job in jobs}
                    for future in as_completed(futures):
                        future.result()
        finally:
            ledger.cleanup()
            stats.elapsed_time = time.time() - t0

        logger.info(f"Total execution time: {stats.elapsed_time:.2f}s")
        return stats

    def _run_job(
        self,
        runner: DirectoryJobRunner,
        job: ExtractionJob,
        stats: ProcessingStats,
        lock: threading.Lock,
    ) -> None:
        job_stats = ProcessingStats()
        result = None
        try:
            result = runner.run(job, job_stats)
        except ProcessError as e:
            logger.error(f"Error processing directory {job.directory}: {e}")
            job_stats.add_failed_file(f"Directory {job.directory}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error processing directory {job.directory}")
            job_stats.add_failed_file(f"Directory {job.directory}: {type(e).__name__}: {e}")
        finally:
            with lock:
                stats.merge(job_stats)
                if result is not None:
                    self.job_results.append(result)


def scan_jobs(config: VideoExtractionConfig) -> list[ExtractionJob]:
    """Resolve the configured input locations into directory jobs."""
    step = ScanVideosStep(config=ScanVideosConfig(extensions=config.video_extensions))
    scanned = step.execute(ScanVideosInput(input_locations=[Path(p) for p in config.input_directories]))
    return build_jobs(scanned.videos_by_dir)


def run_video_extraction(config: VideoExtractionConfig) -> ProcessingStats:
    """Scan, then run every job. Raises only when nothing could run at all."""
    jobs = scan_jobs(config)
    if not jobs:
        raise NoVideosFoundError(
            f"No videos found in any input location: {', '.join(config.input_directories)}"
        )
    return PipelineCoordinator(config).run_all(jobs, config.processing_mode)


def run_video_extraction_from_file(config_path: Path) -> ProcessingStats:
    """Execute the full pipeline from a config file."""
    return run_video_extraction(load_extraction_config(config_path))
