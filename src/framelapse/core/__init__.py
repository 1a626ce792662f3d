"""framelapse core: contracts, config, errors, cleanup ledger, base step.

The job runner and pipeline coordinator live in ``framelapse.core.job_runner``
and ``framelapse.core.pipeline_runner``; they import the steps, which import
this package.
"""

from .step_base import BaseStep
from .contracts import (
    ConcurrencyMode,
    ExtractionBackend,
    ExtractionJob,
    FrameArtifact,
    HardwareAccelConfig,
    JobResult,
    JobStrategy,
    OutputMode,
    OutputVideo,
    ProcessingStats,
    SamplingPlan,
)
from .config import VideoExtractionConfig, load_extraction_config, generate_default_config
from .ledger import CleanupLedger
from .logging import setup_logging

__all__ = [
    "BaseStep",
    "ConcurrencyMode",
    "ExtractionBackend",
    "ExtractionJob",
    "FrameArtifact",
    "HardwareAccelConfig",
    "JobResult",
    "JobStrategy",
    "OutputMode",
    "OutputVideo",
    "ProcessingStats",
    "SamplingPlan",
    "VideoExtractionConfig",
    "load_extraction_config",
    "generate_default_config",
    "CleanupLedger",
    "setup_logging",
]
