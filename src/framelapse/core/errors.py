"""Exception hierarchy for the extraction pipeline.

Per-frame problems never raise; they are counted by the extractor.
Per-video errors are absorbed by the job runner, per-job errors by the
pipeline coordinator.
"""

from __future__ import annotations


class ProcessError(Exception):
    """Base class for every pipeline failure."""


class WorkspaceError(ProcessError):
    """A directory or file the pipeline needs could not be created."""


class ConfigurationError(ProcessError):
    """Configuration is unusable for the affected job (e.g. interval 0)."""


class StepInputError(ProcessError):
    """A step rejected its inputs before running."""


class FileValidationError(ProcessError):
    """A single input file failed a pre-extraction check."""


class ExtractionError(ProcessError):
    """Frames could not be pulled from one video."""


class ExternalProcessError(ExtractionError):
    """The external transcoder exited non-zero, timed out, or is missing."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class AssemblyError(ProcessError):
    """Frame artifacts could not be turned into an output video."""


class NoVideosFoundError(ProcessError):
    """No input location resolved to a single video."""
