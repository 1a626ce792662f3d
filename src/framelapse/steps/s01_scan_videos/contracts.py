"""I/O contracts for Step 01: Scan input locations for videos."""

from pathlib import Path
from pydantic import BaseModel, Field


class ScanVideosInput(BaseModel):
    input_locations: list[Path] = Field(default_factory=list, description="Video files or directories")


class ScanVideosOutput(BaseModel):
    videos_by_dir: dict[str, list[Path]] = Field(
        default_factory=dict, description="Grouping directory -> videos, unsorted"
    )
    skipped_locations: list[Path] = Field(
        default_factory=list, description="Locations that were missing, unreadable or unsupported"
    )

    @property
    def video_count(self) -> int:
        return sum(len(v) for v in self.videos_by_dir.values())
