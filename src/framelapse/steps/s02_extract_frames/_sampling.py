"""Candidate frame selection shared by both extraction backends."""

from __future__ import annotations

from framelapse.core.errors import ConfigurationError


def validate_interval(interval: int) -> None:
    if interval < 1:
        raise ConfigurationError(f"frame_interval must be >= 1, got {interval}")


def candidate_frame_numbers(total_frames: int, interval: int) -> range:
    """``{0, n, 2n, ...}`` below ``total_frames``."""
    validate_interval(interval)
    return range(0, max(total_frames, 0), interval)
