"""
Error types raised while turning a schedule document into course records.
"""
from __future__ import annotations


class ScheduleError(ValueError):
    """Base class; ``stage`` names the pipeline step that failed."""

    stage = "parse"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class InputRejected(ScheduleError):
    """The input file is not a readable PDF document."""

    stage = "input"


class ExtractionFailed(ScheduleError):
    """The PDF was accepted but its first-page text could not be read."""

    stage = "extract"


class RegionNotFound(ScheduleError):
    """The UNITS / TOTAL UNITS markers do not delimit a course region."""

    stage = "region"
