"""
Parse printed class-schedule PDFs into structured course records.
"""
from .errors import ExtractionFailed, InputRejected, RegionNotFound, ScheduleError
from .schedule_text import CourseRecord, Meeting, ParsedSchedule, parse_schedule

__version__ = "0.1.0"

__all__ = [
    "CourseRecord",
    "ExtractionFailed",
    "InputRejected",
    "Meeting",
    "ParsedSchedule",
    "RegionNotFound",
    "ScheduleError",
    "parse_schedule",
]
