"""
Parse the flattened text of a printed class-schedule PDF (page 1) into
structured course records.

The extracted page text is one run-on line. Layout of the course region:

    ... CODE DESCRIPTION SECTION SCHEDULE UNITS
    CS101 INTRO TO COMPUTING A MWF 9:00-10:00AM ROOM 301 3.0
    MATH10 ALGEBRA B TTH 1:00-2:30PM VR LINK1 3.0
    ... TOTAL UNITS 6.0

Every course row ends with a units value like "3.0", which is the only
reliable record boundary left after flattening.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .errors import RegionNotFound

logger = logging.getLogger(__name__)

START_MARKER = "UNITS"
END_MARKER = "TOTAL UNITS"

# Legacy slicing treated a missing start marker as index -1.
_MISSING_START_OFFSET = -1 + len(START_MARKER)


# ──────────────────────────────────────────────────────────────────
#  Data model
# ──────────────────────────────────────────────────────────────────

@dataclass
class Meeting:
    day: str
    time_range: str
    room: str

    def to_dict(self) -> Dict[str, str]:
        return {"day": self.day, "schedule": self.time_range, "room": self.room}


@dataclass
class CourseRecord:
    code: str
    name: str
    section: str
    units: str
    meetings: List[Meeting] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.code}-{self.section}"

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "name": self.name,
            "section": self.section,
            "units": self.units,
            "schedules": [m.to_dict() for m in self.meetings],
        }


@dataclass
class ParsedSchedule:
    courses: List[CourseRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.courses)

    def to_dict(self) -> Dict:
        return {"courses": [c.to_dict() for c in self.courses]}


class CourseMatch(NamedTuple):
    """One raw course hit inside a segment, fields untrimmed."""

    code: str
    name: str
    section: str
    schedule_block: str
    units: str


# ──────────────────────────────────────────────────────────────────
#  Patterns
# ──────────────────────────────────────────────────────────────────

_WHITESPACE = re.compile(r"\s+")
_UNITS_VALUE = re.compile(r"[0-9]+\.0")

_CODE = re.compile(r"[A-Z]+[0-9]*[A-Z]*")
_NAME_RUN = re.compile(r"[A-Z\s.'&]+")

# day letters, time range, room marker, room token
_MEETING_GROUP = r"[MTWTHFS]+a?\s+[0-9:APM\s-]+(?:ROOM|Room|VR)\s*[^\s]+\s*"

# Everything after the course name: section, schedule block, units.
_COURSE_TAIL = re.compile(
    r"\s+([A-Z0-9]+)\s+((?:" + _MEETING_GROUP + r")+)([0-9.]+)"
)

# A "VR" marker is kept as part of the room token (virtual room link).
_MEETING = re.compile(
    r"([MTWTHFS]+a?)\s+([0-9:APM\s-]+)\s+(?:(?:ROOM|Room)\s*(\S+)|(VR\s*\S+))"
)


# ──────────────────────────────────────────────────────────────────
#  Normalizer / region / segments
# ──────────────────────────────────────────────────────────────────

def normalize_text(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space."""
    logger.debug("Starting text normalization")
    return _WHITESPACE.sub(" ", text).strip()


def extract_region(text: str, lenient: bool = False) -> str:
    """
    Return the course region between the "UNITS" header and "TOTAL UNITS".

    A missing header raises RegionNotFound unless ``lenient`` is set, in
    which case the region starts at offset 4 like the old slicing did.
    A missing or misplaced "TOTAL UNITS" always raises.
    """
    end_idx = text.find(END_MARKER)
    if end_idx == -1:
        raise RegionNotFound(f"End marker {END_MARKER!r} not found in page text.")

    start_idx = text.find(START_MARKER)
    # The first "UNITS" may be the one inside "TOTAL UNITS" itself.
    if start_idx == -1 or start_idx > end_idx:
        if not lenient:
            raise RegionNotFound(
                f"Start marker {START_MARKER!r} not found before {END_MARKER!r}."
            )
        logger.debug("Start marker missing; using legacy offset %d", _MISSING_START_OFFSET)
        start = _MISSING_START_OFFSET
    else:
        start = start_idx + len(START_MARKER)

    if end_idx < start:
        raise RegionNotFound(
            f"End marker {END_MARKER!r} appears before the course region starts."
        )
    return text[start:end_idx].strip()


def split_segments(region: str) -> List[str]:
    """
    Cut the region after every units value ("3.0", "15.0").

    Heuristic: a segment usually holds one course row but may hold more,
    so callers must scan each segment for every course match.
    """
    segments: List[str] = []
    previous = 0
    for m in _UNITS_VALUE.finditer(region):
        piece = region[previous:m.end()].strip()
        if piece:
            segments.append(piece)
        previous = m.end()

    rest = region[previous:].strip()
    if rest:
        segments.append(rest)
    return segments


# ──────────────────────────────────────────────────────────────────
#  Course / meeting extraction
# ──────────────────────────────────────────────────────────────────

def _name_splits(
    segment: str, ws_start: int, ws_end: int
) -> Iterator[Tuple[int, int]]:
    """
    Yield (name_start, name_end) candidates, greediest first.

    The name may begin anywhere inside the whitespace run after the code
    (latest first) and extends over the longest run of name characters,
    giving back one character at a time.
    """
    for name_start in range(ws_end, ws_start, -1):
        run = _NAME_RUN.match(segment, name_start)
        if not run:
            continue
        for name_end in range(run.end(), name_start, -1):
            yield name_start, name_end


def _match_course_at(segment: str, start: int) -> Optional[Tuple[CourseMatch, int]]:
    code = _CODE.match(segment, start)
    if not code:
        return None
    ws = _WHITESPACE.match(segment, code.end())
    if not ws:
        return None

    for name_start, name_end in _name_splits(segment, ws.start(), ws.end()):
        tail = _COURSE_TAIL.match(segment, name_end)
        if tail:
            match = CourseMatch(
                code=code.group(),
                name=segment[name_start:name_end],
                section=tail.group(1),
                schedule_block=tail.group(2),
                units=tail.group(3),
            )
            return match, tail.end()
    return None


def iter_course_matches(segment: str) -> Iterator[CourseMatch]:
    """Yield every non-overlapping course match in ``segment``, left to right."""
    cursor = 0
    while cursor < len(segment):
        found = _match_course_at(segment, cursor)
        if found is None:
            cursor += 1
            continue
        match, cursor = found
        yield match


def _format_room(token: str) -> str:
    token = token.strip()
    if "VR" in token:
        return token
    return f"Room {token}"


def extract_meetings(schedule_block: str) -> List[Meeting]:
    """Split a schedule block into (day, time range, room) meetings."""
    meetings: List[Meeting] = []
    for m in _MEETING.finditer(schedule_block):
        day, time_range, room, virtual_room = m.groups()
        meetings.append(Meeting(
            day=day.strip(),
            time_range=time_range.strip(),
            room=_format_room(room if room is not None else virtual_room),
        ))
    return meetings


# ──────────────────────────────────────────────────────────────────
#  Merge
# ──────────────────────────────────────────────────────────────────

def merge_courses(matches: Iterable[CourseMatch]) -> List[CourseRecord]:
    """
    Build one CourseRecord per (code, section), in first-seen order.

    Later sightings only contribute their meetings; the first sighting's
    name and units win.
    """
    by_key: Dict[str, CourseRecord] = {}
    for raw in matches:
        meetings = extract_meetings(raw.schedule_block)
        key = f"{raw.code.strip()}-{raw.section.strip()}"

        existing = by_key.get(key)
        if existing is not None:
            existing.meetings.extend(meetings)
            continue

        by_key[key] = CourseRecord(
            code=raw.code.strip(),
            name=raw.name.strip(),
            section=raw.section.strip(),
            units=raw.units,
            meetings=meetings,
        )
    return list(by_key.values())


# ──────────────────────────────────────────────────────────────────
#  Public API
# ──────────────────────────────────────────────────────────────────

def parse_schedule(page_text: str, lenient: bool = False) -> ParsedSchedule:
    """
    Parse the first-page text of a schedule document.

    :param page_text: Page text, raw or already normalized.
    :param lenient: Fall back to the legacy offset when the "UNITS"
        header is missing instead of raising RegionNotFound.
    :returns: ParsedSchedule (possibly empty; an empty result is not an error).
    """
    text = normalize_text(page_text)
    logger.debug("Processing schedule")

    region = extract_region(text, lenient=lenient)
    segments = split_segments(region)
    logger.debug("Split course region into %d segment(s)", len(segments))

    matches = [m for segment in segments for m in iter_course_matches(segment)]
    courses = merge_courses(matches)
    logger.debug("Matched %d course row(s), %d distinct course(s)", len(matches), len(courses))

    if not courses:
        logger.warning("No course records found in schedule text")
    return ParsedSchedule(courses=courses)
