"""
Export a parsed schedule to JSON, CSV, and ICS.
"""
from __future__ import annotations

import csv
import hashlib
import json
import logging
import re
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import List

import icalendar
import pytz

from .schedule_text import CourseRecord, Meeting, ParsedSchedule

logger = logging.getLogger(__name__)

DEFAULT_TZ = "Asia/Manila"

CSV_FIELDS = ["CODE", "NAME", "SECTION", "UNITS", "DAY", "TIME_RANGE", "ROOM"]

_WEEKDAY_INDEX = {"MO": 0, "TU": 1, "WE": 2, "TH": 3, "FR": 4, "SA": 5, "SU": 6}


def parse_day_codes(day: str) -> List[str]:
    """
    Expand a day token like 'MWF' or 'TTH' into iCalendar weekdays.

    'TH' is Thursday, a lone 'T' is Tuesday, 'S' is Saturday. A lowercase
    'a' suffix ('Sa') is ignored.
    """
    days: List[str] = []
    i = 0
    token = day.strip()
    while i < len(token):
        ch = token[i]
        if ch == "T" and token[i + 1:i + 2] == "H":
            code = "TH"
            i += 2
        else:
            code = {"M": "MO", "T": "TU", "W": "WE", "F": "FR", "S": "SA"}.get(ch)
            i += 1
        if code is None:
            return []
        if token[i:i + 1] == "a":
            i += 1
        if code not in days:
            days.append(code)
    return days


def parse_time_range(text: str) -> tuple[str, str] | None:
    """
    Parse '9:00-10:00AM' or '1:00PM - 2:30PM' into 24h ('HH:MM', 'HH:MM').

    A start time without AM/PM takes the end time's; if that would put it
    after the end (11:00-1:00PM), the start is AM.
    """
    m = re.search(
        r"(\d{1,2}):(\d{2})\s*(AM|PM|am|pm)?\s*[-–]\s*"
        r"(\d{1,2}):(\d{2})\s*(AM|PM|am|pm)?",
        text,
    )
    if not m:
        return None
    h1, m1, ap1, h2, m2, ap2 = m.groups()

    def to_24(h: str, mm: str, ap: str | None) -> str:
        hour = int(h)
        if ap:
            ap_u = ap.upper()
            if ap_u == "AM" and hour == 12:
                hour = 0
            elif ap_u == "PM" and hour != 12:
                hour += 12
        return f"{hour:02d}:{int(mm):02d}"

    end = to_24(h2, m2, ap2)
    start = to_24(h1, m1, ap1 or ap2)
    if not ap1 and ap2 and start > end:
        start = to_24(h1, m1, "AM")
    return start, end


def _first_date_for_weekday(start: date, weekday: str) -> date:
    offset = (_WEEKDAY_INDEX[weekday] - start.weekday()) % 7
    return start + timedelta(days=offset)


def _meeting_event(
    course: CourseRecord,
    meeting: Meeting,
    term_start: date,
    term_end: date,
    tz,
) -> icalendar.Event | None:
    weekdays = parse_day_codes(meeting.day)
    times = parse_time_range(meeting.time_range)
    if not weekdays or not times:
        logger.debug(
            "Skipping %s meeting with day %r / time %r",
            course.key, meeting.day, meeting.time_range,
        )
        return None

    first_day = min(_first_date_for_weekday(term_start, d) for d in weekdays)
    if first_day > term_end:
        logger.debug("Skipping %s meeting %r: no class day before term end", course.key, meeting.day)
        return None
    try:
        start = datetime.strptime(f"{first_day.isoformat()} {times[0]}", "%Y-%m-%d %H:%M")
        end = datetime.strptime(f"{first_day.isoformat()} {times[1]}", "%Y-%m-%d %H:%M")
    except ValueError:
        logger.debug("Skipping %s meeting with bad time %r", course.key, meeting.time_range)
        return None

    summary = course.key
    event = icalendar.Event()

    uid_string = f"{summary}-{meeting.day}-{start.isoformat()}-{meeting.room}"
    uid_hash = hashlib.md5(uid_string.encode("utf-8")).hexdigest()
    event.add("uid", f"{uid_hash}@schedify-export")

    event.add("summary", summary)
    event.add("description", f"{course.name}\nUnits: {course.units.strip()}")
    event.add("location", meeting.room)
    event.add("dtstart", tz.localize(start))
    event.add("dtend", tz.localize(end))
    event.add("dtstamp", datetime.now(timezone.utc))

    until_dt = datetime.combine(term_end, datetime.min.time()).replace(
        hour=23, minute=59, second=59, tzinfo=timezone.utc
    )
    event.add("rrule", {"freq": "weekly", "byday": weekdays, "until": until_dt})
    return event


def export_ics(
    schedule: ParsedSchedule,
    out_path: str | Path,
    term_start: str | None = None,
    term_end: str | None = None,
    tz_name: str = DEFAULT_TZ,
) -> None:
    """Export to iCalendar (.ics): one weekly recurring event per meeting."""
    if not term_start or not term_end:
        raise ValueError("ICS export needs term start and end dates (YYYY-MM-DD).")
    start_day = date.fromisoformat(term_start)
    end_day = date.fromisoformat(term_end)
    if end_day < start_day:
        raise ValueError(f"Term end {term_end} is before term start {term_start}.")
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(f"Unknown timezone: {tz_name}") from e

    cal = icalendar.Calendar()
    cal.add("prodid", "-//Schedify Export//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", "Class Schedule")
    cal.add("x-wr-timezone", tz_name)

    for course in schedule.courses:
        for meeting in course.meetings:
            event = _meeting_event(course, meeting, start_day, end_day, tz)
            if event is not None:
                cal.add_component(event)

    Path(out_path).write_text(cal.to_ical().decode("utf-8"), encoding="utf-8")


def export_csv(schedule: ParsedSchedule, out_path: str | Path) -> None:
    """Export to CSV, one row per meeting."""
    if not schedule.courses:
        Path(out_path).write_text("", encoding="utf-8")
        return
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        w.writeheader()
        for course in schedule.courses:
            base = {
                "CODE": course.code,
                "NAME": course.name,
                "SECTION": course.section,
                "UNITS": course.units,
            }
            if not course.meetings:
                w.writerow({**base, "DAY": "", "TIME_RANGE": "", "ROOM": ""})
            for meeting in course.meetings:
                w.writerow({
                    **base,
                    "DAY": meeting.day,
                    "TIME_RANGE": meeting.time_range,
                    "ROOM": meeting.room,
                })


def export_json(schedule: ParsedSchedule, out_path: str | Path) -> None:
    """Export to JSON."""
    Path(out_path).write_text(
        json.dumps(schedule.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )


def export(schedule: ParsedSchedule, out_path: str | Path, fmt: str, **ics_options) -> None:
    """Export to the given format: json, csv, or ics."""
    fmt = fmt.lower()
    if fmt == "ics":
        export_ics(schedule, out_path, **ics_options)
    elif fmt == "csv":
        export_csv(schedule, out_path)
    elif fmt == "json":
        export_json(schedule, out_path)
    else:
        raise ValueError(f"Unsupported format: {fmt}. Use json, csv, or ics.")
