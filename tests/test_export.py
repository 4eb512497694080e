import csv
import json

import pytest

from schedify_export.export import (
    export,
    export_csv,
    export_ics,
    export_json,
    parse_day_codes,
    parse_time_range,
)
from schedify_export.schedule_text import CourseRecord, Meeting, ParsedSchedule


def _schedule() -> ParsedSchedule:
    return ParsedSchedule(courses=[
        CourseRecord(
            code="CS101",
            name="INTRO TO COMPUTING",
            section="A",
            units="3.0",
            meetings=[
                Meeting(day="MWF", time_range="9:00-10:00AM", room="Room 301"),
                Meeting(day="TTH", time_range="1:00-2:00PM", room="VR LINK1"),
            ],
        ),
        CourseRecord(code="NSTP1", name="CIVIC WELFARE", section="Z", units="3.0"),
    ])


class TestParseDayCodes:
    def test_common_patterns(self):
        assert parse_day_codes("MWF") == ["MO", "WE", "FR"]
        assert parse_day_codes("TTH") == ["TU", "TH"]
        assert parse_day_codes("TH") == ["TH"]
        assert parse_day_codes("T") == ["TU"]
        assert parse_day_codes("S") == ["SA"]

    def test_suffix(self):
        assert parse_day_codes("Sa") == ["SA"]

    def test_unknown(self):
        assert parse_day_codes("X") == []
        assert parse_day_codes("") == []


class TestParseTimeRange:
    def test_shared_meridiem(self):
        assert parse_time_range("9:00-10:00AM") == ("09:00", "10:00")
        assert parse_time_range("1:00-2:30PM") == ("13:00", "14:30")

    def test_across_noon(self):
        assert parse_time_range("11:00-1:00PM") == ("11:00", "13:00")
        assert parse_time_range("12:00-1:00PM") == ("12:00", "13:00")

    def test_both_meridiems(self):
        assert parse_time_range("7:00AM - 12:00PM") == ("07:00", "12:00")

    def test_24h(self):
        assert parse_time_range("14:30-16:15") == ("14:30", "16:15")

    def test_no_match(self):
        assert parse_time_range("TBA") is None


class TestExportIcs:
    def test_weekly_events(self, tmp_path):
        out_path = tmp_path / "test.ics"
        export_ics(_schedule(), out_path, term_start="2026-01-05", term_end="2026-05-09")

        content = out_path.read_text(encoding="utf-8")
        assert "BEGIN:VCALENDAR" in content
        assert content.count("BEGIN:VEVENT") == 2
        assert "END:VCALENDAR" in content

        # 2026-01-05 is a Monday; TTH starts on Tuesday 2026-01-06
        assert "DTSTART;TZID=Asia/Manila:20260105T090000" in content
        assert "DTEND;TZID=Asia/Manila:20260105T100000" in content
        assert "DTSTART;TZID=Asia/Manila:20260106T130000" in content

        assert "FREQ=WEEKLY" in content
        assert "BYDAY=MO,WE,FR" in content
        assert "BYDAY=TU,TH" in content
        assert "UNTIL=20260509T235959Z" in content

        assert "SUMMARY:CS101-A" in content
        assert "LOCATION:VR LINK1" in content
        assert "@schedify-export" in content

    def test_timezone_option(self, tmp_path):
        out_path = tmp_path / "test.ics"
        export_ics(
            _schedule(), out_path,
            term_start="2026-01-05", term_end="2026-05-09", tz_name="Asia/Hong_Kong",
        )
        assert "DTSTART;TZID=Asia/Hong_Kong:20260105T090000" in out_path.read_text(encoding="utf-8")

    def test_unparseable_meeting_skipped(self, tmp_path):
        schedule = ParsedSchedule(courses=[
            CourseRecord("CS1", "X", "A", "3.0", [Meeting("MWF", "TBA", "Room 1")]),
        ])
        out_path = tmp_path / "test.ics"
        export_ics(schedule, out_path, term_start="2026-01-05", term_end="2026-05-09")
        assert "BEGIN:VEVENT" not in out_path.read_text(encoding="utf-8")

    def test_out_of_range_time_skipped(self, tmp_path):
        schedule = ParsedSchedule(courses=[
            CourseRecord("CS101", "X", "A", "3.0", [Meeting("MWF", "13:00-14:00PM", "Room 1")]),
            CourseRecord("MATH10", "Y", "B", "3.0", [Meeting("TTH", "1:00-2:00PM", "Room 2")]),
        ])
        out_path = tmp_path / "test.ics"
        export_ics(schedule, out_path, term_start="2026-01-05", term_end="2026-05-09")
        content = out_path.read_text(encoding="utf-8")
        assert content.count("BEGIN:VEVENT") == 1
        assert "SUMMARY:MATH10-B" in content
        assert "CS101-A" not in content

    def test_meeting_after_term_end_skipped(self, tmp_path):
        schedule = ParsedSchedule(courses=[
            CourseRecord("CS1", "X", "A", "3.0", [
                Meeting("F", "9:00-10:00AM", "Room 1"),
                Meeting("MW", "9:00-10:00AM", "Room 2"),
            ]),
        ])
        out_path = tmp_path / "test.ics"
        # Mon 2026-01-05 .. Tue 2026-01-06: no Friday in range
        export_ics(schedule, out_path, term_start="2026-01-05", term_end="2026-01-06")
        content = out_path.read_text(encoding="utf-8")
        assert content.count("BEGIN:VEVENT") == 1
        assert "LOCATION:Room 2" in content

    def test_unknown_timezone(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown timezone"):
            export_ics(
                _schedule(), tmp_path / "t.ics",
                term_start="2026-01-05", term_end="2026-05-09", tz_name="Mars/Olympus",
            )

    def test_requires_term_dates(self, tmp_path):
        with pytest.raises(ValueError, match="term start"):
            export_ics(_schedule(), tmp_path / "test.ics")

    def test_term_end_before_start(self, tmp_path):
        with pytest.raises(ValueError, match="before term start"):
            export_ics(_schedule(), tmp_path / "t.ics", term_start="2026-05-09", term_end="2026-01-05")


class TestExportCsvJson:
    def test_csv_one_row_per_meeting(self, tmp_path):
        out_path = tmp_path / "test.csv"
        export_csv(_schedule(), out_path)
        with open(out_path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 3
        assert rows[0]["CODE"] == "CS101"
        assert rows[1]["ROOM"] == "VR LINK1"
        assert rows[2]["CODE"] == "NSTP1"
        assert rows[2]["DAY"] == ""

    def test_csv_empty(self, tmp_path):
        out_path = tmp_path / "test.csv"
        export_csv(ParsedSchedule(), out_path)
        assert out_path.read_text(encoding="utf-8") == ""

    def test_json(self, tmp_path):
        out_path = tmp_path / "test.json"
        export_json(_schedule(), out_path)
        data = json.loads(out_path.read_text(encoding="utf-8"))
        assert data == _schedule().to_dict()
        assert data["courses"][0]["schedules"][1] == {
            "day": "TTH", "schedule": "1:00-2:00PM", "room": "VR LINK1",
        }

    def test_dispatch(self, tmp_path):
        export(_schedule(), tmp_path / "s.json", "JSON")
        assert (tmp_path / "s.json").exists()
        with pytest.raises(ValueError, match="Unsupported format"):
            export(_schedule(), tmp_path / "s.xml", "xml")
