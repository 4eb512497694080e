"""
Command-line interface: parse a schedule PDF and export it to file.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .document_text import process_pdf
from .errors import ScheduleError
from .export import DEFAULT_TZ, export
from .schedule_text import ParsedSchedule, parse_schedule


def _load_schedule(args) -> ParsedSchedule:
    if args.text_file:
        p = Path(args.text_file)
        if not p.exists():
            raise ScheduleError(f"--text-file not found: {p}", stage="input")
        return parse_schedule(p.read_text(encoding="utf-8"), lenient=args.lenient_region)
    return process_pdf(args.pdf_path, lenient=args.lenient_region)


def _print_courses(schedule: ParsedSchedule) -> None:
    print("Code       | Section | Units | Course Title")
    print("-" * 60)
    for c in schedule.courses:
        print(f"{c.code:<10} | {c.section:<7} | {c.units.strip():<5} | {c.name[:40]}")
        for m in c.meetings:
            print(f"{'':<10}   {m.day:<7}   {m.time_range}  {m.room}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Export a printed class-schedule PDF to JSON / CSV / ICS.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "pdf_path",
        nargs="?",
        metavar="PDF_PATH",
        help="Schedule PDF; only page 1 is read.",
    )
    parser.add_argument(
        "--text-file",
        metavar="PATH",
        help="Use already-extracted page text instead of a PDF.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default="schedule",
        help="Output path (without extension). Default: schedule",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "csv", "ics"],
        default="json",
        help="Export format. Default: json",
    )
    parser.add_argument(
        "--term-start",
        metavar="YYYY-MM-DD",
        help="(ics) First day of classes, e.g. 2026-01-05.",
    )
    parser.add_argument(
        "--term-end",
        metavar="YYYY-MM-DD",
        help="(ics) Last day of classes, e.g. 2026-05-09.",
    )
    parser.add_argument(
        "--timezone",
        default=DEFAULT_TZ,
        help=f"(ics) Timezone for class times. Default: {DEFAULT_TZ}",
    )
    parser.add_argument(
        "--lenient-region",
        action="store_true",
        help="Do not fail when the UNITS header is missing; read from the start of the page instead.",
    )
    parser.add_argument(
        "--list-courses",
        action="store_true",
        help="Print the parsed courses then exit.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output.")
    args = parser.parse_args(argv)
    if bool(args.pdf_path) == bool(args.text_file):
        parser.error("give either PDF_PATH or --text-file")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        schedule = _load_schedule(args)
    except ScheduleError as e:
        print(f"Error ({e.stage}): {e}", file=sys.stderr)
        return 1

    if not schedule.courses:
        print("Warning: no courses found in the schedule.", file=sys.stderr)

    if args.list_courses:
        _print_courses(schedule)
        return 0

    ics_options = {}
    if args.format == "ics":
        ics_options = {
            "term_start": args.term_start,
            "term_end": args.term_end,
            "tz_name": args.timezone,
        }

    ext = "." + args.format
    out_path = Path(args.output).with_suffix(ext) if Path(args.output).suffix else Path(args.output + ext)
    try:
        export(schedule, out_path, args.format, **ics_options)
    except ValueError as e:
        print(f"Error exporting schedule: {e}", file=sys.stderr)
        return 1
    print(f"Exported {len(schedule.courses)} course(s) to {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
