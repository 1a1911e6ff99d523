"""
Command-line interface: fetch DLU timetable and export to file.
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from . import __version__
from .export import export
from .models import ParseReport
from .schedule_fetch import fetch_schedule
from .schedule_html import parse_schedule_html
from .schedule_text import parse_schedule


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Export the DLU class timetable to JSON / CSV / ICS.\n"
            "- Fetch mode: download the public timetable page for a class and week.\n"
            "- Offline mode: parse a saved timetable page (--html) or its flattened text (--text)."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-o",
        "--output",
        default="dlu_timetable",
        help="Output path (without extension). Default: dlu_timetable",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "csv", "ics"],
        default="json",
        help="Export format. Default: json",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--fetch",
        action="store_true",
        help="Fetch the timetable from qlgd.dlu.edu.vn. Requires --year, --term, --week and --class-id.",
    )
    mode.add_argument(
        "--html",
        metavar="HTML_PATH",
        help="Parse a saved timetable page instead of fetching it.",
    )
    mode.add_argument(
        "--text",
        metavar="TEXT_PATH",
        help="Parse an already flattened timetable text file.",
    )

    # Fetch mode options
    parser.add_argument("--year", help="(Fetch mode) School year, e.g. 2024-2025.")
    parser.add_argument("--term", help="(Fetch mode) Term id, e.g. HK01.")
    parser.add_argument("--week", help="(Fetch mode) Week number, e.g. 5.")
    parser.add_argument("--class-id", help="(Fetch mode) Class id, e.g. CTK45A.")
    parser.add_argument(
        "--verify-tls",
        action="store_true",
        help="(Fetch mode) Verify the portal's TLS certificate (off by default).",
    )

    parser.add_argument(
        "--week-start",
        metavar="YYYY-MM-DD",
        type=date.fromisoformat,
        help="(ICS) Monday of the exported week, used when day labels carry no date.",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print what the parser skipped (unmatched entries, unlabelled lines, repeated days).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    report = ParseReport()

    if args.fetch:
        try:
            print("Fetching timetable page...")
            schedule = fetch_schedule(
                args.year,
                args.term,
                args.week,
                args.class_id,
                report=report,
                verify=args.verify_tls,
            )
        except Exception as e:
            print(f"Error fetching timetable: {e}", file=sys.stderr)
            return 1

    elif args.html:
        try:
            schedule = parse_schedule_html(html_path=args.html, report=report)
        except Exception as e:
            print(f"Error parsing timetable HTML: {e}", file=sys.stderr)
            return 1

    elif args.text:
        p = Path(args.text)
        if not p.exists():
            print(f"Error: --text file not found: {p}", file=sys.stderr)
            return 1
        try:
            text = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading timetable text: {e}", file=sys.stderr)
            return 1
        schedule = parse_schedule(text, report)

    else:
        print(
            "No mode specified. Use --fetch to download the timetable, "
            "or --html / --text for a saved file.",
            file=sys.stderr,
        )
        return 1

    if args.report or report:
        print(f"Parse report: {report.summary()}", file=sys.stderr)
        if args.report:
            for entry in report.skipped_entries:
                print(f"  skipped (no {entry.field}): {entry.text}", file=sys.stderr)
            for line in report.ignored_lines:
                print(f"  ignored: {line}", file=sys.stderr)
            for label in report.duplicate_days:
                print(f"  repeated day: {label}", file=sys.stderr)
            if report.no_days:
                for line in report.preamble_lines:
                    print(f"  before any day: {line}", file=sys.stderr)

    ext = {"ics": ".ics", "csv": ".csv", "json": ".json"}[args.format]
    out_path = Path(args.output).with_suffix(ext) if Path(args.output).suffix else Path(args.output + ext)
    export(schedule, out_path, args.format, week_start=args.week_start)
    print(f"Exported {schedule.subject_count()} subject(s) for class {schedule.class_name or '?'}, "
          f"week {schedule.week or '?'} to {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
