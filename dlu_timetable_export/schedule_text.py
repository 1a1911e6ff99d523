"""
Parse the flattened DLU timetable text into a Schedule.

The text is what ``schedule_html.html_to_text`` renders from the portal page:

    Thời khóa biểu Tuần 5 (...) của lớp: CTK45A

    Thứ 2:
      Sáng: Toán (24CTK)- Nhóm: 1- Lớp: CTK45A- Tiết: 1-3- Phòng: A2.101- GV: Nguyễn Văn A- Đã học: 9/45 tiết ...
      Chiều: Nghỉ
      Tối: Nghỉ

Subject entries inside a slot are packed one after another with no
separator other than the trailing " tiết " of each entry, so a slot is
split on that token before each piece is matched field by field.

Parsing is best-effort and never raises: anything that does not fit is
dropped. Pass a ``ParseReport`` to find out what was dropped.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from typing import Iterable, List, Optional, Tuple

from .models import DaySchedule, ParseReport, Schedule, SkippedEntry, Subject

logger = logging.getLogger(__name__)

NO_CLASS_MARKER = "Nghỉ"
SUBJECT_DELIMITER = " tiết "
DAY_PREFIXES = ("Thứ", "Chủ nhật")

# Slot label -> DaySchedule attribute
SLOT_LABELS = (
    ("Sáng:", "morning"),
    ("Chiều:", "afternoon"),
    ("Tối:", "evening"),
)

_HEADER_RE = re.compile(r"Tuần\s+(\d+).*lớp:\s*([A-Z0-9]+)")


# ──────────────────────────────────────────────────────────────────
#  Subject fields
# ──────────────────────────────────────────────────────────────────

# Each entry reads
#   <name>(<code>)- Nhóm: 1- Lớp: CTK45A - nhom 2- Tiết: 1-3- Phòng: A2.101- GV: <teacher>- Đã học: 9/45
# where the course code and the " - nhom N" suffixes are optional.
SUBJECT_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("name", r"(?P<name>.*?)"),
    ("code", r"(?:\((?P<code>\d{2}[A-Z0-9]+)\))?"),
    ("group", r"- Nhóm: (?P<group>\d+)"),
    ("class_code", r"- Lớp: (?P<class_code>[A-Z0-9]+)"),
    ("subgroup", r"(?: - nhom \d+)*"),
    ("period", r"- Tiết: (?P<period>[0-9\-]+)"),
    ("room", r"- Phòng: (?P<room>[A-Za-z0-9.]+)"),
    ("teacher", r"- GV: (?P<teacher>[^\-]+)"),
    ("lessons", r"- Đã học: (?P<lessons>\d+/\d+)"),
)

# Anchored prefixes of the field sequence; the last one is the whole entry.
_FIELD_PREFIX_RES = [
    re.compile("^" + "".join(p for _, p in SUBJECT_FIELDS[: i + 1]))
    for i in range(len(SUBJECT_FIELDS))
]
SUBJECT_RE = _FIELD_PREFIX_RES[-1]


def _failing_field(line: str) -> str:
    """Name of the first field that stops ``line`` from matching."""
    for (name, _), prefix_re in zip(SUBJECT_FIELDS, _FIELD_PREFIX_RES):
        if not prefix_re.match(line):
            return name
    return ""


# ──────────────────────────────────────────────────────────────────
#  Header
# ──────────────────────────────────────────────────────────────────

def parse_header(text: str) -> tuple[str, str]:
    """
    Find the week number and class code, e.g. 'Tuần 5 ... lớp: CTK45A' → ('5', 'CTK45A').

    Either part is '' when the header is missing.
    """
    m = _HEADER_RE.search(text)
    if not m:
        return "", ""
    return m.group(1), m.group(2)


# ──────────────────────────────────────────────────────────────────
#  Subjects
# ──────────────────────────────────────────────────────────────────

def split_subjects(text: str) -> List[str]:
    """Break a slot's packed text into one fragment per subject entry."""
    text = text.replace(SUBJECT_DELIMITER, SUBJECT_DELIMITER.rstrip() + "\n")
    return [line.strip() for line in text.split("\n") if line.strip()]


def _parse_subject(line: str) -> Optional[Subject]:
    m = SUBJECT_RE.match(line)
    if not m:
        return None
    return Subject(
        name=m.group("name").strip(),
        group=m.group("group").strip(),
        class_code=m.group("class_code").strip(),
        period=m.group("period").strip(),
        room=m.group("room").strip(),
        teacher=m.group("teacher").strip(),
        lessons=m.group("lessons").strip(),
    )


def parse_subjects(text: str, report: ParseReport | None = None) -> List[Subject]:
    """
    Parse one slot's text into subjects, in source order.

    A slot containing the no-class marker is empty whatever else it holds.
    Fragments that do not match every field are dropped.
    """
    if NO_CLASS_MARKER in text:
        return []

    subjects: List[Subject] = []
    for line in split_subjects(text):
        subject = _parse_subject(line)
        if subject is None:
            field_name = _failing_field(line)
            logger.debug("Skipping subject entry (no %s): %r", field_name, line)
            if report is not None:
                report.skipped_entries.append(SkippedEntry(text=line, field=field_name))
            continue
        subjects.append(subject)
    return subjects


# ──────────────────────────────────────────────────────────────────
#  Days
# ──────────────────────────────────────────────────────────────────

def parse_day(lines: Iterable[str], report: ParseReport | None = None) -> DaySchedule:
    """Route each 'Sáng:' / 'Chiều:' / 'Tối:' line of a day block to its slot."""
    day = DaySchedule()
    for line in lines:
        line = line.strip()
        for label, attr in SLOT_LABELS:
            if line.startswith(label):
                # A repeated slot label replaces the earlier one.
                setattr(day, attr, parse_subjects(line[len(label):], report))
                break
        else:
            if line:
                logger.debug("Ignoring line without slot label: %r", line)
                if report is not None:
                    report.ignored_lines.append(line)
    return day


def _is_day_header(line: str) -> bool:
    return line.startswith(DAY_PREFIXES)


def parse_schedule(text: str, report: ParseReport | None = None) -> Schedule:
    """
    Parse the whole flattened timetable.

    Lines before the first day header are not part of any day. A day header
    with no slot lines still yields an (empty) day. If a day label repeats,
    the later block replaces the earlier one.
    """
    # Labels are matched as composed (NFC) text.
    text = unicodedata.normalize("NFC", text)
    week, class_name = parse_header(text)
    days: dict[str, DaySchedule] = {}

    current_day: str | None = None
    day_lines: List[str] = []

    def close_day() -> None:
        if current_day is None:
            return
        if current_day in days:
            logger.debug("Day %r appears again; keeping the later block", current_day)
            if report is not None:
                report.duplicate_days.append(current_day)
        days[current_day] = parse_day(day_lines, report)

    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            continue
        if _is_day_header(line):
            close_day()
            current_day = line.removesuffix(":")
            day_lines = []
        elif current_day is None:
            if report is not None:
                report.preamble_lines.append(line)
        else:
            day_lines.append(line)
    close_day()

    if not days and report is not None and report.preamble_lines:
        logger.debug("No day header found in %d line(s)", len(report.preamble_lines))
        report.no_days = True

    logger.debug("Parsed %d day(s) for class %r, week %r", len(days), class_name, week)
    return Schedule(class_name=class_name, week=week, days=days)
