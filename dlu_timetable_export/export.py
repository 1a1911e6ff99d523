"""
Export a parsed timetable to JSON, CSV, and ICS.
"""
from __future__ import annotations

import csv
import hashlib
import json
import logging
import re
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List

import icalendar
import pytz

from .models import Schedule

logger = logging.getLogger(__name__)

# Vietnam timezone for calendar
TZ_VN = "Asia/Ho_Chi_Minh"

# Wall-clock window of each slot
SLOT_TIMES = {
    "sang": ("07:00", "11:30"),
    "chieu": ("13:00", "17:30"),
    "toi": ("18:00", "21:00"),
}

CSV_FIELDS = ["DAY", "SLOT", "NAME", "GROUP", "CLASS", "PERIOD", "ROOM", "TEACHER", "LESSONS"]

# Lower-cased day label prefix -> offset from Monday
_DAY_OFFSETS = {
    "thứ 2": 0, "thứ hai": 0,
    "thứ 3": 1, "thứ ba": 1,
    "thứ 4": 2, "thứ tư": 2,
    "thứ 5": 3, "thứ năm": 3,
    "thứ 6": 4, "thứ sáu": 4,
    "thứ 7": 5, "thứ bảy": 5,
    "chủ nhật": 6,
}

_LABEL_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


def _day_offset(label: str) -> int | None:
    t = label.strip().lower()
    for key, offset in _DAY_OFFSETS.items():
        if t.startswith(key):
            return offset
    return None


def _day_date(label: str, week_start: date | None) -> date | None:
    """Date of a day label: a dd/mm/yyyy inside the label, else week_start + weekday."""
    m = _LABEL_DATE_RE.search(label)
    if m:
        try:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        except ValueError:
            pass
    if week_start is None:
        return None
    offset = _day_offset(label)
    if offset is None:
        return None
    return week_start + timedelta(days=offset)


def _parse_time(day: date, time_str: str) -> datetime:
    return datetime.strptime(f"{day.isoformat()} {time_str}", "%Y-%m-%d %H:%M")


def schedule_rows(schedule: Schedule) -> List[Dict[str, str]]:
    """One flat row per subject, in day and slot order."""
    rows: List[Dict[str, str]] = []
    for label, day in schedule.days.items():
        for slot, subjects in day.slots().items():
            for s in subjects:
                rows.append({
                    "DAY": label,
                    "SLOT": slot,
                    "NAME": s.name,
                    "GROUP": s.group,
                    "CLASS": s.class_code,
                    "PERIOD": s.period,
                    "ROOM": s.room,
                    "TEACHER": s.teacher,
                    "LESSONS": s.lessons,
                })
    return rows


def export_ics(
    schedule: Schedule, out_path: str | Path, week_start: date | None = None
) -> None:
    """Export timetable to iCalendar (.ics) for Apple/Google calendar."""
    cal = icalendar.Calendar()
    cal.add("prodid", "-//DLU Timetable Export//VI")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", f"DLU {schedule.class_name}".strip())
    cal.add("x-wr-timezone", TZ_VN)

    vn_tz = pytz.timezone(TZ_VN)
    for index, row in enumerate(schedule_rows(schedule)):
        event_date = _day_date(row["DAY"], week_start)
        if event_date is None:
            logger.debug("No date for day %r; skipping %s", row["DAY"], row["NAME"])
            continue
        start_str, end_str = SLOT_TIMES[row["SLOT"]]
        start = _parse_time(event_date, start_str)
        end = _parse_time(event_date, end_str)

        event = icalendar.Event()

        uid_string = f"{row['CLASS']}-{row['NAME']}-{row['GROUP']}-{event_date}-{row['SLOT']}-{row['PERIOD']}-{index}"
        uid_hash = hashlib.md5(uid_string.encode("utf-8")).hexdigest()
        event.add("uid", f"{uid_hash}@dlu-timetable-export")

        event.add("summary", row["NAME"])
        event.add(
            "description",
            f"Nhóm: {row['GROUP']}\nLớp: {row['CLASS']}\nTiết: {row['PERIOD']}\n"
            f"GV: {row['TEACHER']}\nĐã học: {row['LESSONS']}",
        )
        event.add("location", row["ROOM"])
        event.add("dtstart", vn_tz.localize(start))
        event.add("dtend", vn_tz.localize(end))
        event.add("dtstamp", datetime.now(timezone.utc))

        cal.add_component(event)

    Path(out_path).write_text(cal.to_ical().decode("utf-8"), encoding="utf-8")


def export_csv(schedule: Schedule, out_path: str | Path) -> None:
    """Export timetable to CSV."""
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        w.writeheader()
        w.writerows(schedule_rows(schedule))


def export_json(schedule: Schedule, out_path: str | Path) -> None:
    """Export timetable to JSON."""
    Path(out_path).write_text(
        json.dumps(schedule.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )


def export(
    schedule: Schedule, out_path: str | Path, fmt: str, week_start: date | None = None
) -> None:
    """Export to the given format: json, csv, or ics."""
    fmt = fmt.lower()
    if fmt == "ics":
        export_ics(schedule, out_path, week_start)
    elif fmt == "csv":
        export_csv(schedule, out_path)
    elif fmt == "json":
        export_json(schedule, out_path)
    else:
        raise ValueError(f"Unsupported format: {fmt}. Use json, csv, or ics.")
