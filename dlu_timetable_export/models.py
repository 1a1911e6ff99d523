"""
Parsed timetable records and parse diagnostics.

``to_dict()`` on each record gives the JSON shape served by the portal
proxy (Vietnamese keys: ``ten_mon``, ``nhom``, ``sang`` ...).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class Subject:
    """One class occurrence inside a slot."""

    name: str
    group: str
    class_code: str
    period: str   # e.g. "3-5"
    room: str
    teacher: str
    lessons: str  # "done/total", e.g. "10/30"

    def to_dict(self) -> dict:
        return {
            "ten_mon": self.name,
            "nhom": self.group,
            "lop": self.class_code,
            "tiet": self.period,
            "phong": self.room,
            "gv": self.teacher,
            "da_hoc": self.lessons,
        }


@dataclass
class DaySchedule:
    morning: List[Subject] = field(default_factory=list)
    afternoon: List[Subject] = field(default_factory=list)
    evening: List[Subject] = field(default_factory=list)

    def slots(self) -> Dict[str, List[Subject]]:
        """Slots keyed by their wire name, in time-of-day order."""
        return {"sang": self.morning, "chieu": self.afternoon, "toi": self.evening}

    def to_dict(self) -> dict:
        return {
            key: [s.to_dict() for s in subjects]
            for key, subjects in self.slots().items()
        }


@dataclass
class Schedule:
    class_name: str = ""
    week: str = ""
    # A repeated day label overwrites the earlier entry (last one wins).
    days: Dict[str, DaySchedule] = field(default_factory=dict)

    def subject_count(self) -> int:
        return sum(
            len(subjects)
            for day in self.days.values()
            for subjects in day.slots().values()
        )

    def to_dict(self) -> dict:
        return {
            "class": self.class_name,
            "week": self.week,
            "days": {label: day.to_dict() for label, day in self.days.items()},
        }


# ──────────────────────────────────────────────────────────────────
#  Diagnostics
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SkippedEntry:
    text: str
    field: str  # first subject field whose pattern did not match


@dataclass
class ParseReport:
    """
    What a best-effort parse threw away.

    Parsing never fails; pass a report to see how much was dropped.
    """

    skipped_entries: List[SkippedEntry] = field(default_factory=list)
    ignored_lines: List[str] = field(default_factory=list)
    preamble_lines: List[str] = field(default_factory=list)
    duplicate_days: List[str] = field(default_factory=list)
    # Text was present but no day header was found; everything is preamble.
    no_days: bool = False

    def __bool__(self) -> bool:
        return bool(
            self.skipped_entries or self.ignored_lines or self.duplicate_days or self.no_days
        )

    def summary(self) -> str:
        text = (
            f"{len(self.skipped_entries)} subject entr"
            f"{'y' if len(self.skipped_entries) == 1 else 'ies'} skipped, "
            f"{len(self.ignored_lines)} unlabelled line(s) ignored, "
            f"{len(self.duplicate_days)} repeated day label(s) overwritten"
        )
        if self.no_days:
            text += f", no day header found in {len(self.preamble_lines)} line(s)"
        return text
