"""
Reduce the DLU "DrawingClassStudentSchedules_Mau2" page to plain text.

Page structure:
- A styled <div> holding the header, e.g.
    "Thời khóa biểu Tuần 5 (từ 30/09/2024 đến 06/10/2024) của lớp: CTK45A"
- One <table>: first row is the column header (Thứ / Sáng / Chiều / Tối),
  then one row per day with a <th> day label and three <td> cells
  (morning, afternoon, evening). An empty cell means no class.

The rendered text is what ``schedule_text.parse_schedule`` reads.
"""
from __future__ import annotations

import unicodedata
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from bs4 import BeautifulSoup  # type: ignore[import]

from .models import ParseReport, Schedule
from .schedule_text import NO_CLASS_MARKER, parse_schedule

SLOT_NAMES = ("Sáng", "Chiều", "Tối")


def _squash(text: str) -> str:
    return " ".join(text.split())


# ──────────────────────────────────────────────────────────────────
#  Rendering
# ──────────────────────────────────────────────────────────────────

def render_timetable_text(
    header: str, rows: Iterable[Tuple[str, Sequence[str]]]
) -> str:
    """
    Render (day label, [morning, afternoon, evening] cell texts) rows.

    Cells past the third are ignored; an empty cell is written as the
    no-class marker.
    """
    out: List[str] = [header.strip(), ""]
    for day, cells in rows:
        day = _squash(day)
        if not day:
            continue
        out.append(f"{day}:")
        for slot, cell in zip(SLOT_NAMES, cells):
            content = _squash(cell)
            out.append(f"  {slot}: {content or NO_CLASS_MARKER}")
        out.append("")
    return unicodedata.normalize("NFC", "\n".join(out) + "\n")


# ──────────────────────────────────────────────────────────────────
#  Extraction
# ──────────────────────────────────────────────────────────────────

def _extract_header(soup: BeautifulSoup) -> str:
    node = soup.select_one("div > div[style]")
    return _squash(node.get_text()) if node else ""


def _extract_rows(soup: BeautifulSoup) -> List[Tuple[str, List[str]]]:
    rows: List[Tuple[str, List[str]]] = []
    for i, tr in enumerate(soup.select("table tr")):
        if i == 0:
            continue  # column header row
        th = tr.find("th")
        day = _squash(th.get_text()) if th else ""
        if not day:
            continue
        cells = [_squash(td.get_text()) for td in tr.find_all("td")]
        rows.append((day, cells))
    return rows


def html_to_text(html: str) -> str:
    """Flatten the portal page into the timetable text format."""
    soup = BeautifulSoup(html, "html.parser")
    if soup.find("table") is None:
        raise ValueError("No timetable table found in the page.")
    return render_timetable_text(_extract_header(soup), _extract_rows(soup))


# ──────────────────────────────────────────────────────────────────
#  Public API
# ──────────────────────────────────────────────────────────────────

def parse_schedule_html(
    html_path: str | Path | None = None,
    html_content: str | None = None,
    report: ParseReport | None = None,
) -> Schedule:
    """
    Parse a DLU timetable page (saved file or raw HTML string).

    :param html_path: Path to the saved HTML file.
    :param html_content: Raw HTML string (alternative to html_path).
    :param report: Optional ParseReport to collect dropped lines/entries.
    """
    if html_content is not None:
        html = html_content
    elif html_path is not None:
        html = Path(html_path).read_text(encoding="utf-8", errors="ignore")
    else:
        raise ValueError("Provide either html_path or html_content.")

    return parse_schedule(html_to_text(html), report)
