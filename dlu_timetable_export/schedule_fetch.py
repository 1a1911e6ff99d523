"""
Fetch the public DLU class timetable page.

The page needs no login: it is addressed by school year, term, week and
class id, e.g.
  ?YearStudy=2024-2025&TermID=HK01&Week=5&ClassStudentID=CTK45A
"""
from __future__ import annotations

import logging

import requests
import urllib3

from .models import ParseReport, Schedule
from .schedule_html import parse_schedule_html

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_URL = "https://qlgd.dlu.edu.vn/public/DrawingClassStudentSchedules_Mau2"
DEFAULT_TIMEOUT = 20
HEADERS = {"User-Agent": "Mozilla/5.0"}


def _build_params(year: str, term: str, week: str | int, class_id: str) -> dict[str, str]:
    params = {
        "YearStudy": str(year or "").strip(),
        "TermID": str(term or "").strip(),
        "Week": str(week if week is not None else "").strip(),
        "ClassStudentID": str(class_id or "").strip(),
    }
    missing = [k for k, v in params.items() if not v]
    if missing:
        raise ValueError(f"Missing query parameters: {', '.join(missing)}")
    return params


def fetch_schedule_html(
    year: str,
    term: str,
    week: str | int,
    class_id: str,
    url: str = DEFAULT_SCHEDULE_URL,
    verify: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """
    Download the timetable page and return its HTML.

    The portal's certificate chain does not validate, so TLS verification
    is off unless ``verify=True``.
    """
    params = _build_params(year, term, week, class_id)
    if not verify:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    logger.info("Fetching timetable %s %s", url, params)
    response = requests.get(url, params=params, headers=HEADERS, timeout=timeout, verify=verify)
    response.raise_for_status()
    # The portal does not always declare a charset; the page is UTF-8.
    if "charset" not in response.headers.get("Content-Type", "").lower():
        response.encoding = "utf-8"
    return response.text


def fetch_schedule(
    year: str,
    term: str,
    week: str | int,
    class_id: str,
    report: ParseReport | None = None,
    **kwargs,
) -> Schedule:
    """Fetch the page and parse it into a Schedule."""
    html = fetch_schedule_html(year, term, week, class_id, **kwargs)
    return parse_schedule_html(html_content=html, report=report)
