import pytest

from dlu_timetable_export import schedule_fetch
from dlu_timetable_export.schedule_fetch import (
    DEFAULT_SCHEDULE_URL,
    fetch_schedule,
    fetch_schedule_html,
)

PAGE = """<html><body>
<div><div style="text-align:center">Thời khóa biểu Tuần 5 của lớp: CTK45A</div></div>
<table>
<tr><th>Thứ</th><th>Sáng</th><th>Chiều</th><th>Tối</th></tr>
<tr><th>Thứ 2</th>
<td>Toán- Nhóm: 1- Lớp: CTK45A- Tiết: 1-3- Phòng: A101- GV: Nguyen Van A- Đã học: 3/45 tiết</td>
<td></td><td></td></tr>
</table></body></html>"""


class FakeResponse:
    def __init__(self, text, content_type="text/html"):
        self.text = text
        self.headers = {"Content-Type": content_type}
        self.encoding = "ISO-8859-1"

    def raise_for_status(self):
        pass


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    def fake_get(url, **kwargs):
        recorded.append((url, kwargs))
        return FakeResponse(PAGE)

    monkeypatch.setattr(schedule_fetch.requests, "get", fake_get)
    return recorded


def test_query_parameters(calls):
    html = fetch_schedule_html("2024-2025", "HK01", 5, "CTK45A")
    assert html == PAGE
    url, kwargs = calls[0]
    assert url == DEFAULT_SCHEDULE_URL
    assert kwargs["params"] == {
        "YearStudy": "2024-2025",
        "TermID": "HK01",
        "Week": "5",
        "ClassStudentID": "CTK45A",
    }
    assert kwargs["verify"] is False
    assert kwargs["timeout"] == schedule_fetch.DEFAULT_TIMEOUT


def test_verify_flag(calls):
    fetch_schedule_html("2024-2025", "HK01", "5", "CTK45A", verify=True)
    assert calls[0][1]["verify"] is True


@pytest.mark.parametrize(
    "args",
    [
        ("", "HK01", "5", "CTK45A"),
        ("2024-2025", None, "5", "CTK45A"),
        ("2024-2025", "HK01", None, "CTK45A"),
        ("2024-2025", "HK01", "5", "  "),
    ],
)
def test_missing_parameters(calls, args):
    with pytest.raises(ValueError, match="Missing query parameters"):
        fetch_schedule_html(*args)
    assert calls == []


def test_fetch_schedule(calls):
    schedule = fetch_schedule("2024-2025", "HK01", "5", "CTK45A")
    assert schedule.week == "5"
    assert schedule.class_name == "CTK45A"
    assert schedule.days["Thứ 2"].morning[0].lessons == "3/45"
