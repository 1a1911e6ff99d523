import json
import unicodedata

from dlu_timetable_export.cli import main

TEXT = """Thời khóa biểu Tuần 7 của lớp: CTK45A

Thứ 2:
  Sáng: Toán- Nhóm: 1- Lớp: CTK45A- Tiết: 1-3- Phòng: A101- GV: Nguyen Van A- Đã học: 3/45 tiết Lý- Nhóm: 1- Lớp: CTK45A- Tiết: 4-5- Phòng: A101- GV: Le Van C tiết
  Chiều: Nghỉ
  Tối: Nghỉ
"""


def test_text_to_json(tmp_path, capsys):
    src = tmp_path / "tkb.txt"
    src.write_text(TEXT, encoding="utf-8")
    out = tmp_path / "out"

    assert main(["--text", str(src), "-o", str(out)]) == 0

    data = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
    assert data["week"] == "7"
    assert [s["ten_mon"] for s in data["days"]["Thứ 2"]["sang"]] == ["Toán"]

    captured = capsys.readouterr()
    assert "Exported 1 subject(s)" in captured.out
    # The entry without a lessons counter is reported
    assert "1 subject entry skipped" in captured.err


def test_report_details(tmp_path, capsys):
    src = tmp_path / "tkb.txt"
    src.write_text(TEXT, encoding="utf-8")

    assert main(["--text", str(src), "-o", str(tmp_path / "out"), "-f", "csv", "--report"]) == 0
    assert (tmp_path / "out.csv").exists()
    assert "skipped (no lessons): Lý" in capsys.readouterr().err


def test_missing_text_file(tmp_path, capsys):
    assert main(["--text", str(tmp_path / "nope.txt")]) == 1
    assert "not found" in capsys.readouterr().err


def test_no_mode(capsys):
    assert main([]) == 1
    assert "No mode specified" in capsys.readouterr().err


def test_fetch_missing_parameters(capsys):
    assert main(["--fetch", "--year", "2024-2025"]) == 1
    assert "Missing query parameters" in capsys.readouterr().err


def test_decomposed_text_file(tmp_path, capsys):
    src = tmp_path / "nfd.txt"
    src.write_text(unicodedata.normalize("NFD", TEXT), encoding="utf-8")
    out = tmp_path / "out"

    assert main(["--text", str(src), "-o", str(out)]) == 0

    data = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
    assert data["class"] == "CTK45A"
    assert [s["ten_mon"] for s in data["days"]["Thứ 2"]["sang"]] == ["Toán"]
    assert "Exported 1 subject(s)" in capsys.readouterr().out


def test_text_without_days_is_reported(tmp_path, capsys):
    src = tmp_path / "nodays.txt"
    src.write_text("Thời khóa biểu Tuần 7 của lớp: CTK45A\nkhông có lịch\n", encoding="utf-8")

    assert main(["--text", str(src), "-o", str(tmp_path / "out"), "--report"]) == 0
    err = capsys.readouterr().err
    assert "no day header found in 2 line(s)" in err
    assert "before any day: không có lịch" in err


def test_non_utf8_text_file(tmp_path, capsys):
    src = tmp_path / "cp1258.txt"
    src.write_bytes(b"Th\xff\xfe 2:\n")

    assert main(["--text", str(src), "-o", str(tmp_path / "out")]) == 1
    assert "Error reading timetable text" in capsys.readouterr().err
