"""
Renderer tests: text, JSON and CSV from one fixture report.
"""

import json

import pytest

from conftest import FIXED_NOW, HOST_ROOT, fixture_executor

from diskscope.inspectors import run_all
from diskscope.preflight import ToolAvailability
from diskscope.renderers import make_env, render, write_output
from diskscope.renderers.csv_report import HEADER, parse_csv
from diskscope.renderers.json_report import load_report
from diskscope.schema import AlertSection, Report, ScanOptions

ANSI = "\x1b["


def _report(**opts):
    return run_all(
        host_root=HOST_ROOT,
        executor=fixture_executor,
        options=ScanOptions(**opts),
        tools=ToolAvailability.everything(),
        now=FIXED_NOW,
    )


@pytest.fixture(scope="module")
def report():
    return _report()


def test_text_contains_every_section(report):
    text = render(report, "txt")
    for title in (
        "1. Filesystem summary",
        "2. Mount tree",
        "3. Device topology",
        "4. Physical disks",
        "5. RAID / LVM / ZFS / Btrfs",
        "6. Network and external mounts",
        "7. Largest directories (top 20 per filesystem)",
        "8. Largest files (>= 100 MB)",
        "9. Logs and caches",
        "10. Containers, snaps and flatpaks",
        "11. Deleted files still held open",
        "12. Swap and tmpfs",
        "13. SMART health",
        "14. Alerts",
        "15. fstab",
        "Summary",
    ):
        assert title in text
    assert "storage01" in text
    assert "2026-10-17T08:30:00Z" in text


def test_text_shows_alerts_and_notices(report):
    text = render(report, "txt")
    assert "[CRITICAL] /: Filesystem 95% full" in text
    assert "[WARNING] /mnt/nas" in text
    assert "SMART not requested (use --with-smart)" in text
    assert "Status: skipped" in text
    assert "No critical issues detected" not in text


def test_text_no_issues_line():
    report = Report(timestamp="2026-10-17T08:30:00Z", hostname="quiet", alerts=AlertSection())
    text = render(report, "txt")
    assert "No critical issues detected" in text


def test_text_quick_mode_notice():
    text = render(_report(quick=True), "txt")
    assert "Large-file scan skipped (--quick)" in text
    assert "Mode:      quick" in text


def test_text_is_deterministic(report):
    env = make_env()
    assert render(report, "txt", env=env) == render(report, "txt", env=env)
    assert render(report, "txt") == render(_report(), "txt")


def test_text_color_only_when_requested(report):
    assert ANSI not in render(report, "txt", color=False)
    assert ANSI in render(report, "txt", color=True)


def test_text_color_does_not_change_content(report):
    import re
    plain = render(report, "txt", color=False)
    colored = render(report, "txt", color=True)
    assert re.sub(r"\x1b\[[0-9;]*m", "", colored) == plain


def test_json_top_level_arrays(report):
    data = json.loads(render(report, "json"))
    assert [fs["mountpoint"] for fs in data["filesystems"]] == [
        "/", "/boot/efi", "/srv/data", "/var/lib/docker-bind", "/mnt/nas", "/home",
    ]
    assert [d["device"] for d in data["physical_disks"]] == ["/dev/sda", "/dev/sdb", "/dev/sdc", "/dev/nvme0n1"]
    assert data["physical_disks"][0]["disk_type"] == "SSD"
    assert data["smart"]["status"] == "skipped"
    assert data["alerts"]["no_issues"] is False
    assert data["totals"]["use_percent"] == 56
    assert ANSI not in render(report, "json")


def test_json_round_trip(report):
    text = render(report, "json")
    loaded = load_report(text)
    assert loaded.model_dump() == report.model_dump()
    assert render(loaded, "json") == text


def test_csv_rows(report):
    text = render(report, "csv")
    assert text.splitlines()[0] == ",".join(HEADER)
    rows = parse_csv(text)
    types = [r["type"] for r in rows]
    assert types == sorted(types)  # directories first, then files
    var = next(r for r in rows if r["path"] == "/var")
    assert var == {
        "type": "directory",
        "path": "/var",
        "size_kb": 52428800,
        "device": "/dev/mapper/vg0-root",
        "fstype": "ext4",
        "mountpoint": "/",
    }
    exact = next(r for r in rows if r["path"] == "/opt/app/exact-threshold.bin")
    assert exact["type"] == "file"
    assert exact["size_kb"] == 102400
    assert ANSI not in text


def test_csv_row_count_matches_report(report):
    rows = parse_csv(render(report, "csv"))
    n_dirs = sum(len(m.entries) for m in report.large_directories.mounts)
    assert len(rows) == n_dirs + len(report.large_files.entries)


def test_csv_quick_has_no_file_rows():
    rows = parse_csv(render(_report(quick=True), "csv"))
    assert rows
    assert all(r["type"] == "directory" for r in rows)


def test_unknown_format(report):
    with pytest.raises(ValueError):
        render(report, "xml")


def test_write_output_to_file(tmp_path):
    target = tmp_path / "out" / "report.txt"
    write_output("hello\n", target)
    assert target.read_text() == "hello\n"


def test_write_output_to_stdout(capsys):
    write_output("hello\n")
    assert capsys.readouterr().out == "hello\n"
