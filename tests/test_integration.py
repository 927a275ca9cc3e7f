"""
End-to-end integration tests: fixtures -> collectors -> aggregator -> renderers.
"""

from conftest import FIXED_NOW, HOST_ROOT, fixture_executor

from diskscope.inspectors import run_all
from diskscope.preflight import ToolAvailability
from diskscope.renderers import render
from diskscope.renderers.json_report import load_report
from diskscope.schema import ScanOptions, SectionStatus, Severity

TOOLS = ToolAvailability.everything()


def _run(tools=TOOLS, **opts):
    return run_all(
        host_root=HOST_ROOT,
        executor=fixture_executor,
        options=ScanOptions(**opts),
        tools=tools,
        now=FIXED_NOW,
    )


def test_full_pipeline():
    report = _run()
    assert report.hostname == "storage01"
    assert report.timestamp == "2026-10-17T08:30:00Z"
    for name in (
        "filesystem_summary", "mount_tree", "topology", "disks", "raid", "lvm", "zfs",
        "btrfs", "network_mounts", "large_directories", "large_files", "logs_caches",
        "containers", "deleted_files", "swap_tmpfs", "fstab",
    ):
        assert getattr(report, name).status == SectionStatus.OK, name
    assert report.smart.status == SectionStatus.SKIPPED

    assert report.totals.filesystem_count == 5
    assert report.totals.total_bytes == 3600500000000
    assert report.totals.used_bytes == 2045010000000
    assert report.totals.use_percent == 56

    assert [(a.severity, a.subject) for a in report.alerts.alerts] == [
        (Severity.CRITICAL, "/"),
        (Severity.CRITICAL, "/var/lib/docker-bind"),
        (Severity.WARNING, "/mnt/nas"),
        (Severity.CRITICAL, "/dev/md1"),
        (Severity.WARNING, "journal"),
        (Severity.WARNING, "deleted files"),
    ]


def test_totals_and_alerts_share_the_filesystem_set():
    report = _run(only=["/", "/srv/data"])
    assert [r.mountpoint for r in report.filesystems] == ["/", "/srv/data"]
    assert report.totals.total_bytes == 100000000000 + 2000000000000
    fs_alert_subjects = {a.subject for a in report.alerts.alerts if a.subject.startswith("/") and not a.subject.startswith("/dev/")}
    assert fs_alert_subjects == {"/"}


def test_quick_mode_skips_large_files_only():
    report = _run(quick=True)
    assert report.large_files.status == SectionStatus.SKIPPED
    assert report.large_files.entries == []
    assert report.large_directories.status == SectionStatus.OK
    text = render(report, "txt")
    assert "Large-file scan skipped (--quick)" in text


def test_with_smart_raises_failed_disk_alert():
    report = _run(with_smart=True)
    assert report.smart.status == SectionStatus.OK
    assert (Severity.CRITICAL, "/dev/sdc") in [(a.severity, a.subject) for a in report.alerts.alerts]


def test_missing_optional_tools_degrade_gracefully():
    tools = TOOLS.without("mdadm", "lsof", "zpool", "btrfs", "docker", "snap", "flatpak")
    report = _run(tools=tools)
    assert report.raid.status == SectionStatus.NOT_PRESENT
    assert report.deleted_files.status == SectionStatus.NOT_PRESENT
    assert report.zfs.status == SectionStatus.NOT_PRESENT
    assert report.btrfs.status == SectionStatus.NOT_PRESENT
    assert report.containers.status == SectionStatus.NOT_PRESENT
    assert report.filesystem_summary.status == SectionStatus.OK
    assert all(a.subject != "/dev/md1" for a in report.alerts.alerts)
    text = render(report, "txt")
    assert "mdadm not installed" in text
    assert "Status: not present" in text


def test_snapshot_round_trip_renders_identically():
    report = _run()
    reloaded = load_report(render(report, "json"))
    for fmt in ("txt", "json", "csv"):
        assert render(reloaded, fmt) == render(report, fmt)
