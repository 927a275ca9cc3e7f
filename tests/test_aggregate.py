"""Totals and threshold alerts."""

from diskscope.aggregate import (
    JOURNAL_LIMIT_BYTES,
    compute_totals,
    evaluate_alerts,
    filesystem_alerts,
    threshold_severity,
)
from diskscope.schema import (
    DeletedFilesSection,
    DeletedOpenFile,
    FilesystemRecord,
    FilesystemSection,
    JournalUsage,
    LogsCachesSection,
    RaidArrayStatus,
    RaidSection,
    Report,
    SectionStatus,
    Severity,
    SmartSection,
    SmartStatus,
    ZfsPool,
    ZfsSection,
)


def _rec(mountpoint, total, used, percent, source=None, inode=None, fstype="ext4"):
    return FilesystemRecord(
        mountpoint=mountpoint,
        source=source or f"/dev/{mountpoint.strip('/') or 'root'}",
        fstype=fstype,
        total_bytes=total,
        used_bytes=used,
        available_bytes=total - used,
        use_percent=percent,
        inode_use_percent=inode,
    )


def _report(*records):
    return Report(filesystem_summary=FilesystemSection(records=list(records)))


def test_two_mount_totals_and_single_critical_alert():
    root = _rec("/", 100_000_000, 95_000_000, 95, source="/dev/sda1")
    data = _rec("/data", 200_000_000, 100_000_000, 50, source="/dev/sdb1")
    totals = compute_totals([root, data])
    assert totals.total_bytes == 300_000_000
    assert totals.used_bytes == 195_000_000
    assert totals.available_bytes == 105_000_000
    assert totals.use_percent == 65
    assert totals.filesystem_count == 2

    alerts = evaluate_alerts(_report(root, data))
    assert len(alerts.alerts) == 1
    assert alerts.alerts[0].severity == Severity.CRITICAL
    assert alerts.alerts[0].subject == "/"
    assert alerts.no_issues is False


def test_threshold_boundaries():
    assert threshold_severity(79) is None
    assert threshold_severity(80) == Severity.WARNING
    assert threshold_severity(89) == Severity.WARNING
    assert threshold_severity(90) == Severity.CRITICAL
    assert threshold_severity(100) == Severity.CRITICAL
    assert threshold_severity(None) is None


def test_warning_at_eighty_percent():
    alerts = filesystem_alerts([_rec("/var", 100, 80, 80)])
    assert [(a.severity, a.subject) for a in alerts] == [(Severity.WARNING, "/var")]


def test_no_alert_at_seventy_nine_percent():
    assert filesystem_alerts([_rec("/var", 100, 79, 79)]) == []


def test_inode_usage_alerts_independently():
    alerts = filesystem_alerts([_rec("/var", 100, 10, 10, inode=93)])
    assert len(alerts) == 1
    assert alerts[0].severity == Severity.CRITICAL
    assert "Inodes 93%" in alerts[0].message


def test_no_issues_when_nothing_crosses_thresholds():
    section = evaluate_alerts(_report(_rec("/", 100, 10, 10)))
    assert section.alerts == []
    assert section.no_issues is True


def test_bind_mount_counted_once_in_totals():
    root = _rec("/", 1000, 500, 50, source="/dev/sda1")
    bind = _rec("/srv/bind", 1000, 500, 50, source="/dev/sda1")
    totals = compute_totals([root, bind])
    assert totals.total_bytes == 1000
    assert totals.filesystem_count == 1


def test_non_device_sources_count_per_mountpoint():
    a = _rec("/mnt/a", 1000, 100, 10, source="nas:/export", fstype="nfs4")
    b = _rec("/mnt/b", 1000, 100, 10, source="nas:/export", fstype="nfs4")
    assert compute_totals([a, b]).total_bytes == 2000


def test_empty_totals():
    totals = compute_totals([])
    assert totals.total_bytes == 0
    assert totals.use_percent is None
    assert totals.filesystem_count == 0


def test_subsystem_alerts():
    report = Report(
        filesystem_summary=FilesystemSection(),
        raid=RaidSection(arrays=[
            RaidArrayStatus(name="md0", sync_status="[UU]"),
            RaidArrayStatus(name="md1", sync_status="[U_]", degraded=True),
        ]),
        zfs=ZfsSection(pools=[ZfsPool(name="tank", health="ONLINE"), ZfsPool(name="backup", health="DEGRADED")]),
        logs_caches=LogsCachesSection(journal=JournalUsage(size_bytes=JOURNAL_LIMIT_BYTES + 1)),
        deleted_files=DeletedFilesSection(files=[DeletedOpenFile(command="mysqld", pid=1, path="/tmp/x")]),
        smart=SmartSection(devices=[SmartStatus(device="/dev/sda", health="PASSED"),
                                    SmartStatus(device="/dev/sdc", health="FAILED")]),
    )
    alerts = evaluate_alerts(report).alerts
    assert [(a.severity, a.subject) for a in alerts] == [
        (Severity.CRITICAL, "/dev/md1"),
        (Severity.CRITICAL, "zpool backup"),
        (Severity.WARNING, "journal"),
        (Severity.WARNING, "deleted files"),
        (Severity.CRITICAL, "/dev/sdc"),
    ]


def test_recovering_raid_array_is_critical():
    report = Report(raid=RaidSection(arrays=[
        RaidArrayStatus(name="md2", sync_status="[UU]", recovering=True),
    ]))
    alerts = evaluate_alerts(report).alerts
    assert len(alerts) == 1
    assert alerts[0].severity == Severity.CRITICAL
    assert alerts[0].subject == "/dev/md2"
    assert "recovering" in alerts[0].message
    assert "degraded" not in alerts[0].message


def test_journal_at_limit_is_not_an_alert():
    report = Report(logs_caches=LogsCachesSection(journal=JournalUsage(size_bytes=JOURNAL_LIMIT_BYTES)))
    assert evaluate_alerts(report).alerts == []


def test_unavailable_filesystems_noted():
    summary = FilesystemSection()
    summary.mark(SectionStatus.UNAVAILABLE, "df failed")
    section = evaluate_alerts(Report(filesystem_summary=summary))
    assert section.alerts == []
    assert section.notes
