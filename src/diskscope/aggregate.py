"""
Aggregation: host-wide totals and threshold alerts.

One pass over the analyzed FilesystemRecords feeds both the totals and the
filesystem alerts, so the two can never disagree about which mounts count.
"""

from typing import Iterable, List, Optional

from .schema import (
    Alert,
    AlertSection,
    FilesystemRecord,
    Report,
    SectionStatus,
    Severity,
    Totals,
)
from .units import format_size

WARN_PERCENT = 80
CRIT_PERCENT = 90
JOURNAL_LIMIT_BYTES = 2 * 1024 ** 3


def _totals_key(record: FilesystemRecord) -> str:
    # Bind mounts and btrfs subvolumes repeat the same /dev source with the same numbers
    if record.source.startswith("/dev/"):
        return record.source
    return f"{record.source}@{record.mountpoint}"


def unique_for_totals(records: Iterable[FilesystemRecord]) -> List[FilesystemRecord]:
    seen = set()
    out: List[FilesystemRecord] = []
    for r in records:
        key = _totals_key(r)
        if key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


def compute_totals(records: Iterable[FilesystemRecord]) -> Totals:
    counted = unique_for_totals(records)
    total = sum(r.total_bytes for r in counted)
    used = sum(r.used_bytes for r in counted)
    avail = sum(r.available_bytes for r in counted)
    return Totals(
        total_bytes=total,
        used_bytes=used,
        available_bytes=avail,
        use_percent=(used * 100) // total if total > 0 else None,
        filesystem_count=len(counted),
    )


def threshold_severity(percent: Optional[int]) -> Optional[Severity]:
    if percent is None:
        return None
    if percent >= CRIT_PERCENT:
        return Severity.CRITICAL
    if percent >= WARN_PERCENT:
        return Severity.WARNING
    return None


def filesystem_alerts(records: Iterable[FilesystemRecord]) -> List[Alert]:
    alerts: List[Alert] = []
    for r in records:
        sev = threshold_severity(r.use_percent)
        if sev:
            alerts.append(Alert(
                severity=sev,
                subject=r.mountpoint,
                message=f"Filesystem {r.use_percent}% full ({r.fstype} on {r.source})",
            ))
        sev = threshold_severity(r.inode_use_percent)
        if sev:
            alerts.append(Alert(
                severity=sev,
                subject=r.mountpoint,
                message=f"Inodes {r.inode_use_percent}% used ({r.fstype} on {r.source})",
            ))
    return alerts


def evaluate_alerts(report: Report) -> AlertSection:
    section = AlertSection()
    if report.filesystem_summary:
        section.alerts.extend(filesystem_alerts(report.filesystem_summary.records))
        if report.filesystem_summary.status == SectionStatus.UNAVAILABLE:
            section.notes.append("Filesystem usage unavailable; space and inode checks not evaluated")

    if report.raid:
        for array in report.raid.arrays:
            if array.degraded or array.recovering:
                state = "degraded" if array.degraded else "recovering"
                if array.degraded and array.recovering:
                    state = "degraded and recovering"
                section.alerts.append(Alert(
                    severity=Severity.CRITICAL,
                    subject=f"/dev/{array.name}",
                    message=f"RAID array {state} {array.sync_status}".rstrip(),
                ))

    if report.zfs:
        for pool in report.zfs.pools:
            if pool.health and pool.health != "ONLINE":
                section.alerts.append(Alert(
                    severity=Severity.CRITICAL,
                    subject=f"zpool {pool.name}",
                    message=f"ZFS pool health {pool.health}",
                ))

    if report.logs_caches and report.logs_caches.journal:
        size = report.logs_caches.journal.size_bytes
        if size > JOURNAL_LIMIT_BYTES:
            section.alerts.append(Alert(
                severity=Severity.WARNING,
                subject="journal",
                message=f"Journal uses {format_size(size)} (limit {format_size(JOURNAL_LIMIT_BYTES)})",
            ))

    if report.deleted_files and report.deleted_files.files:
        count = len(report.deleted_files.files)
        section.alerts.append(Alert(
            severity=Severity.WARNING,
            subject="deleted files",
            message=f"{count} deleted file(s) still held open by processes",
        ))

    if report.smart:
        for dev in report.smart.devices:
            if dev.health and dev.health.upper() == "FAILED":
                section.alerts.append(Alert(
                    severity=Severity.CRITICAL,
                    subject=dev.device,
                    message="SMART health check FAILED",
                ))
    return section
