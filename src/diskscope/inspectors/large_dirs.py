"""Large directories: depth-limited du per mountpoint, top-N by size, 60 s per mountpoint."""

import os
import sys
from typing import List, Optional, Tuple

from ..executor import Executor
from ..mounts import MountTable
from ..schema import (
    DirectoryUsageEntry,
    LargeDirectorySection,
    MountDirectoryUsage,
    ScanOptions,
    SectionStatus,
)

DU_TIMEOUT = 60

_DEBUG = bool(os.environ.get("DISKSCOPE_DEBUG", ""))


def _debug(msg: str) -> None:
    if _DEBUG:
        print(f"[diskscope] large_dirs: {msg}", file=sys.stderr)


def _parse_du(text: str) -> List[Tuple[int, str]]:
    """Parse `du -k` lines ("<kib>\\t<path>") into (bytes, path)."""
    rows: List[Tuple[int, str]] = []
    for line in text.splitlines():
        size, sep, path = line.partition("\t")
        if not sep:
            continue
        try:
            rows.append((int(size) * 1024, path))
        except ValueError:
            continue
    return rows


def scan_mount(
    executor: Executor,
    mountpoint: str,
    topn: int,
    depth: int = 1,
    device: str = "",
    fstype: str = "",
) -> MountDirectoryUsage:
    usage = MountDirectoryUsage(mountpoint=mountpoint, device=device, fstype=fstype)
    r = executor(["du", "-x", "-k", "-d", str(depth), mountpoint], timeout=DU_TIMEOUT)
    if r.timed_out:
        _debug(f"{mountpoint}: timed out after {DU_TIMEOUT}s")
        usage.status = SectionStatus.DEGRADED
        usage.note = f"Timed out after {DU_TIMEOUT}s"
        return usage

    rows = _parse_du(r.stdout)
    total: Optional[int] = None
    entries: List[DirectoryUsageEntry] = []
    for size, path in rows:
        if path.rstrip("/") == mountpoint.rstrip("/"):
            total = size
            continue
        entries.append(DirectoryUsageEntry(
            path=path, size_bytes=size, device=device, fstype=fstype, mountpoint=mountpoint,
        ))
    entries.sort(key=lambda e: (-e.size_bytes, e.path))
    usage.entries = entries[:topn]
    usage.total_bytes = total

    if r.returncode != 0:
        if not rows:
            usage.status = SectionStatus.UNAVAILABLE
            usage.note = r.stderr.strip().splitlines()[0] if r.stderr.strip() else "du failed"
        else:
            usage.note = "Some directories were not readable"
    return usage


def run(executor: Executor, table: MountTable, options: ScanOptions) -> LargeDirectorySection:
    depth = 2 if options.deep else 1
    section = LargeDirectorySection(depth=depth)
    for mountpoint in table.mountpoints:
        rec = table.record_for(mountpoint)
        usage = scan_mount(
            executor,
            mountpoint,
            options.topn,
            depth=depth,
            device=rec.source if rec else "",
            fstype=rec.fstype if rec else "",
        )
        if usage.status != SectionStatus.OK:
            section.degrade(f"{mountpoint}: {usage.note}")
        section.mounts.append(usage)
    if not section.mounts and section.status == SectionStatus.OK:
        section.mark(SectionStatus.NOT_PRESENT, "No mountpoints to scan")
    return section
