"""Btrfs: filesystems and devices (btrfs filesystem show) and per-mount usage."""

import re
from typing import List, Optional

from ..executor import Executor
from ..mounts import MountTable
from ..preflight import ToolAvailability
from ..schema import BtrfsDevice, BtrfsFilesystem, BtrfsSection, BtrfsUsage, SectionStatus

_LABEL_RE = re.compile(r"^Label:\s*(?:'(?P<label>.*)'|none)\s+uuid:\s*(?P<uuid>\S+)")
_TOTAL_RE = re.compile(r"Total devices\s+(\d+)\s+FS bytes used\s+(\d+)")
_DEVID_RE = re.compile(r"devid\s+(\d+)\s+size\s+(\d+)\s+used\s+(\d+)\s+path\s+(\S+)")


def _parse_show(text: str) -> List[BtrfsFilesystem]:
    filesystems: List[BtrfsFilesystem] = []
    current: Optional[BtrfsFilesystem] = None
    for line in text.splitlines():
        stripped = line.strip()
        m = _LABEL_RE.match(stripped)
        if m:
            current = BtrfsFilesystem(uuid=m.group("uuid"), label=m.group("label") or "")
            filesystems.append(current)
            continue
        if current is None:
            continue
        t = _TOTAL_RE.search(stripped)
        if t:
            current.total_devices = int(t.group(1))
            current.bytes_used = int(t.group(2))
            continue
        d = _DEVID_RE.search(stripped)
        if d:
            current.devices.append(BtrfsDevice(
                devid=int(d.group(1)),
                size_bytes=int(d.group(2)),
                used_bytes=int(d.group(3)),
                path=d.group(4),
            ))
    return filesystems


def _first_int(value: str) -> Optional[int]:
    m = re.match(r"\s*(\d+)", value)
    return int(m.group(1)) if m else None


def _parse_usage(mountpoint: str, text: str) -> BtrfsUsage:
    """Parse the "Overall:" block of `btrfs filesystem usage -b`."""
    usage = BtrfsUsage(mountpoint=mountpoint)
    for line in text.splitlines():
        key, sep, value = line.strip().partition(":")
        if not sep:
            continue
        if key == "Device size":
            usage.device_size = _first_int(value)
        elif key == "Device allocated":
            usage.device_allocated = _first_int(value)
        elif key == "Used" and usage.used is None:
            usage.used = _first_int(value)
        elif key == "Free (estimated)":
            usage.free_estimated = _first_int(value)
        elif key == "Data ratio":
            try:
                usage.data_ratio = float(value.strip())
            except ValueError:
                pass
    return usage


def run(executor: Executor, table: MountTable, tools: ToolAvailability) -> BtrfsSection:
    section = BtrfsSection()
    if not tools.has("btrfs"):
        section.mark(SectionStatus.NOT_PRESENT, "btrfs-progs not installed")
        return section

    r = executor(["btrfs", "filesystem", "show", "--raw"])
    if r.returncode == 0:
        section.filesystems = _parse_show(r.stdout)
    else:
        section.notes.append(f"btrfs filesystem show failed: {(r.stderr or '').strip() or 'no output'}")

    for rec in table.records:
        if rec.fstype != "btrfs":
            continue
        u = executor(["btrfs", "filesystem", "usage", "-b", rec.mountpoint])
        if u.returncode == 0 and u.stdout.strip():
            section.usage.append(_parse_usage(rec.mountpoint, u.stdout))
        else:
            section.degrade(f"{rec.mountpoint}: btrfs filesystem usage failed (root required?)")

    if not section.filesystems and not section.usage:
        section.mark(SectionStatus.NOT_PRESENT, "No Btrfs filesystems")
    return section
