"""Large files: filesystem-bounded find per mountpoint, merged top-N by size, 120 s per mountpoint."""

import os
import sys
from typing import List

from ..executor import Executor
from ..mounts import MountTable
from ..schema import LargeFileEntry, LargeFileSection, ScanOptions, SectionStatus

FIND_TIMEOUT = 120

_DEBUG = bool(os.environ.get("DISKSCOPE_DEBUG", ""))


def _debug(msg: str) -> None:
    if _DEBUG:
        print(f"[diskscope] large_files: {msg}", file=sys.stderr)


def _parse_find(text: str, min_size: int, device: str = "", fstype: str = "", mountpoint: str = "") -> List[LargeFileEntry]:
    """Parse `find -printf '%s\\t%p\\n'` output, dropping anything under min_size."""
    entries: List[LargeFileEntry] = []
    for line in text.splitlines():
        size, sep, path = line.partition("\t")
        if not sep or not path:
            continue
        try:
            size_bytes = int(size)
        except ValueError:
            continue
        if size_bytes < min_size:
            continue
        entries.append(LargeFileEntry(
            path=path, size_bytes=size_bytes, device=device, fstype=fstype, mountpoint=mountpoint,
        ))
    return entries


def find_command(mountpoint: str, min_size: int) -> List[str]:
    # +<n>c is "more than n bytes", so n = min_size - 1 keeps files of exactly min_size
    return [
        "find", mountpoint, "-xdev", "-type", "f",
        "-size", f"+{max(min_size - 1, 0)}c",
        "-printf", "%s\\t%p\\n",
    ]


def run(executor: Executor, table: MountTable, options: ScanOptions) -> LargeFileSection:
    section = LargeFileSection(min_size_bytes=options.min_size_bytes)
    if options.quick:
        section.mark(SectionStatus.SKIPPED, "Large-file scan skipped (--quick)")
        return section

    found: List[LargeFileEntry] = []
    for mountpoint in table.mountpoints:
        rec = table.record_for(mountpoint)
        r = executor(find_command(mountpoint, options.min_size_bytes), timeout=FIND_TIMEOUT)
        if r.timed_out:
            _debug(f"{mountpoint}: timed out after {FIND_TIMEOUT}s")
            section.degrade(f"{mountpoint}: timed out after {FIND_TIMEOUT}s")
            continue
        entries = _parse_find(
            r.stdout,
            options.min_size_bytes,
            device=rec.source if rec else "",
            fstype=rec.fstype if rec else "",
            mountpoint=mountpoint,
        )
        if r.returncode != 0 and not entries and r.stderr.strip() and not r.stdout.strip():
            section.degrade(f"{mountpoint}: find failed ({r.stderr.strip().splitlines()[0]})")
            continue
        _debug(f"{mountpoint}: {len(entries)} files >= {options.min_size_bytes} bytes")
        found.extend(entries)

    # sort after collection so the result does not depend on mountpoint order
    found.sort(key=lambda e: (-e.size_bytes, e.path))
    section.entries = found[:options.topn]
    return section
