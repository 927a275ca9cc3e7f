"""Logs and caches: systemd journal disk usage and sizes of well-known cache directories."""

import re
from pathlib import Path
from typing import List, Optional

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import CacheDirUsage, JournalUsage, LogsCachesSection, SectionStatus
from ..units import parse_size

CACHE_DIRS = (
    "var/log",
    "var/cache/apt/archives",
    "var/tmp",
    "tmp",
    "var/lib/docker/overlay2",
    "var/lib/snapd/snaps",
    "root/.cache",
    "home/*/.cache",
)

DU_TIMEOUT = 60

_JOURNAL_RE = re.compile(r"take up\s+([\d.,]+\s*[BKMGTPE]?)")


def _parse_journal_usage(text: str) -> Optional[JournalUsage]:
    m = _JOURNAL_RE.search(text)
    if not m:
        return None
    size = parse_size(m.group(1))
    if size is None:
        return None
    return JournalUsage(size_bytes=size, raw=m.group(1).strip())


def _parse_du_total(text: str) -> Optional[int]:
    """First field of `du -sk` output, in bytes."""
    for line in text.splitlines():
        fields = line.split()
        if fields:
            try:
                return int(fields[0]) * 1024
            except ValueError:
                return None
    return None


def _existing_dirs(host_root: Path) -> List[Path]:
    out: List[Path] = []
    for pattern in CACHE_DIRS:
        try:
            matches = sorted(host_root.glob(pattern)) if "*" in pattern else [host_root / pattern]
        except (PermissionError, OSError):
            continue
        for d in matches:
            try:
                if d.is_dir():
                    out.append(d)
            except (PermissionError, OSError):
                continue
    return out


def dir_size(executor: Executor, path: Path) -> Optional[int]:
    r = executor(["du", "-sk", str(path)], timeout=DU_TIMEOUT)
    if r.timed_out or not r.stdout.strip():
        return None
    return _parse_du_total(r.stdout)


def run(host_root: Path, executor: Executor, tools: ToolAvailability) -> LogsCachesSection:
    section = LogsCachesSection()
    host_root = Path(host_root)

    if tools.has("journalctl"):
        r = executor(["journalctl", "--disk-usage"])
        section.journal = _parse_journal_usage(r.stdout) if r.returncode == 0 else None
        if section.journal is None:
            section.notes.append("Journal disk usage unavailable")
    else:
        section.notes.append("journalctl not installed")

    for d in _existing_dirs(host_root):
        display = "/" + str(d.relative_to(host_root)).lstrip("/")
        size = dir_size(executor, d)
        if size is None:
            section.degrade(f"{display}: size unavailable (timeout or permission denied)")
        section.directories.append(CacheDirUsage(path=display, size_bytes=size))
    return section
