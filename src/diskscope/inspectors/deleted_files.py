"""Deleted files still held open by processes (lsof +L1)."""

from typing import List, Optional

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import DeletedFilesSection, DeletedOpenFile, SectionStatus


def _size(value: str) -> Optional[int]:
    # SIZE/OFF shows "0t<offset>" for offsets; only plain integers are sizes
    return int(value) if value.isdigit() else None


def _parse_lsof(text: str) -> List[DeletedOpenFile]:
    files: List[DeletedOpenFile] = []
    for line in text.splitlines():
        if "(deleted)" not in line:
            continue
        # COMMAND PID USER FD TYPE DEVICE SIZE/OFF NLINK NODE NAME
        parts = line.split(None, 9)
        if len(parts) < 10 or not parts[1].isdigit():
            continue
        files.append(DeletedOpenFile(
            command=parts[0],
            pid=int(parts[1]),
            user=parts[2],
            size_bytes=_size(parts[6]),
            path=parts[9].replace("(deleted)", "").strip(),
        ))
    return files


def run(executor: Executor, tools: ToolAvailability) -> DeletedFilesSection:
    section = DeletedFilesSection()
    if not tools.has("lsof"):
        section.mark(SectionStatus.NOT_PRESENT, "lsof not installed")
        return section
    r = executor(["lsof", "-nP", "+L1"])
    # lsof exits 1 both for "nothing found" and for partial warnings; trust the output
    if r.timed_out or (r.returncode not in (0, 1)):
        section.mark(SectionStatus.UNAVAILABLE, f"lsof failed: {(r.stderr or '').strip() or 'no output'}")
        return section
    section.files = _parse_lsof(r.stdout)
    return section
