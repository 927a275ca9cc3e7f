"""Swap devices (swapon) and tmpfs mounts (from the same df table as the summary)."""

from typing import List, Optional

from ..executor import Executor
from ..mounts import MountTable
from ..preflight import ToolAvailability
from ..schema import SectionStatus, SwapDevice, SwapSection


def _int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def _parse_swapon(text: str) -> List[SwapDevice]:
    devices: List[SwapDevice] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 5:
            continue
        devices.append(SwapDevice(
            name=parts[0],
            type=parts[1],
            size_bytes=_int(parts[2]),
            used_bytes=_int(parts[3]),
            priority=_int(parts[4]),
        ))
    return devices


def run(executor: Executor, table: MountTable, tools: ToolAvailability) -> SwapSection:
    section = SwapSection()
    section.tmpfs = [r for r in table.all_records if r.fstype == "tmpfs"]
    if not tools.has("swapon"):
        section.notes.append("swapon not installed")
    else:
        r = executor([
            "swapon", "--show", "--bytes", "--raw", "--noheadings",
            "--output=NAME,TYPE,SIZE,USED,PRIO",
        ])
        if r.returncode == 0:
            section.swap = _parse_swapon(r.stdout)
            if not section.swap:
                section.notes.append("Swap is not active")
        else:
            section.degrade("swapon failed")
    return section
