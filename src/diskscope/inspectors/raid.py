"""MD RAID: /proc/mdstat plus mdadm --detail per array. File-based + executor under host_root."""

import re
from pathlib import Path
from typing import List, Optional

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import RaidArrayStatus, RaidSection, SectionStatus

_ARRAY_RE = re.compile(r"^(md\S*)\s*:\s*(.*)$")
_SYNC_RE = re.compile(r"\[(\d+)/(\d+)\]\s+\[([U_]+)\]")
_PROGRESS_RE = re.compile(r"\b(recovery|resync|reshape|check)\s*=\s*([\d.]+%)")
_LEVELS = ("linear", "multipath", "faulty")


def _parse_mdstat(text: str) -> List[RaidArrayStatus]:
    arrays: List[RaidArrayStatus] = []
    current: Optional[RaidArrayStatus] = None
    for line in text.splitlines():
        m = _ARRAY_RE.match(line)
        if m:
            tokens = m.group(2).split()
            state = tokens.pop(0) if tokens else ""
            while tokens and tokens[0].startswith("("):
                state += " " + tokens.pop(0)
            level = ""
            if tokens and (tokens[0].startswith("raid") or tokens[0] in _LEVELS):
                level = tokens.pop(0)
            current = RaidArrayStatus(name=m.group(1), level=level, state=state)
            for tok in tokens:
                dev = re.sub(r"\[\d+\]", "", tok)
                if dev.endswith("(F)"):
                    current.degraded = True
                current.devices.append(dev)
            arrays.append(current)
            continue
        if current is None:
            continue
        if not line.strip():
            current = None
            continue
        s = _SYNC_RE.search(line)
        if s:
            current.sync_status = f"[{s.group(3)}]"
            if "_" in s.group(3) or int(s.group(2)) < int(s.group(1)):
                current.degraded = True
        p = _PROGRESS_RE.search(line)
        if p:
            current.progress = f"{p.group(1)} = {p.group(2)}"
            if p.group(1) in ("recovery", "resync", "reshape"):
                current.recovering = True
    return arrays


def _apply_detail(array: RaidArrayStatus, text: str) -> None:
    """Merge `mdadm --detail` key/value lines into an array record."""
    for line in text.splitlines():
        key, sep, value = line.partition(" : ")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key == "State":
            array.state = value
            low = value.lower()
            if "degraded" in low:
                array.degraded = True
            if "recovering" in low or "resyncing" in low or "reshaping" in low:
                array.recovering = True
        elif key in ("Active Devices", "Failed Devices", "Spare Devices"):
            try:
                count = int(value)
            except ValueError:
                continue
            if key == "Active Devices":
                array.active_devices = count
            elif key == "Failed Devices":
                array.failed_devices = count
                if count > 0:
                    array.degraded = True
            else:
                array.spare_devices = count


def run(host_root: Path, executor: Executor, tools: ToolAvailability) -> RaidSection:
    section = RaidSection()
    if not tools.has("mdadm"):
        section.mark(SectionStatus.NOT_PRESENT, "mdadm not installed")
        return section
    mdstat = Path(host_root) / "proc/mdstat"
    try:
        text = mdstat.read_text() if mdstat.exists() else ""
    except (PermissionError, OSError) as exc:
        section.mark(SectionStatus.UNAVAILABLE, f"cannot read /proc/mdstat: {exc}")
        return section
    section.arrays = _parse_mdstat(text)
    if not section.arrays:
        section.mark(SectionStatus.NOT_PRESENT, "No MD RAID arrays")
        return section
    for array in section.arrays:
        r = executor(["mdadm", "--detail", f"/dev/{array.name}"])
        if r.returncode == 0 and r.stdout.strip():
            _apply_detail(array, r.stdout)
        else:
            section.degrade(f"mdadm --detail /dev/{array.name} failed")
    return section
