"""Physical disk identification: lsblk -d, loop devices excluded."""

import json
from typing import List, Optional

from ..executor import Executor
from ..schema import BlockDevice, DiskSection, SectionStatus

LSBLK_COLUMNS = "NAME,SIZE,MODEL,SERIAL,WWN,ROTA,HCTL,TYPE"


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _rota(value) -> Optional[bool]:
    # lsblk >= 2.33 emits JSON booleans, older releases "0"/"1"
    if isinstance(value, bool):
        return value
    if value in ("1", 1):
        return True
    if value in ("0", 0):
        return False
    return None


def _parse_lsblk_disks(text: str) -> List[BlockDevice]:
    data = json.loads(text)
    devices: List[BlockDevice] = []
    for dev in data.get("blockdevices") or []:
        name = dev.get("name") or ""
        if not name or name.startswith("loop") or dev.get("type") == "loop":
            continue
        try:
            size = int(dev.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        devices.append(BlockDevice(
            device=name if name.startswith("/dev/") else f"/dev/{name}",
            size_bytes=size,
            model=_clean(dev.get("model")),
            serial=_clean(dev.get("serial")),
            wwn=_clean(dev.get("wwn")),
            rotational=_rota(dev.get("rota")),
            controller=_clean(dev.get("hctl")),
        ))
    return devices


def run(executor: Executor) -> DiskSection:
    section = DiskSection()
    r = executor(["lsblk", "-d", "-b", "-J", "-o", LSBLK_COLUMNS])
    if r.returncode != 0 or not r.stdout.strip():
        section.mark(SectionStatus.UNAVAILABLE, f"lsblk failed: {(r.stderr or '').strip() or 'no output'}")
        return section
    try:
        section.devices = _parse_lsblk_disks(r.stdout)
    except (json.JSONDecodeError, AttributeError) as exc:
        section.mark(SectionStatus.UNAVAILABLE, f"lsblk output not understood: {exc}")
        return section
    if not section.devices:
        section.mark(SectionStatus.NOT_PRESENT, "No block devices found")
    return section
