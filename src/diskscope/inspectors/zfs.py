"""ZFS pools: capacity and health from zpool list (scripted, exact byte values)."""

from typing import List, Optional

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import SectionStatus, ZfsPool, ZfsSection


def _int_or_none(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def _parse_zpool_list(text: str) -> List[ZfsPool]:
    pools: List[ZfsPool] = []
    for line in text.splitlines():
        parts = line.split("\t")
        if len(parts) < 5:
            continue
        pools.append(ZfsPool(
            name=parts[0],
            size_bytes=_int_or_none(parts[1]),
            allocated_bytes=_int_or_none(parts[2]),
            free_bytes=_int_or_none(parts[3]),
            health=parts[4].strip(),
        ))
    return pools


def run(executor: Executor, tools: ToolAvailability) -> ZfsSection:
    section = ZfsSection()
    if not tools.has("zpool"):
        section.mark(SectionStatus.NOT_PRESENT, "zfsutils not installed")
        return section
    r = executor(["zpool", "list", "-H", "-p", "-o", "name,size,alloc,free,health"])
    if r.returncode != 0:
        section.mark(SectionStatus.UNAVAILABLE, f"zpool list failed: {(r.stderr or '').strip() or 'no output'}")
        return section
    section.pools = _parse_zpool_list(r.stdout)
    if not section.pools:
        section.mark(SectionStatus.NOT_PRESENT, "No ZFS pools")
    return section
