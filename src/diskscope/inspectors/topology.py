"""Device topology: the block-device chain under each analyzed mountpoint (lsblk -s)."""

import json
from typing import List, Optional, Tuple

from ..executor import Executor
from ..mounts import MountTable
from ..schema import MountTopologyEdge, SectionStatus, TopologyNode, TopologySection


def _as_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _flatten(devices: List[dict], depth: int, out: List[TopologyNode]) -> None:
    for dev in devices:
        out.append(TopologyNode(
            name=dev.get("name") or "",
            type=dev.get("type") or "",
            depth=depth,
            size_bytes=_as_int(dev.get("size")),
            fstype=dev.get("fstype") or None,
        ))
        _flatten(dev.get("children") or [], depth + 1, out)


def _top_level(dev: dict) -> Optional[str]:
    """Follow single-child links down the inverse tree.

    Ends at the disk for simple stacks, or at the last node before a fan-out
    (md array over several disks, VG over several PVs).
    """
    node = dev
    while True:
        children = node.get("children") or []
        if len(children) != 1:
            break
        node = children[0]
    return node.get("path") or ("/dev/" + node["name"] if node.get("name") else None)


def _parse_lsblk_inverse(text: str) -> Tuple[List[TopologyNode], Optional[str]]:
    data = json.loads(text)
    devices = data.get("blockdevices") or []
    chain: List[TopologyNode] = []
    _flatten(devices, 0, chain)
    top = _top_level(devices[0]) if devices else None
    return chain, top


def run(executor: Executor, table: MountTable) -> TopologySection:
    section = TopologySection()
    for mountpoint in table.mountpoints:
        rec = table.record_for(mountpoint)
        if rec is None:
            continue
        edge = MountTopologyEdge(mountpoint=mountpoint, device=rec.source, fstype=rec.fstype)
        if rec.source.startswith("/dev/"):
            r = executor(["lsblk", "-J", "-b", "-s", "-o", "NAME,PATH,TYPE,SIZE,FSTYPE", rec.source])
            if r.returncode == 0 and r.stdout.strip():
                try:
                    edge.chain, edge.top_level_device = _parse_lsblk_inverse(r.stdout)
                except (json.JSONDecodeError, AttributeError) as exc:
                    section.degrade(f"{mountpoint}: lsblk output not understood ({exc})")
            else:
                section.degrade(f"{mountpoint}: lsblk could not resolve {rec.source}")
        section.edges.append(edge)
    if not section.edges and section.status == SectionStatus.OK:
        section.mark(SectionStatus.NOT_PRESENT, "No mountpoints to resolve")
    return section
