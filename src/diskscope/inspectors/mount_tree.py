"""Mount tree (findmnt) and the network/external mounts derived from it."""

import json
import re
from typing import Iterator, List

from ..executor import Executor
from ..mounts import is_pseudo
from ..schema import (
    MountNode,
    MountTreeSection,
    NetworkMount,
    NetworkMountSection,
    ScanOptions,
    SectionStatus,
)

NETWORK_FSTYPE_RE = re.compile(r"nfs|cifs|smb|fuse|overlay|squashfs")


def _parse_node(data: dict) -> MountNode:
    return MountNode(
        target=data.get("target") or "",
        source=data.get("source") or "",
        fstype=data.get("fstype") or "",
        options=data.get("options") or "",
        children=[_parse_node(c) for c in (data.get("children") or [])],
    )


def _parse_findmnt(text: str) -> List[MountNode]:
    data = json.loads(text)
    return [_parse_node(fs) for fs in data.get("filesystems", [])]


def _prune_pseudo(nodes: List[MountNode]) -> List[MountNode]:
    """Drop pseudo-filesystem nodes, lifting their real children one level up."""
    out: List[MountNode] = []
    for node in nodes:
        children = _prune_pseudo(node.children)
        if is_pseudo(node.fstype):
            out.extend(children)
        else:
            out.append(node.model_copy(update={"children": children}))
    return out


def walk(nodes: List[MountNode], depth: int = 0) -> Iterator:
    """Yield (depth, node) in tree order."""
    for node in nodes:
        yield depth, node
        yield from walk(node.children, depth + 1)


def run(executor: Executor, options: ScanOptions) -> MountTreeSection:
    section = MountTreeSection()
    r = executor(["findmnt", "--json", "-o", "TARGET,SOURCE,FSTYPE,OPTIONS"])
    if r.returncode != 0 or not r.stdout.strip():
        section.mark(SectionStatus.UNAVAILABLE, f"findmnt failed: {(r.stderr or '').strip() or 'no output'}")
        return section
    try:
        roots = _parse_findmnt(r.stdout)
    except (json.JSONDecodeError, AttributeError) as exc:
        section.mark(SectionStatus.UNAVAILABLE, f"findmnt output not understood: {exc}")
        return section
    section.roots = roots if options.include_pseudo else _prune_pseudo(roots)
    return section


def network_mounts(tree: MountTreeSection, options: ScanOptions) -> NetworkMountSection:
    """Network and external mounts (NFS, CIFS, FUSE, overlay, squashfs) from the mount tree."""
    section = NetworkMountSection()
    if tree.status == SectionStatus.UNAVAILABLE:
        section.mark(SectionStatus.UNAVAILABLE, "Mount table unavailable")
        return section
    for _, node in walk(tree.roots):
        if not NETWORK_FSTYPE_RE.search(node.fstype):
            continue
        if is_pseudo(node.fstype) and not options.include_pseudo:
            continue
        section.mounts.append(NetworkMount(
            mountpoint=node.target,
            source=node.source,
            fstype=node.fstype,
            options=node.options,
        ))
    if not section.mounts:
        section.mark(SectionStatus.NOT_PRESENT, "No network or external mounts")
    return section
