"""
Mount enumeration: the live df table, pseudo-filesystem filtering and --only handling.

The resulting MountTable seeds every collector that works "for each real filesystem".
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .executor import Executor
from .schema import FilesystemRecord, ScanOptions

PSEUDO_FSTYPES = frozenset({
    "tmpfs",
    "devtmpfs",
    "proc",
    "sysfs",
    "devpts",
    "securityfs",
    "cgroup",
    "pstore",
    "bpf",
    "tracefs",
    "debugfs",
    "hugetlbfs",
    "mqueue",
    "configfs",
    "fusectl",
    "fuse.lxcfs",
})

DF_COLUMNS = "source,fstype,size,used,avail,pcent,ipcent,target"


@dataclass
class MountTable:
    all_records: List[FilesystemRecord] = field(default_factory=list)  # pseudo included
    records: List[FilesystemRecord] = field(default_factory=list)  # the analyzed set
    mountpoints: List[str] = field(default_factory=list)
    by_path: Dict[str, FilesystemRecord] = field(default_factory=dict)
    error: Optional[str] = None

    def record_for(self, mountpoint: str) -> Optional[FilesystemRecord]:
        return self.by_path.get(mountpoint)


def is_pseudo(fstype: str) -> bool:
    return fstype in PSEUDO_FSTYPES


def _parse_percent(value: str) -> Optional[int]:
    value = value.strip().rstrip("%")
    if not value or value == "-":
        return None
    return int(value)


def _parse_df(text: str) -> List[FilesystemRecord]:
    """Parse `df -B1 --output=source,fstype,size,used,avail,pcent,ipcent,target`.

    Rows whose numeric columns do not parse are dropped; the target column is last so
    mountpoints containing spaces survive the split.
    """
    records: List[FilesystemRecord] = []
    for i, line in enumerate(text.splitlines()):
        if i == 0 and line.lstrip().startswith("Filesystem"):
            continue
        parts = line.split(None, 7)
        if len(parts) < 8:
            continue
        source, fstype, size, used, avail, pcent, ipcent, target = parts
        try:
            records.append(FilesystemRecord(
                mountpoint=target.strip(),
                source=source,
                fstype=fstype,
                total_bytes=int(size),
                used_bytes=int(used),
                available_bytes=int(avail),
                use_percent=_parse_percent(pcent),
                inode_use_percent=_parse_percent(ipcent),
            ))
        except ValueError:
            continue
    return records


def parse_only(value: Optional[str]) -> List[str]:
    """Split a comma-separated --only value into a deduplicated, order-stable list."""
    if not value:
        return []
    return _unique(p.strip() for p in value.split(","))


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def filter_pseudo(records: List[FilesystemRecord], include_pseudo: bool = False) -> List[FilesystemRecord]:
    if include_pseudo:
        return list(records)
    return [r for r in records if not is_pseudo(r.fstype)]


def dedupe_by_mountpoint(records: List[FilesystemRecord]) -> List[FilesystemRecord]:
    """Keep the first record per mountpoint (the mount table may list overmounts twice)."""
    seen = set()
    out: List[FilesystemRecord] = []
    for r in records:
        if r.mountpoint in seen:
            continue
        seen.add(r.mountpoint)
        out.append(r)
    return out


def read_df(executor: Executor, paths: Optional[List[str]] = None):
    cmd = ["df", "-B1", f"--output={DF_COLUMNS}"]
    if paths:
        cmd += ["--"] + list(paths)
    r = executor(cmd)
    return _parse_df(r.stdout), r


def enumerate_mounts(executor: Executor, options: ScanOptions) -> MountTable:
    """Resolve the mountpoints to analyze.

    Discovery uses the live df table minus pseudo filesystems (unless --include-pseudo).
    An explicit --only list is taken as given: each path is resolved through df, and the
    pseudo filter does not apply to it.
    """
    table = MountTable()
    all_records, r = read_df(executor)
    if not all_records:
        table.error = (r.stderr or "df produced no output").strip()
        if not options.only:
            return table
    table.all_records = all_records

    if options.only:
        only = _unique(options.only)
        # one df call per path: df names the containing mountpoint, not the argument
        for path in only:
            resolved, _ = read_df(executor, [path])
            if resolved:
                table.by_path[path] = resolved[0]
        table.mountpoints = only
        table.records = dedupe_by_mountpoint(list(table.by_path.values()))
        return table

    table.records = dedupe_by_mountpoint(filter_pseudo(all_records, options.include_pseudo))
    table.by_path = {rec.mountpoint: rec for rec in table.records}
    table.mountpoints = [rec.mountpoint for rec in table.records]
    return table
