"""
Collectors produce typed sections that are merged into the storage report.
Each collector receives an executor (and the mount table where relevant); returns a section.
Sections run strictly in order: later ones reuse data gathered by earlier ones.
"""

import platform
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..aggregate import compute_totals, evaluate_alerts
from ..executor import Executor, make_executor
from ..mounts import enumerate_mounts
from ..preflight import ToolAvailability, probe_tools
from ..schema import Report, ScanOptions

from .filesystems import run as run_filesystems
from .mount_tree import network_mounts as run_network_mounts
from .mount_tree import run as run_mount_tree
from .topology import run as run_topology
from .disks import run as run_disks
from .raid import run as run_raid
from .lvm import run as run_lvm
from .zfs import run as run_zfs
from .btrfs import run as run_btrfs
from .large_dirs import run as run_large_dirs
from .large_files import run as run_large_files
from .caches import run as run_caches
from .containers import run as run_containers
from .deleted_files import run as run_deleted_files
from .swap import run as run_swap
from .smart import run as run_smart
from .fstab import run as run_fstab


def _hostname(host_root: Path) -> str:
    p = host_root / "etc" / "hostname"
    try:
        if p.exists():
            lines = p.read_text().strip().splitlines()
            if lines:
                return lines[0].strip()
    except (PermissionError, OSError):
        pass
    return platform.node()


def run_all(
    host_root: Path = Path("/"),
    executor: Optional[Executor] = None,
    options: Optional[ScanOptions] = None,
    tools: Optional[ToolAvailability] = None,
    now: Optional[datetime] = None,
) -> Report:
    """Run all collectors, then the aggregator, and return the finished report."""
    host_root = Path(host_root)
    if executor is None:
        executor = make_executor(str(host_root))
    if options is None:
        options = ScanOptions()
    if tools is None:
        tools = probe_tools()
    now = now or datetime.now(timezone.utc)

    report = Report(
        timestamp=now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        hostname=_hostname(host_root),
        options=options,
    )

    table = enumerate_mounts(executor, options)

    report.filesystem_summary = run_filesystems(table)
    report.mount_tree = run_mount_tree(executor, options)
    report.topology = run_topology(executor, table)
    report.disks = run_disks(executor)
    report.raid = run_raid(host_root, executor, tools)
    report.lvm = run_lvm(executor, tools)
    report.zfs = run_zfs(executor, tools)
    report.btrfs = run_btrfs(executor, table, tools)
    report.network_mounts = run_network_mounts(report.mount_tree, options)
    report.large_directories = run_large_dirs(executor, table, options)
    report.large_files = run_large_files(executor, table, options)
    report.logs_caches = run_caches(host_root, executor, tools)
    report.containers = run_containers(host_root, executor, tools)
    report.deleted_files = run_deleted_files(executor, tools)
    report.swap_tmpfs = run_swap(executor, table, tools)
    report.smart = run_smart(executor, report.disks.devices, options, tools)
    report.fstab = run_fstab(host_root)

    report.alerts = evaluate_alerts(report)
    report.totals = compute_totals(report.filesystem_summary.records)
    return report
