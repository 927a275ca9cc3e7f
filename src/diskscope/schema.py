"""
Storage report schema.

Strongly typed contract between collectors, the aggregator and renderers.
All collectors produce data that fits into this schema; all renderers consume it.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class SectionStatus(str, Enum):
    OK = "ok"
    NOT_PRESENT = "not_present"  # subsystem genuinely absent (no RAID, no LVM)
    UNAVAILABLE = "unavailable"  # tool failed, permission denied, unparseable output
    SKIPPED = "skipped"  # explicitly opted out (--quick, SMART not requested)
    DEGRADED = "degraded"  # partial result: some mountpoints/devices timed out


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


# --- Run configuration ---


class ScanOptions(BaseModel):
    """Collection settings shared by every collector. Built once from CLI flags."""

    quick: bool = False
    deep: bool = False
    topn: int = Field(default=20, ge=1)
    min_size_mb: int = Field(default=100, ge=1)
    with_smart: bool = False
    include_pseudo: bool = False
    only: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def mode(self) -> str:
        if self.quick:
            return "quick"
        if self.deep:
            return "deep"
        return "standard"

    @property
    def min_size_bytes(self) -> int:
        return self.min_size_mb * 1024 * 1024


class Section(BaseModel):
    """Common status/notice fields carried by every report section."""

    status: SectionStatus = SectionStatus.OK
    notes: List[str] = Field(default_factory=list)

    def mark(self, status: SectionStatus, note: Optional[str] = None) -> None:
        self.status = status
        if note:
            self.notes.append(note)

    def degrade(self, note: str) -> None:
        """Record a local failure without discarding what was collected."""
        if self.status == SectionStatus.OK:
            self.status = SectionStatus.DEGRADED
        self.notes.append(note)


# --- Filesystems (df) ---


class FilesystemRecord(BaseModel):
    """One mounted filesystem, as reported by df."""

    mountpoint: str
    source: str
    fstype: str
    total_bytes: int
    used_bytes: int
    available_bytes: int
    use_percent: Optional[int] = None
    inode_use_percent: Optional[int] = None

    model_config = {"frozen": True}


class FilesystemSection(Section):
    records: List[FilesystemRecord] = Field(default_factory=list)


# --- Mount tree (findmnt) ---


class MountNode(BaseModel):
    target: str
    source: str = ""
    fstype: str = ""
    options: str = ""
    children: List["MountNode"] = Field(default_factory=list)


class MountTreeSection(Section):
    roots: List[MountNode] = Field(default_factory=list)


class NetworkMount(BaseModel):
    mountpoint: str
    source: str
    fstype: str
    options: str = ""


class NetworkMountSection(Section):
    mounts: List[NetworkMount] = Field(default_factory=list)


# --- Device topology (lsblk -s) ---


class TopologyNode(BaseModel):
    name: str
    type: str
    depth: int = 0
    size_bytes: Optional[int] = None
    fstype: Optional[str] = None


class MountTopologyEdge(BaseModel):
    """Relates a mountpoint to the chain of block devices beneath it."""

    mountpoint: str
    device: str
    fstype: str
    chain: List[TopologyNode] = Field(default_factory=list)
    top_level_device: Optional[str] = None


class TopologySection(Section):
    edges: List[MountTopologyEdge] = Field(default_factory=list)


# --- Physical disks (lsblk -d) ---


class BlockDevice(BaseModel):
    device: str
    size_bytes: int = 0
    model: Optional[str] = None
    serial: Optional[str] = None
    wwn: Optional[str] = None
    rotational: Optional[bool] = None
    controller: Optional[str] = None  # HCTL or PCI address

    @computed_field
    @property
    def disk_type(self) -> str:
        if self.rotational is None:
            return "-"
        return "HDD" if self.rotational else "SSD"


class DiskSection(Section):
    devices: List[BlockDevice] = Field(default_factory=list)


# --- RAID / LVM / Btrfs / ZFS ---


class RaidArrayStatus(BaseModel):
    name: str
    level: str = ""
    state: str = ""
    devices: List[str] = Field(default_factory=list)
    sync_status: str = ""  # e.g. "[UU]" or "[U_]"
    progress: Optional[str] = None  # e.g. "recovery = 12.6%"
    active_devices: Optional[int] = None
    failed_devices: Optional[int] = None
    spare_devices: Optional[int] = None
    degraded: bool = False
    recovering: bool = False


class RaidSection(Section):
    arrays: List[RaidArrayStatus] = Field(default_factory=list)


class PhysicalVolume(BaseModel):
    pv_name: str
    vg_name: str = ""
    size_bytes: Optional[int] = None
    free_bytes: Optional[int] = None
    used_bytes: Optional[int] = None


class VolumeGroup(BaseModel):
    vg_name: str
    pv_count: Optional[int] = None
    lv_count: Optional[int] = None
    size_bytes: Optional[int] = None
    free_bytes: Optional[int] = None


class LvmVolumeStatus(BaseModel):
    lv_name: str
    vg_name: str
    size_bytes: Optional[int] = None
    data_percent: Optional[float] = None
    metadata_percent: Optional[float] = None
    attr: str = ""


class LvmSection(Section):
    physical_volumes: List[PhysicalVolume] = Field(default_factory=list)
    volume_groups: List[VolumeGroup] = Field(default_factory=list)
    logical_volumes: List[LvmVolumeStatus] = Field(default_factory=list)


class BtrfsDevice(BaseModel):
    devid: int
    path: str
    size_bytes: Optional[int] = None
    used_bytes: Optional[int] = None


class BtrfsFilesystem(BaseModel):
    uuid: str
    label: str = ""
    total_devices: Optional[int] = None
    bytes_used: Optional[int] = None
    devices: List[BtrfsDevice] = Field(default_factory=list)


class BtrfsUsage(BaseModel):
    mountpoint: str
    device_size: Optional[int] = None
    device_allocated: Optional[int] = None
    used: Optional[int] = None
    free_estimated: Optional[int] = None
    data_ratio: Optional[float] = None


class BtrfsSection(Section):
    filesystems: List[BtrfsFilesystem] = Field(default_factory=list)
    usage: List[BtrfsUsage] = Field(default_factory=list)


class ZfsPool(BaseModel):
    name: str
    size_bytes: Optional[int] = None
    allocated_bytes: Optional[int] = None
    free_bytes: Optional[int] = None
    health: str = ""


class ZfsSection(Section):
    pools: List[ZfsPool] = Field(default_factory=list)


# --- Large directories / files ---


class DirectoryUsageEntry(BaseModel):
    path: str
    size_bytes: int
    device: str = ""
    fstype: str = ""
    mountpoint: str = ""


class MountDirectoryUsage(BaseModel):
    """Top-N directories of one mountpoint. Timeouts are local to this entry."""

    mountpoint: str
    device: str = ""
    fstype: str = ""
    status: SectionStatus = SectionStatus.OK
    note: Optional[str] = None
    total_bytes: Optional[int] = None
    entries: List[DirectoryUsageEntry] = Field(default_factory=list)


class LargeDirectorySection(Section):
    depth: int = 1
    mounts: List[MountDirectoryUsage] = Field(default_factory=list)


class LargeFileEntry(BaseModel):
    path: str
    size_bytes: int
    device: str = ""
    fstype: str = ""
    mountpoint: str = ""


class LargeFileSection(Section):
    min_size_bytes: int = 0
    entries: List[LargeFileEntry] = Field(default_factory=list)


# --- Logs, caches, containers ---


class JournalUsage(BaseModel):
    size_bytes: int
    raw: str = ""


class CacheDirUsage(BaseModel):
    path: str
    size_bytes: Optional[int] = None


class LogsCachesSection(Section):
    journal: Optional[JournalUsage] = None
    directories: List[CacheDirUsage] = Field(default_factory=list)


class DockerUsage(BaseModel):
    type: str
    total_count: str = ""
    active: str = ""
    size: str = ""
    reclaimable: str = ""
    size_bytes: Optional[int] = None


class SnapPackage(BaseModel):
    name: str
    version: str = ""
    rev: str = ""
    tracking: str = ""


class FlatpakApp(BaseModel):
    application: str
    name: str = ""
    size: str = ""


class ContainerSection(Section):
    docker_status: SectionStatus = SectionStatus.NOT_PRESENT
    docker: List[DockerUsage] = Field(default_factory=list)
    snap_status: SectionStatus = SectionStatus.NOT_PRESENT
    snaps: List[SnapPackage] = Field(default_factory=list)
    snaps_total_bytes: Optional[int] = None
    flatpak_status: SectionStatus = SectionStatus.NOT_PRESENT
    flatpaks: List[FlatpakApp] = Field(default_factory=list)


# --- Deleted-but-open files, swap/tmpfs ---


class DeletedOpenFile(BaseModel):
    command: str
    pid: int
    user: str = ""
    size_bytes: Optional[int] = None
    path: str = ""


class DeletedFilesSection(Section):
    files: List[DeletedOpenFile] = Field(default_factory=list)


class SwapDevice(BaseModel):
    name: str
    type: str = ""
    size_bytes: Optional[int] = None
    used_bytes: Optional[int] = None
    priority: Optional[int] = None


class SwapSection(Section):
    swap: List[SwapDevice] = Field(default_factory=list)
    tmpfs: List[FilesystemRecord] = Field(default_factory=list)


# --- SMART ---


class SmartStatus(BaseModel):
    device: str
    transport: str = "ata"  # "ata" or "nvme"
    health: Optional[str] = None
    reallocated_sectors: Optional[int] = None
    pending_sectors: Optional[int] = None
    crc_errors: Optional[int] = None
    temperature_c: Optional[int] = None
    percentage_used: Optional[int] = None
    media_errors: Optional[int] = None
    note: Optional[str] = None


class SmartSection(Section):
    devices: List[SmartStatus] = Field(default_factory=list)


# --- fstab ---


class FstabEntry(BaseModel):
    device: str
    mountpoint: str
    fstype: str
    options: str = "defaults"
    dump: int = 0
    passno: int = 0


class FstabSection(Section):
    entries: List[FstabEntry] = Field(default_factory=list)


# --- Aggregates ---


class Alert(BaseModel):
    severity: Severity
    subject: str
    message: str


class AlertSection(Section):
    """Evaluated alerts. An empty list here means "no issues", not "not computed"."""

    alerts: List[Alert] = Field(default_factory=list)

    @computed_field
    @property
    def no_issues(self) -> bool:
        return not self.alerts


class Totals(BaseModel):
    total_bytes: int = 0
    used_bytes: int = 0
    available_bytes: int = 0
    use_percent: Optional[int] = None
    filesystem_count: int = 0


# --- Root report ---


class Report(BaseModel):
    """
    Full storage report. Built once per run, serialized, discarded.
    Sections are optional so a subset of collectors can run.
    """

    timestamp: str = ""
    hostname: str = ""
    options: ScanOptions = Field(default_factory=ScanOptions)

    filesystem_summary: Optional[FilesystemSection] = None
    mount_tree: Optional[MountTreeSection] = None
    topology: Optional[TopologySection] = None
    disks: Optional[DiskSection] = None
    raid: Optional[RaidSection] = None
    lvm: Optional[LvmSection] = None
    zfs: Optional[ZfsSection] = None
    btrfs: Optional[BtrfsSection] = None
    network_mounts: Optional[NetworkMountSection] = None
    large_directories: Optional[LargeDirectorySection] = None
    large_files: Optional[LargeFileSection] = None
    logs_caches: Optional[LogsCachesSection] = None
    containers: Optional[ContainerSection] = None
    deleted_files: Optional[DeletedFilesSection] = None
    swap_tmpfs: Optional[SwapSection] = None
    smart: Optional[SmartSection] = None
    fstab: Optional[FstabSection] = None

    # Populated by the aggregator after every collector has run
    alerts: Optional[AlertSection] = None
    totals: Optional[Totals] = None

    @computed_field
    @property
    def filesystems(self) -> List[FilesystemRecord]:
        return list(self.filesystem_summary.records) if self.filesystem_summary else []

    @computed_field
    @property
    def physical_disks(self) -> List[BlockDevice]:
        return list(self.disks.devices) if self.disks else []
