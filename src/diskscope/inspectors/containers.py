"""Containers and packaged apps: docker system df, snap list, flatpak list."""

import json
from pathlib import Path
from typing import List

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import ContainerSection, DockerUsage, FlatpakApp, SectionStatus, SnapPackage
from ..units import parse_size
from .caches import dir_size


def _parse_docker_df(text: str) -> List[DockerUsage]:
    """Parse `docker system df --format '{{json .}}'` (one JSON object per line)."""
    rows: List[DockerUsage] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        data = json.loads(line)
        size = str(data.get("Size", ""))
        rows.append(DockerUsage(
            type=str(data.get("Type", "")),
            total_count=str(data.get("TotalCount", "")),
            active=str(data.get("Active", "")),
            size=size,
            reclaimable=str(data.get("Reclaimable", "")),
            size_bytes=parse_size(size, binary=False),
        ))
    return rows


def _parse_snap_list(text: str) -> List[SnapPackage]:
    snaps: List[SnapPackage] = []
    for i, line in enumerate(text.splitlines()):
        if i == 0 and line.startswith("Name"):
            continue
        parts = line.split()
        if len(parts) < 3:
            continue
        snaps.append(SnapPackage(
            name=parts[0],
            version=parts[1],
            rev=parts[2],
            tracking=parts[3] if len(parts) > 3 else "",
        ))
    return snaps


def _parse_flatpak_list(text: str) -> List[FlatpakApp]:
    apps: List[FlatpakApp] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        apps.append(FlatpakApp(
            application=parts[0].strip(),
            name=parts[1].strip() if len(parts) > 1 else "",
            size=parts[2].strip() if len(parts) > 2 else "",
        ))
    return apps


def run(host_root: Path, executor: Executor, tools: ToolAvailability) -> ContainerSection:
    section = ContainerSection()
    host_root = Path(host_root)

    if tools.has("docker"):
        r = executor(["docker", "system", "df", "--format", "{{json .}}"])
        if r.returncode == 0:
            try:
                section.docker = _parse_docker_df(r.stdout)
                section.docker_status = SectionStatus.OK
            except json.JSONDecodeError:
                section.docker_status = SectionStatus.UNAVAILABLE
                section.notes.append("docker system df output not understood")
        else:
            section.docker_status = SectionStatus.UNAVAILABLE
            section.notes.append("Docker is not running or not accessible")

    if tools.has("snap"):
        r = executor(["snap", "list"])
        if r.returncode == 0:
            section.snaps = _parse_snap_list(r.stdout)
            section.snap_status = SectionStatus.OK
            snaps_dir = host_root / "var/lib/snapd/snaps"
            if snaps_dir.is_dir():
                section.snaps_total_bytes = dir_size(executor, snaps_dir)
        else:
            section.snap_status = SectionStatus.UNAVAILABLE
            section.notes.append("snap list failed")

    if tools.has("flatpak"):
        r = executor(["flatpak", "list", "--app", "--columns=application,name,size"])
        if r.returncode == 0:
            section.flatpaks = _parse_flatpak_list(r.stdout)
            section.flatpak_status = SectionStatus.OK
        else:
            section.flatpak_status = SectionStatus.UNAVAILABLE
            section.notes.append("flatpak list failed")

    statuses = (section.docker_status, section.snap_status, section.flatpak_status)
    if SectionStatus.OK in statuses:
        if SectionStatus.UNAVAILABLE in statuses:
            section.status = SectionStatus.DEGRADED
    elif SectionStatus.UNAVAILABLE in statuses:
        section.status = SectionStatus.UNAVAILABLE
    else:
        section.mark(SectionStatus.NOT_PRESENT, "Docker, snap and flatpak not installed")
    return section
