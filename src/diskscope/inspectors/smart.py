"""
SMART health: smartctl -H -A per physical disk.

ATA/SATA devices report a vendor attribute table (RAW_VALUE column); NVMe devices
report a fixed health log with named fields. The two are parsed separately.
"""

import os
import re
import sys
from typing import List, Optional

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import BlockDevice, ScanOptions, SectionStatus, SmartSection, SmartStatus

SMART_TIMEOUT = 30

ATA_ATTRIBUTES = {
    "Reallocated_Sector_Ct": "reallocated_sectors",
    "Current_Pending_Sector": "pending_sectors",
    "UDMA_CRC_Error_Count": "crc_errors",
    "Temperature_Celsius": "temperature_c",
}

_ATTR_RE = re.compile(r"^\s*\d+\s+(\S+)\s+0x[0-9a-fA-F]+(?:\s+\S+){6}\s+(\d+)")
_HEALTH_RE = re.compile(r"(?:SMART overall-health self-assessment test result|SMART Health Status):\s*(\S+)")

_DEBUG = bool(os.environ.get("DISKSCOPE_DEBUG", ""))


def _debug(msg: str) -> None:
    if _DEBUG:
        print(f"[diskscope] smart: {msg}", file=sys.stderr)


def _leading_int(value: str) -> Optional[int]:
    m = re.match(r"\s*([\d,]+)", value)
    if not m:
        return None
    return int(m.group(1).replace(",", ""))


def _is_nvme(device: str, text: str) -> bool:
    return "nvme" in device or "NVMe" in text


def _parse_ata(device: str, text: str) -> SmartStatus:
    status = SmartStatus(device=device, transport="ata")
    h = _HEALTH_RE.search(text)
    if h:
        status.health = h.group(1).rstrip("!")
    for line in text.splitlines():
        m = _ATTR_RE.match(line)
        if not m:
            continue
        field = ATA_ATTRIBUTES.get(m.group(1))
        if field and getattr(status, field) is None:
            setattr(status, field, int(m.group(2)))
        elif m.group(1) == "Airflow_Temperature_Cel" and status.temperature_c is None:
            status.temperature_c = int(m.group(2))
    return status


def _parse_nvme(device: str, text: str) -> SmartStatus:
    status = SmartStatus(device=device, transport="nvme")
    h = _HEALTH_RE.search(text)
    if h:
        status.health = h.group(1).rstrip("!")
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key == "Temperature":
            status.temperature_c = _leading_int(value)
        elif key == "Percentage Used":
            status.percentage_used = _leading_int(value)
        elif key == "Media and Data Integrity Errors":
            status.media_errors = _leading_int(value)
    return status


def parse_smartctl(device: str, text: str) -> SmartStatus:
    if _is_nvme(device, text):
        return _parse_nvme(device, text)
    return _parse_ata(device, text)


def run(
    executor: Executor,
    disks: List[BlockDevice],
    options: ScanOptions,
    tools: ToolAvailability,
) -> SmartSection:
    section = SmartSection()
    if not options.with_smart:
        section.mark(SectionStatus.SKIPPED, "SMART not requested (use --with-smart)")
        return section
    if not tools.has("smartctl"):
        section.mark(SectionStatus.NOT_PRESENT, "smartmontools not installed")
        return section

    for disk in disks:
        r = executor(["smartctl", "-H", "-A", disk.device], timeout=SMART_TIMEOUT)
        if r.timed_out:
            _debug(f"{disk.device}: timed out")
            section.devices.append(SmartStatus(device=disk.device, note=f"Timed out after {SMART_TIMEOUT}s"))
            section.degrade(f"{disk.device}: smartctl timed out")
            continue
        # smartctl's exit status is a bit mask that is non-zero for many healthy disks
        if not r.stdout.strip():
            section.devices.append(SmartStatus(device=disk.device, note="No SMART data"))
            section.degrade(f"{disk.device}: no SMART data")
            continue
        status = parse_smartctl(disk.device, r.stdout)
        if status.health is None and "open device" in r.stdout.lower():
            status.note = "Device could not be opened"
        section.devices.append(status)

    if not disks:
        section.mark(SectionStatus.NOT_PRESENT, "No disks to probe")
    return section
