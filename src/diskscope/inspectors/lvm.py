"""LVM: physical volumes, volume groups and logical volumes via the JSON report format."""

import json
from typing import List, Optional

from ..executor import Executor
from ..preflight import ToolAvailability
from ..schema import (
    LvmSection,
    LvmVolumeStatus,
    PhysicalVolume,
    SectionStatus,
    VolumeGroup,
)

_REPORT_ARGS = ["--reportformat", "json", "--units", "b", "--nosuffix"]


def _num(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(float(str(value).rstrip("B")))
    except ValueError:
        return None


def _pct(value) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _rows(text: str, key: str) -> List[dict]:
    data = json.loads(text)
    rows: List[dict] = []
    for report in data.get("report") or []:
        rows.extend(report.get(key) or [])
    return rows


def _parse_pvs(text: str) -> List[PhysicalVolume]:
    return [
        PhysicalVolume(
            pv_name=row.get("pv_name", ""),
            vg_name=row.get("vg_name", ""),
            size_bytes=_num(row.get("pv_size")),
            free_bytes=_num(row.get("pv_free")),
            used_bytes=_num(row.get("pv_used")),
        )
        for row in _rows(text, "pv")
    ]


def _parse_vgs(text: str) -> List[VolumeGroup]:
    return [
        VolumeGroup(
            vg_name=row.get("vg_name", ""),
            pv_count=_num(row.get("pv_count")),
            lv_count=_num(row.get("lv_count")),
            size_bytes=_num(row.get("vg_size")),
            free_bytes=_num(row.get("vg_free")),
        )
        for row in _rows(text, "vg")
    ]


def _parse_lvs(text: str) -> List[LvmVolumeStatus]:
    return [
        LvmVolumeStatus(
            lv_name=row.get("lv_name", ""),
            vg_name=row.get("vg_name", ""),
            size_bytes=_num(row.get("lv_size")),
            data_percent=_pct(row.get("data_percent")),
            metadata_percent=_pct(row.get("metadata_percent")),
            attr=row.get("lv_attr", ""),
        )
        for row in _rows(text, "lv")
    ]


def run(executor: Executor, tools: ToolAvailability) -> LvmSection:
    section = LvmSection()
    if not all(tools.has(t) for t in ("pvs", "vgs", "lvs")):
        section.mark(SectionStatus.NOT_PRESENT, "LVM tools not installed")
        return section

    queries = [
        (["pvs"] + _REPORT_ARGS + ["-o", "pv_name,vg_name,pv_size,pv_free,pv_used"], _parse_pvs, "physical_volumes"),
        (["vgs"] + _REPORT_ARGS + ["-o", "vg_name,pv_count,lv_count,vg_size,vg_free"], _parse_vgs, "volume_groups"),
        (["lvs"] + _REPORT_ARGS + ["-o", "lv_name,vg_name,lv_size,data_percent,metadata_percent,lv_attr"], _parse_lvs, "logical_volumes"),
    ]
    failures = 0
    for cmd, parser, attr in queries:
        r = executor(cmd)
        if r.returncode != 0 or not r.stdout.strip():
            failures += 1
            section.notes.append(f"{cmd[0]} failed: {(r.stderr or '').strip() or 'no output'}")
            continue
        try:
            setattr(section, attr, parser(r.stdout))
        except (json.JSONDecodeError, AttributeError) as exc:
            failures += 1
            section.notes.append(f"{cmd[0]} output not understood: {exc}")

    if failures == len(queries):
        section.status = SectionStatus.UNAVAILABLE
    elif failures:
        section.status = SectionStatus.DEGRADED
    elif not section.physical_volumes and not section.volume_groups:
        section.mark(SectionStatus.NOT_PRESENT, "No LVM physical volumes")
    return section
