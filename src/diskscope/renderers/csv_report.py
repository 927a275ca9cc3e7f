"""CSV renderer: one row per large directory and large file."""

import csv
import io
from typing import Iterator, List

from jinja2 import Environment

from ..schema import Report
from ..units import kib_ceil

HEADER = ["type", "path", "size_kb", "device", "fstype", "mountpoint"]


def iter_rows(report: Report) -> Iterator[List]:
    if report.large_directories:
        for mount in report.large_directories.mounts:
            for e in mount.entries:
                yield ["directory", e.path, e.size_bytes // 1024, e.device, e.fstype, e.mountpoint]
    if report.large_files:
        for e in report.large_files.entries:
            yield ["file", e.path, kib_ceil(e.size_bytes), e.device, e.fstype, e.mountpoint]


def render(report: Report, env: Environment, color: bool = False) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADER)
    for row in iter_rows(report):
        writer.writerow(row)
    return buf.getvalue()


def parse_csv(text: str) -> List[dict]:
    """Read renderer output back into dicts with integer size_kb."""
    rows = []
    for row in csv.DictReader(io.StringIO(text)):
        row["size_kb"] = int(row["size_kb"])
        rows.append(row)
    return rows
