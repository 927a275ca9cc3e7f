"""JSON renderer: the full report model, with top-level filesystems and physical_disks arrays."""

import json

from jinja2 import Environment

from ..schema import Report


def render(report: Report, env: Environment, color: bool = False) -> str:
    data = report.model_dump(mode="json")
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def load_report(text: str) -> Report:
    """Rebuild a Report from renderer output. Computed arrays are recomputed, not read."""
    return Report.model_validate_json(text)
