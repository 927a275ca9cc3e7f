"""
Renderers turn a finished Report into text, JSON or CSV.
Each renderer takes the report and a jinja2 Environment and returns a string;
identical reports always render to identical output.
"""

import sys
from pathlib import Path
from typing import Callable, Dict, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined

from ..schema import Report
from ..units import format_size
from .csv_report import render as render_csv
from .json_report import render as render_json
from .text import render as render_text

RENDERERS: Dict[str, Callable[..., str]] = {
    "txt": render_text,
    "json": render_json,
    "csv": render_csv,
}


def _pct(value: Optional[int]) -> str:
    return "-" if value is None else f"{value}%"


def _dash(value) -> str:
    if value is None or value == "":
        return "-"
    return str(value)


def make_env() -> Environment:
    env = Environment(
        loader=PackageLoader("diskscope", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["size"] = format_size
    env.filters["pct"] = _pct
    env.filters["dash"] = _dash
    return env


def render(report: Report, fmt: str = "txt", env: Optional[Environment] = None, color: bool = False) -> str:
    if fmt not in RENDERERS:
        raise ValueError(f"Unknown output format: {fmt}")
    return RENDERERS[fmt](report, env or make_env(), color=color)


def write_output(text: str, output_file: Optional[Path] = None) -> None:
    """Write rendered output to a file, or to standard output when no file is given."""
    if output_file is None:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    output_file = Path(output_file)
    if output_file.parent and not output_file.parent.exists():
        output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(text, encoding="utf-8")
