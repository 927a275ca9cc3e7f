"""Plain-text report renderer: sectioned, fixed-width tables, optional severity colors."""

from typing import Callable, Optional

from jinja2 import Environment
from rich.console import Console
from rich.text import Text

from ..aggregate import CRIT_PERCENT, WARN_PERCENT
from ..inspectors.mount_tree import walk
from ..schema import Report, SectionStatus, Severity

STATUS_LABELS = {
    SectionStatus.OK: "ok",
    SectionStatus.NOT_PRESENT: "not present",
    SectionStatus.UNAVAILABLE: "unavailable",
    SectionStatus.SKIPPED: "skipped",
    SectionStatus.DEGRADED: "degraded",
}

STATUS_STYLES = {
    SectionStatus.NOT_PRESENT: "dim",
    SectionStatus.UNAVAILABLE: "yellow",
    SectionStatus.SKIPPED: "yellow",
    SectionStatus.DEGRADED: "yellow",
}

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.WARNING: "yellow",
}


def make_painter(color: bool) -> Callable[..., str]:
    """Return paint(text, style): rich-styled ANSI text when color is on, plain text otherwise."""
    if not color:
        return lambda text, style=None: str(text)
    console = Console(
        force_terminal=True,
        color_system="standard",
        no_color=False,
        width=100_000,
        highlight=False,
        markup=False,
        emoji=False,
    )

    def paint(text, style: Optional[str] = None) -> str:
        if not style:
            return str(text)
        with console.capture() as capture:
            console.print(Text(str(text), style=style), end="", soft_wrap=True)
        return capture.get()

    return paint


def usage_style(percent: Optional[int]) -> str:
    if percent is None:
        return ""
    if percent >= CRIT_PERCENT:
        return "bold red"
    if percent >= WARN_PERCENT:
        return "yellow"
    return ""


def render(report: Report, env: Environment, color: bool = False) -> str:
    template = env.get_template("report.txt.j2")
    return template.render(
        r=report,
        paint=make_painter(color),
        usage_style=usage_style,
        status_label=lambda s: STATUS_LABELS.get(s, str(s)),
        status_style=lambda s: STATUS_STYLES.get(s, ""),
        severity_style=lambda s: SEVERITY_STYLES.get(s, ""),
        walk=walk,
        OK=SectionStatus.OK,
    )
