"""
diskscope entry point: preflight, collect, aggregate, render.
"""

import os
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .cli import parse_args, scan_options
from .preflight import (
    OPTIONAL_INSTALL_HINT,
    PreflightError,
    ToolAvailability,
    check_privileges,
    probe_tools,
    require_tools,
)
from .renderers import render, write_output
from .schema import Report, ScanOptions

console = Console(stderr=True, highlight=False)


_DEBUG = bool(os.environ.get("DISKSCOPE_DEBUG", ""))


def _debug(msg: str) -> None:
    if _DEBUG:
        print(f"[diskscope] main: {msg}", file=sys.stderr)


def _confirm_missing_optional(tools: ToolAvailability, assume_yes: bool) -> bool:
    """Warn about missing optional tools. Returns False when the user declines to continue."""
    if not tools.missing_optional:
        return True
    console.print(
        "[yellow]Optional tools not found:[/yellow] " + " ".join(tools.missing_optional),
    )
    console.print("Related sections will be reported as not present or unavailable.")
    console.print(f"Install with: {OPTIONAL_INSTALL_HINT}", markup=False)
    if assume_yes:
        return True
    if not sys.stdin.isatty():
        console.print("Not a terminal and --yes not given; stopping.")
        return False
    try:
        answer = console.input("Continue without them? [y/N]: ", markup=False).strip().lower()
    except EOFError:
        return False
    return answer in ("y", "yes")


def _run_inspectors(host_root: Path, options: ScanOptions, tools: ToolAvailability) -> Report:
    from .inspectors import run_all
    return run_all(host_root=host_root, options=options, tools=tools)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    options = scan_options(args)
    _debug(f"options: {options.model_dump()}")

    try:
        check_privileges(options)
        tools = probe_tools()
        require_tools(tools)
    except PreflightError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(f"Hint: {exc.hint}", markup=False)
        return 1

    if not _confirm_missing_optional(tools, args.yes):
        return 0

    report = _run_inspectors(args.host_root, options, tools)
    color = (
        args.output_format == "txt"
        and args.output_file is None
        and not args.no_color
        and sys.stdout.isatty()
    )
    text = render(report, args.output_format, color=color)
    try:
        write_output(text, args.output_file)
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] cannot write {escape(str(args.output_file))}: {escape(str(exc))}")
        return 1
    if args.output_file is not None:
        console.print(f"Report written to {args.output_file}", markup=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
