"""Command-line flags for diskscope."""

import argparse
import os
from pathlib import Path
from typing import List, Optional

from .mounts import parse_only
from .schema import ScanOptions


class _OutputAction(argparse.Action):
    """--json/--csv/--txt [FILE]: pick the output format; the last one given wins."""

    def __init__(self, option_strings, dest, fmt="txt", **kwargs):
        self.fmt = fmt
        super().__init__(option_strings, dest, nargs="?", **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        namespace.output_format = self.fmt
        namespace.output_file = Path(values) if values else None


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {n}")
    return n


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diskscope",
        description="Collect a storage diagnostic report for this Linux host.",
    )
    mode = parser.add_argument_group("scan mode")
    mode.add_argument("--quick", action="store_true", help="Skip the large-file scan")
    mode.add_argument("--deep", action="store_true", help="Scan directories two levels deep")
    mode.add_argument("--topn", type=_positive_int, default=20, metavar="N",
                      help="Entries per top-N list (default: 20)")
    mode.add_argument("--min", dest="min_size_mb", type=_positive_int, default=100, metavar="MB",
                      help="Large-file threshold in MB (default: 100)")
    mode.add_argument("--with-smart", action="store_true", help="Probe SMART health (requires root)")
    mode.add_argument("--include-pseudo", action="store_true",
                      help="Include pseudo filesystems (tmpfs, proc, ...) in the analysis")
    mode.add_argument("--only", metavar="PATHS",
                      help="Comma-separated mountpoints to analyze instead of discovering them")

    out = parser.add_argument_group("output")
    parser.set_defaults(output_format="txt", output_file=None)
    for flag, fmt in (("--json", "json"), ("--csv", "csv"), ("--txt", "txt")):
        out.add_argument(flag, action=_OutputAction, fmt=fmt, dest="output_file", metavar="FILE",
                         help=f"Write {fmt.upper()} output (to FILE, or stdout)")
    out.add_argument("--no-color", action="store_true",
                     help="Disable colored text output (also honors NO_COLOR)")

    parser.add_argument("-y", "--yes", action="store_true",
                        help="Do not prompt; continue when optional tools are missing")
    parser.add_argument("--host-root", type=Path, default=Path("/"),
                        help="Root of the host filesystem to read files from (default: /)")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if _env_flag("DISKSCOPE_ASSUME_YES"):
        args.yes = True
    if "NO_COLOR" in os.environ:
        args.no_color = True
    return args


def scan_options(args: argparse.Namespace) -> ScanOptions:
    return ScanOptions(
        quick=args.quick,
        deep=args.deep,
        topn=args.topn,
        min_size_mb=args.min_size_mb,
        with_smart=args.with_smart,
        include_pseudo=args.include_pseudo,
        only=parse_only(args.only),
    )
