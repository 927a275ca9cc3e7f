"""Preflight checks: external tool availability and privilege for SMART."""

import os
import shutil
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

from .schema import ScanOptions

REQUIRED_TOOLS = ("df", "findmnt", "lsblk", "du", "find")
OPTIONAL_TOOLS = (
    "lsof",
    "mdadm",
    "pvs",
    "vgs",
    "lvs",
    "zpool",
    "btrfs",
    "docker",
    "snap",
    "flatpak",
    "smartctl",
    "journalctl",
    "swapon",
)

REQUIRED_INSTALL_HINT = "sudo apt update && sudo apt install -y coreutils util-linux findutils"
OPTIONAL_INSTALL_HINT = (
    "sudo apt install -y lsof mdadm lvm2 zfsutils-linux btrfs-progs "
    "smartmontools docker.io snapd flatpak"
)


class PreflightError(Exception):
    """Fatal precondition failure. The run must stop with exit code 1."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


@dataclass
class ToolAvailability:
    present: Set[str] = field(default_factory=set)
    missing_required: List[str] = field(default_factory=list)
    missing_optional: List[str] = field(default_factory=list)

    def has(self, tool: str) -> bool:
        return tool in self.present

    @classmethod
    def everything(cls) -> "ToolAvailability":
        """All known tools present. Used when the executor is a fixture."""
        return cls(present=set(REQUIRED_TOOLS) | set(OPTIONAL_TOOLS))

    def without(self, *tools: str) -> "ToolAvailability":
        gone = set(tools)
        return ToolAvailability(
            present=self.present - gone,
            missing_required=self.missing_required + [t for t in tools if t in REQUIRED_TOOLS],
            missing_optional=self.missing_optional + [t for t in tools if t in OPTIONAL_TOOLS],
        )


def probe_tools(
    which: Callable[[str], Optional[str]] = shutil.which,
    required: Iterable[str] = REQUIRED_TOOLS,
    optional: Iterable[str] = OPTIONAL_TOOLS,
) -> ToolAvailability:
    """Check which tools resolve on PATH. Order of the missing lists follows the inputs."""
    result = ToolAvailability()
    for tool in required:
        if which(tool):
            result.present.add(tool)
        else:
            result.missing_required.append(tool)
    for tool in optional:
        if which(tool):
            result.present.add(tool)
        else:
            result.missing_optional.append(tool)
    return result


def require_tools(tools: ToolAvailability) -> None:
    if tools.missing_required:
        raise PreflightError(
            "Missing required tools: " + " ".join(tools.missing_required),
            hint=REQUIRED_INSTALL_HINT,
        )


def is_privileged(geteuid: Optional[Callable[[], int]] = None) -> bool:
    geteuid = geteuid or os.geteuid
    return geteuid() == 0


def check_privileges(options: ScanOptions, geteuid: Optional[Callable[[], int]] = None) -> None:
    """SMART probing needs root; refuse early instead of collecting a half-empty section."""
    if options.with_smart and not is_privileged(geteuid):
        raise PreflightError("--with-smart requires root privileges", hint="sudo diskscope --with-smart")
