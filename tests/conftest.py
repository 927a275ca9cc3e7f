"""
Shared fixtures: a fixture executor that maps storage commands to canned tool output,
and a fixture host tree for file-based reads (/etc/fstab, /proc/mdstat, cache dirs).
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from diskscope.executor import RunResult
from diskscope.preflight import ToolAvailability

FIXTURES = Path(__file__).parent / "fixtures"
HOST_ROOT = FIXTURES / "host"
FIXED_NOW = datetime(2026, 10, 17, 8, 30, 0, tzinfo=timezone.utc)

MISSING_PATHS = ("/nope",)

SMART_FIXTURES = {
    "/dev/sda": "smartctl_ata.txt",
    "/dev/sdb": "smartctl_ata.txt",
    "/dev/sdc": "smartctl_ata_failed.txt",
    "/dev/nvme0n1": "smartctl_nvme.txt",
}


def _ok(name: str) -> RunResult:
    return RunResult(stdout=(FIXTURES / name).read_text(), stderr="", returncode=0)


def _slug(mountpoint: str) -> str:
    return "root" if mountpoint == "/" else mountpoint.strip("/").replace("/", "_")


def _optional(name: str) -> RunResult:
    path = FIXTURES / name
    if path.exists():
        return RunResult(stdout=path.read_text(), stderr="", returncode=0)
    return RunResult(stdout="", stderr="", returncode=0)


def _df_for_path(path: str) -> RunResult:
    """Mimic `df -- PATH`: one row for the mount that contains PATH."""
    if path.startswith(MISSING_PATHS):
        return RunResult(stdout="", stderr=f"df: {path}: No such file or directory", returncode=1)
    header, *rows = (FIXTURES / "df_output.txt").read_text().splitlines()
    best = None
    for line in rows:
        target = line.split(None, 7)[7]
        if path == target or path.startswith(target.rstrip("/") + "/"):
            if best is None or len(target) > len(best[0]):
                best = (target, line)
    return RunResult(stdout=f"{header}\n{best[1]}\n", stderr="", returncode=0)


def fixture_executor(cmd, cwd=None, timeout=None):
    """Executor that returns fixture file content for known commands."""
    tool = cmd[0]
    if tool == "df" and "--" in cmd:
        return _df_for_path(cmd[-1])
    if tool == "df":
        return _ok("df_output.txt")
    if tool == "findmnt":
        return _ok("findmnt.json")
    if tool == "lsblk" and "-d" in cmd:
        return _ok("lsblk_disks.json")
    if tool == "lsblk" and "-s" in cmd:
        path = FIXTURES / f"lsblk_inverse_{cmd[-1].rsplit('/', 1)[-1]}.json"
        if path.exists():
            return RunResult(stdout=path.read_text(), stderr="", returncode=0)
        return RunResult(stdout="", stderr=f"lsblk: {cmd[-1]}: not a block device", returncode=32)
    if tool == "mdadm" and "--detail" in cmd:
        return _ok(f"mdadm_detail_{cmd[-1].rsplit('/', 1)[-1]}.txt")
    if tool in ("pvs", "vgs", "lvs"):
        return _ok(f"{tool}.json")
    if tool == "zpool":
        return _ok("zpool_list.txt")
    if tool == "btrfs" and "show" in cmd:
        return _ok("btrfs_show.txt")
    if tool == "btrfs" and "usage" in cmd:
        return _optional(f"btrfs_usage_{_slug(cmd[-1])}.txt")
    if tool == "du" and "-sk" in cmd:
        return RunResult(stdout=f"2048\t{cmd[-1]}\n", stderr="", returncode=0)
    if tool == "du":
        return _optional(f"du_{_slug(cmd[-1])}.txt")
    if tool == "find":
        return _optional(f"find_{_slug(cmd[1])}.txt")
    if tool == "journalctl":
        return _ok("journalctl_disk_usage.txt")
    if tool == "docker":
        return _ok("docker_system_df.txt")
    if tool == "snap":
        return _ok("snap_list.txt")
    if tool == "flatpak":
        return _ok("flatpak_list.txt")
    if tool == "lsof":
        return _ok("lsof_deleted.txt")
    if tool == "swapon":
        return _ok("swapon.txt")
    if tool == "smartctl":
        return _ok(SMART_FIXTURES[cmd[-1]])
    return RunResult(stdout="", stderr="unknown command", returncode=1)


@pytest.fixture
def executor():
    return fixture_executor


@pytest.fixture
def host_root():
    return HOST_ROOT


@pytest.fixture
def all_tools():
    return ToolAvailability.everything()
