"""
Command execution abstraction.

Collectors never call subprocess directly. They use the provided executor
so that tests can inject fixture output instead of running real commands.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Protocol

DEFAULT_TIMEOUT = 300


@dataclass
class RunResult:
    """Result of running a command (or reading a fixture)."""

    stdout: str
    stderr: str
    returncode: int
    timed_out: bool = False


class Executor(Protocol):
    """Protocol for command execution. Implementations may run commands or read fixtures."""

    def __call__(
        self,
        cmd: List[str],
        *,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> RunResult:
        """Execute command (or resolve to fixture). Returns stdout, stderr, returncode."""
        ...


def subprocess_executor(
    cmd: List[str],
    *,
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> RunResult:
    """Default implementation: run the command via subprocess."""
    import subprocess
    limit = timeout or DEFAULT_TIMEOUT
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=cwd,
            timeout=limit,
            env={**os.environ, "LC_ALL": "C", "LANG": "C", "PATH": _search_path()},
        )
        return RunResult(
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout or ""
        if isinstance(partial, bytes):
            partial = partial.decode(errors="replace")
        return RunResult(
            stdout=partial,
            stderr=f"Command timed out after {e.timeout}s",
            returncode=-1,
            timed_out=True,
        )
    except FileNotFoundError:
        return RunResult(stdout="", stderr="Command not found", returncode=127)
    except PermissionError as e:
        return RunResult(stdout="", stderr=str(e), returncode=126)


def _search_path() -> str:
    return os.environ.get("PATH") or "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


def make_executor(host_root: str = "/") -> Executor:
    """Create the default executor that runs commands with host_root as working directory."""
    def run(
        cmd: List[str],
        *,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> RunResult:
        return subprocess_executor(cmd, cwd=cwd or host_root, timeout=timeout)
    return run
