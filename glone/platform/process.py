"""Subprocess execution with Result-based error handling.

Provides wrappers around subprocess that capture output and return
structured errors instead of requiring try/except blocks.

Usage:
    result = run(["git", "rev-parse", "HEAD"], cwd=repo_path)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import os
import re
import signal
import subprocess
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from glone.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_streaming"]

# Progress output from git separates updates with carriage returns
_LINE_SPLIT = re.compile(r"[\r\n]+")

# Streaming commands run in their own process group; a timeout kills the
# whole group, helpers like git-remote-https and ssh included
_IS_UNIX = sys.platform != "win32"


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
        timed_out: True if the process was killed after the timeout.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def run_streaming(
    cmd: list[str],
    cwd: Path,
    on_line: Callable[[str], None],
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command, handing each stderr line to ``on_line`` as it arrives.

    Lines are split on both newlines and carriage returns so that in-place
    progress updates are delivered one by one. Stdout is discarded.

    Returns:
        Ok(stderr) on success, Err(ProcessError) on failure or timeout.
    """
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            start_new_session=_IS_UNIX,
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    expired = threading.Event()

    def _kill() -> None:
        expired.set()
        if not _IS_UNIX:
            proc.kill()
            return
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass  # already gone

    timer = threading.Timer(timeout, _kill) if timeout is not None else None
    if timer is not None:
        timer.daemon = True
        timer.start()

    assert proc.stderr is not None
    captured: list[str] = []
    pending = ""
    try:
        fd = proc.stderr.fileno()
        while True:
            chunk = os.read(fd, 4096)
            if not chunk:
                break
            pending += chunk.decode("utf-8", errors="replace")
            *lines, pending = _LINE_SPLIT.split(pending)
            for line in lines:
                if line:
                    captured.append(line)
                    on_line(line)
        if pending:
            captured.append(pending)
            on_line(pending)
        returncode = proc.wait()
    finally:
        if timer is not None:
            timer.cancel()
        proc.stderr.close()

    stderr = "\n".join(captured)
    if expired.is_set():
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
            )
        )
    if returncode != 0:
        return Err(
            ProcessError(command=tuple(cmd), returncode=returncode, stdout="", stderr=stderr)
        )
    return Ok(stderr)
