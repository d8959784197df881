"""Remote transfers: clone and fetch with progress reporting.

Both operations take an explicit credential strategy and a progress
observer. Transfer progress is parsed from ``git --progress`` output and
forwarded as monotonically non-decreasing counters, so a renderer never has
to look at repository internals.

Usage:
    strategy = resolve_strategy(provider.auth)
    match fetch(Repository(path), ["main"], strategy, observer, label="origin"):
        case Ok(commit_id):
            print(f"remote tip: {commit_id}")
        case Err(e):
            print(f"fetch failed: {e.message}")
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from glone.core.errors import SyncError
from glone.core.result import Err, Ok, Result
from glone.git.credentials import CredentialStrategy
from glone.git.repository import Repository, branch_ref
from glone.platform.process import ProcessError, run_streaming

__all__ = [
    "DEFAULT_NETWORK_TIMEOUT",
    "NullObserver",
    "ProgressObserver",
    "ProgressTracker",
    "TransferProgress",
    "classify_transfer_error",
    "clone",
    "fetch",
]

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_TIMEOUT = 3 * 60.0

_RECEIVING = re.compile(
    r"Receiving objects:\s+\d+%\s+\((\d+)/(\d+)\)(?:,\s+([\d.]+)\s+(bytes|KiB|MiB|GiB))?"
)

_UNITS = {"bytes": 1, "KiB": 1024, "MiB": 1024**2, "GiB": 1024**3}

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "terminal prompts disabled",
    "permission denied (publickey",
    "host key verification failed",
    "access denied",
    "invalid username or password",
)


@dataclass(frozen=True, slots=True)
class TransferProgress:
    """Counters of one network transfer.

    Attributes:
        received: Objects received so far
        total: Objects announced by the remote (may grow during the transfer)
        received_bytes: Bytes received so far
    """

    received: int = 0
    total: int = 0
    received_bytes: int = 0


class ProgressObserver(Protocol):
    """Receives transfer progress, one label per repository."""

    def started(self, label: str) -> None: ...

    def advanced(self, label: str, progress: TransferProgress) -> None: ...

    def finished(self, label: str, ok: bool) -> None: ...


class NullObserver:
    """Observer that ignores everything."""

    def started(self, label: str) -> None:
        pass

    def advanced(self, label: str, progress: TransferProgress) -> None:
        pass

    def finished(self, label: str, ok: bool) -> None:
        pass


class ProgressTracker:
    """Turns git progress lines into TransferProgress updates."""

    def __init__(self, label: str, observer: ProgressObserver) -> None:
        self._label = label
        self._observer = observer
        self.progress = TransferProgress()

    def feed(self, line: str) -> None:
        match = _RECEIVING.search(line)
        if match is None:
            return

        received = int(match.group(1))
        total = int(match.group(2))
        received_bytes = self.progress.received_bytes
        if match.group(3) is not None:
            received_bytes = int(float(match.group(3)) * _UNITS[match.group(4)])

        current = self.progress
        updated = TransferProgress(
            received=max(current.received, received),
            total=max(current.total, total),
            received_bytes=max(current.received_bytes, received_bytes),
        )
        if updated != current:
            self.progress = updated
            self._observer.advanced(self._label, updated)


def classify_transfer_error(error: ProcessError, strategy: CredentialStrategy) -> SyncError:
    """Map a failed git transfer to an error kind."""
    detail = error.stderr.strip() or str(error)
    if error.timed_out:
        return SyncError("network_fetch_failed", detail, hint="Use --timeout to allow more time")

    lowered = detail.lower()
    if any(marker in lowered for marker in _AUTH_MARKERS):
        if strategy.anonymous:
            return SyncError(
                "auth_required",
                f"the remote requires authentication: {detail}",
                hint="Configure token or ssh auth for this provider",
            )
        return SyncError("auth_rejected", f"the remote rejected the credentials: {detail}")
    return SyncError("network_fetch_failed", detail)


def _environment(extra: Mapping[str, str]) -> dict[str, str]:
    env = dict(os.environ)
    env.update(extra)
    return env


def clone(
    url: str,
    dest: Path,
    branch: str,
    strategy: CredentialStrategy,
    observer: ProgressObserver,
    *,
    label: str,
    timeout: float = DEFAULT_NETWORK_TIMEOUT,
) -> Result[str, SyncError]:
    """Clone ``branch`` of ``url`` into ``dest`` and return the checked out commit.

    The clone is made in a temporary sibling directory and renamed into place
    only once it is complete, so a failure leaves nothing at ``dest``.
    """
    auth = strategy.materialize(os.environ)
    if isinstance(auth, Err):
        return auth

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{dest.name}.", suffix=".glone", dir=dest.parent))
    except OSError as e:
        return Err(SyncError("repository_open_failed", f"cannot prepare {dest}: {e}"))

    tracker = ProgressTracker(label, observer)
    cmd = [
        "git",
        *auth.value.git_options(),
        "clone",
        "--progress",
        "--branch",
        branch,
        "--",
        url,
        str(staging),
    ]

    observer.started(label)
    logger.info("Cloning %s into %s", url, dest)
    result = run_streaming(
        cmd,
        cwd=dest.parent,
        on_line=tracker.feed,
        env=_environment(auth.value.env),
        timeout=timeout,
    )
    if isinstance(result, Err):
        observer.finished(label, False)
        shutil.rmtree(staging, ignore_errors=True)
        return Err(classify_transfer_error(result.error, strategy))

    try:
        if dest.is_dir():
            dest.rmdir()
        staging.rename(dest)
    except OSError as e:
        observer.finished(label, False)
        shutil.rmtree(staging, ignore_errors=True)
        return Err(SyncError("repository_open_failed", f"cannot move clone into {dest}: {e}"))

    observer.finished(label, True)
    match Repository(dest).find_ref(branch_ref(branch)):
        case Ok(None):
            message = f"clone of {url} has no branch {branch}"
            return Err(SyncError("repository_open_failed", message))
        case Ok(head):
            return Ok(head)
        case Err(e):
            return Err(e)


def fetch(
    repo: Repository,
    refs: Sequence[str],
    strategy: CredentialStrategy,
    observer: ProgressObserver,
    *,
    label: str,
    remote: str = "origin",
    timeout: float = DEFAULT_NETWORK_TIMEOUT,
) -> Result[str, SyncError]:
    """Fetch ``refs`` (and all tags) from ``remote``; return the fetched tip.

    The fetch is atomic: when it fails or times out no reference is updated.
    """
    auth = strategy.materialize(os.environ)
    if isinstance(auth, Err):
        return auth

    tracker = ProgressTracker(label, observer)
    cmd = [
        "git",
        "-C",
        str(repo.path),
        *auth.value.git_options(),
        "fetch",
        "--progress",
        "--tags",
        "--atomic",
        remote,
        *refs,
    ]

    observer.started(label)
    logger.info("Fetching %s for %s", remote, label)
    result = run_streaming(
        cmd,
        cwd=repo.path,
        on_line=tracker.feed,
        env=_environment(auth.value.env),
        timeout=timeout,
    )
    if isinstance(result, Err):
        observer.finished(label, False)
        return Err(classify_transfer_error(result.error, strategy))

    observer.finished(label, True)
    return repo.fetch_head()
