"""Error taxonomy and CLI exit codes.

``SyncError`` is the single error value carried by every fallible operation in
glone. ``ErrorCode`` maps the kinds onto stable process exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "ErrorKind", "SyncError", "exit_code_for"]


ErrorKind = Literal[
    "config_invalid",
    "credential_missing",
    "auth_rejected",
    "auth_required",
    "repository_open_failed",
    "network_fetch_failed",
    "merge_base_not_found",
    "commit_failed",
]


@dataclass(frozen=True, slots=True)
class SyncError:
    """Failure of one synchronization step.

    Attributes:
        kind: Error category
        message: Human readable description
        hint: Optional suggestion for fixing the problem
    """

    kind: ErrorKind
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (invalid config, bad arguments)
    - 2: Auth error (missing credentials, rejected key)
    - 3: Conflict (merge left for manual resolution)
    - 4: Network error (fetch or clone failed)
    - 5: I/O error (repository unusable, commit failed)
    """

    OK = 0
    USER_ERROR = 1
    AUTH_ERROR = 2
    CONFLICT = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


_KIND_CODES: dict[ErrorKind, ErrorCode] = {
    "config_invalid": ErrorCode.USER_ERROR,
    "credential_missing": ErrorCode.AUTH_ERROR,
    "auth_rejected": ErrorCode.AUTH_ERROR,
    "auth_required": ErrorCode.AUTH_ERROR,
    "repository_open_failed": ErrorCode.IO_ERROR,
    "network_fetch_failed": ErrorCode.NETWORK_ERROR,
    "merge_base_not_found": ErrorCode.IO_ERROR,
    "commit_failed": ErrorCode.IO_ERROR,
}


def exit_code_for(error: SyncError) -> ErrorCode:
    """Get the exit code for an error kind."""
    return _KIND_CODES[error.kind]
