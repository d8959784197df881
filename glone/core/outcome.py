"""Per-provider synchronization outcomes.

Exactly one outcome is produced for every provider in a run. ``Failed``
wraps a ``SyncError``; ``ConflictDetected`` is not a failure but a state
left for manual resolution.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ErrorCode, SyncError, exit_code_for

__all__ = [
    "Cloned",
    "ConflictDetected",
    "Failed",
    "FastForwarded",
    "Merged",
    "SyncOutcome",
    "UpToDate",
    "describe",
    "outcome_exit_code",
]


def _short(commit_id: str | None) -> str:
    return commit_id[:10] if commit_id else "(none)"


@dataclass(frozen=True, slots=True)
class Cloned:
    head: str


@dataclass(frozen=True, slots=True)
class UpToDate:
    head: str


@dataclass(frozen=True, slots=True)
class FastForwarded:
    """Branch moved forward without a new commit.

    Attributes:
        old_id: Previous branch tip, None if the branch did not exist
        new_id: New branch tip
        flagged_paths: Untracked files overwritten by the checkout
    """

    old_id: str | None
    new_id: str
    flagged_paths: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Merged:
    commit_id: str


@dataclass(frozen=True, slots=True)
class ConflictDetected:
    paths: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Failed:
    error: SyncError


SyncOutcome = Cloned | UpToDate | FastForwarded | Merged | ConflictDetected | Failed


def describe(outcome: SyncOutcome) -> str:
    """One-line summary of an outcome."""
    match outcome:
        case Cloned(head=head):
            return f"cloned at {_short(head)}"
        case UpToDate(head=head):
            return f"up to date at {_short(head)}"
        case FastForwarded(old_id=old, new_id=new, flagged_paths=flagged):
            text = f"fast-forwarded {_short(old)} -> {_short(new)}"
            if flagged:
                text += f" ({len(flagged)} untracked file(s) overwritten)"
            return text
        case Merged(commit_id=commit_id):
            return f"merged as {_short(commit_id)}"
        case ConflictDetected(paths=paths):
            return f"conflicts in {len(paths)} file(s): {', '.join(paths)}"
        case Failed(error=error):
            return error.message


def outcome_exit_code(outcome: SyncOutcome) -> ErrorCode:
    match outcome:
        case Failed(error=error):
            return exit_code_for(error)
        case ConflictDetected():
            return ErrorCode.CONFLICT
        case _:
            return ErrorCode.OK
