"""Tests for glone.core.outcome module."""

from __future__ import annotations

from glone.core.errors import ErrorCode, SyncError
from glone.core.outcome import (
    Cloned,
    ConflictDetected,
    Failed,
    FastForwarded,
    Merged,
    UpToDate,
    describe,
    outcome_exit_code,
)

A = "a" * 40
B = "b" * 40


class TestDescribe:
    def test_cloned(self) -> None:
        assert describe(Cloned(head=A)) == f"cloned at {A[:10]}"

    def test_up_to_date(self) -> None:
        assert describe(UpToDate(head=A)) == f"up to date at {A[:10]}"

    def test_fast_forwarded(self) -> None:
        assert describe(FastForwarded(old_id=A, new_id=B)) == f"fast-forwarded {A[:10]} -> {B[:10]}"

    def test_fast_forward_from_nothing(self) -> None:
        text = describe(FastForwarded(old_id=None, new_id=B, flagged_paths=("x.txt",)))
        assert text.startswith("fast-forwarded (none) -> ")
        assert "1 untracked file(s) overwritten" in text

    def test_merged(self) -> None:
        assert describe(Merged(commit_id=A)) == f"merged as {A[:10]}"

    def test_conflicts_list_paths(self) -> None:
        text = describe(ConflictDetected(paths=("a.txt", "b/c.txt")))
        assert text == "conflicts in 2 file(s): a.txt, b/c.txt"

    def test_failed_uses_error_message(self) -> None:
        assert describe(Failed(SyncError("commit_failed", "disk full"))) == "disk full"


class TestExitCode:
    def test_successes_are_ok(self) -> None:
        for outcome in (
            Cloned(head=A),
            UpToDate(head=A),
            FastForwarded(old_id=A, new_id=B),
            Merged(commit_id=A),
        ):
            assert outcome_exit_code(outcome) is ErrorCode.OK

    def test_conflict(self) -> None:
        assert outcome_exit_code(ConflictDetected(paths=("a",))) is ErrorCode.CONFLICT

    def test_failed_maps_kind(self) -> None:
        failed = Failed(SyncError("network_fetch_failed", "timeout"))
        assert outcome_exit_code(failed) is ErrorCode.NETWORK_ERROR
