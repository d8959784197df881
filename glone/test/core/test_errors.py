"""Tests for glone.core.errors module."""

from __future__ import annotations

import pytest

from glone.core.errors import ErrorCode, SyncError, exit_code_for


class TestErrorCode:
    def test_values_are_stable(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.AUTH_ERROR == 2
        assert ErrorCode.CONFLICT == 3
        assert ErrorCode.NETWORK_ERROR == 4
        assert ErrorCode.IO_ERROR == 5

    def test_str(self) -> None:
        assert str(ErrorCode.NETWORK_ERROR) == "network error"

    def test_success_flags(self) -> None:
        assert ErrorCode.OK.is_success
        assert not ErrorCode.OK.is_error
        assert ErrorCode.CONFLICT.is_error


class TestSyncError:
    def test_str_includes_kind(self) -> None:
        error = SyncError("auth_rejected", "bad key")
        assert str(error) == "auth_rejected: bad key"

    def test_hint_defaults_to_none(self) -> None:
        assert SyncError("commit_failed", "x").hint is None

    def test_frozen(self) -> None:
        error = SyncError("commit_failed", "x")
        with pytest.raises(AttributeError):
            error.message = "y"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("config_invalid", ErrorCode.USER_ERROR),
        ("credential_missing", ErrorCode.AUTH_ERROR),
        ("auth_rejected", ErrorCode.AUTH_ERROR),
        ("auth_required", ErrorCode.AUTH_ERROR),
        ("repository_open_failed", ErrorCode.IO_ERROR),
        ("network_fetch_failed", ErrorCode.NETWORK_ERROR),
        ("merge_base_not_found", ErrorCode.IO_ERROR),
        ("commit_failed", ErrorCode.IO_ERROR),
    ],
)
def test_exit_code_for_every_kind(kind: str, code: ErrorCode) -> None:
    assert exit_code_for(SyncError(kind, "msg")) is code  # type: ignore[arg-type]
