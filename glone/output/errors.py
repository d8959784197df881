"""Error presentation utilities.

Centralized formatting of config errors and exit code aggregation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from glone.core.errors import ErrorCode
from glone.core.outcome import outcome_exit_code
from glone.output.console import Style

if TYPE_CHECKING:
    from glone.core.config import ConfigError
    from glone.core.outcome import SyncOutcome
    from glone.output.console import ConsoleProtocol

__all__ = ["print_config_error", "run_exit_code"]


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.path is not None:
        console.print(f"config: {error.path}", Style.DIM)


def run_exit_code(outcomes: Iterable[SyncOutcome]) -> ErrorCode:
    """Most severe exit code among all outcomes (OK when there are none).

    Severity follows the numeric value, except that conflicts rank below
    every failure.
    """
    codes = [outcome_exit_code(o) for o in outcomes]
    failures = [c for c in codes if c not in (ErrorCode.OK, ErrorCode.CONFLICT)]
    if failures:
        return max(failures)
    if ErrorCode.CONFLICT in codes:
        return ErrorCode.CONFLICT
    return ErrorCode.OK
