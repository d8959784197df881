"""Core domain types and logic."""

from .config import AppPaths, Config, ConfigError, Provider, load_config
from .errors import ErrorCode, SyncError
from .outcome import (
    Cloned,
    ConflictDetected,
    Failed,
    FastForwarded,
    Merged,
    SyncOutcome,
    UpToDate,
)
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "AppPaths",
    "Config",
    "ConfigError",
    "Provider",
    "load_config",
    # errors
    "ErrorCode",
    "SyncError",
    # outcome
    "Cloned",
    "ConflictDetected",
    "Failed",
    "FastForwarded",
    "Merged",
    "SyncOutcome",
    "UpToDate",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
