from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from glone.core.config import AppPaths, bootstrap
from glone.core.errors import ErrorCode
from glone.core.result import Err
from glone.output.console import RichConsole
from glone.output.errors import print_config_error
from glone.output.logging import setup_logging

# Set by the --config-dir option of the root command
CONFIG_DIR_ENV = "GLONE_CONFIG_DIR"


@dataclass(frozen=True, slots=True)
class CLIContext:
    paths: AppPaths
    console: RichConsole


def resolve_paths() -> AppPaths:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return AppPaths(config_dir=Path(override).expanduser())
    return AppPaths.default()


def build_context(*, verbose: bool = False) -> CLIContext:
    """Resolve paths, start logging and create the config skeleton."""
    paths = resolve_paths()
    console = RichConsole()
    setup_logging(
        paths.log_path,
        console=console.rich,
        console_level="info" if verbose else "warning",
    )

    created = bootstrap(paths)
    if isinstance(created, Err):
        print_config_error(created.error, console)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))

    return CLIContext(paths=paths, console=console)
