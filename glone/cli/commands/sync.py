"""Sync command - clone or update every configured repository."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from glone.cli.context import build_context
from glone.core.config import Provider, load_config
from glone.core.errors import ErrorCode
from glone.core.result import Err, Ok
from glone.git.transport import DEFAULT_NETWORK_TIMEOUT
from glone.output.console import Style
from glone.output.errors import print_config_error, run_exit_code
from glone.output.progress import RichProgress
from glone.services.sync import SyncService

logger = logging.getLogger(__name__)


def sync(
    only: list[str] = typer.Option(
        [], "--only", help="Only sync the provider with this name (repeatable)"
    ),
    config: Path | None = typer.Option(None, "--config", help="Config file to use"),
    timeout: float = typer.Option(
        DEFAULT_NETWORK_TIMEOUT, "--timeout", help="Seconds allowed for each network transfer"
    ),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide transfer progress bars"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info logs on the console"),
) -> None:
    """Clone or update all configured repositories."""
    ctx = build_context(verbose=verbose)
    config_path = config or ctx.paths.config_path

    providers: tuple[Provider, ...] = ()
    config_failed = False
    match load_config(config_path):
        case Ok(loaded):
            providers = loaded.providers
        case Err(error):
            logger.info("Config not loaded (%s): %s", config_path, error.message)
            print_config_error(error, ctx.console)
            config_failed = True

    if only:
        unknown = sorted(set(only) - {p.name for p in providers})
        if unknown and not config_failed:
            ctx.console.error(f"unknown provider(s): {', '.join(unknown)}")
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        providers = tuple(p for p in providers if p.name in only)

    if not providers:
        ctx.console.warning(f"no providers to sync (config: {config_path})")
        return

    ctx.console.header("Repositories")
    with RichProgress(ctx.console.rich, disable=no_progress) as progress:
        service = SyncService(console=ctx.console, observer=progress, timeout=timeout)
        reports = service.sync_all(providers)

    code = run_exit_code(r.outcome for r in reports)
    ok_count = sum(1 for r in reports if r.ok)
    ctx.console.print(f"{ok_count}/{len(reports)} repositories in sync", Style.DIM)
    if code.is_error:
        raise typer.Exit(code=int(code))
