"""Providers command - list what `glone sync` would process."""

from __future__ import annotations

from pathlib import Path

import typer

from glone.cli.context import build_context
from glone.core.config import PublicAuth, SshAuth, TokenAuth, load_config
from glone.core.errors import ErrorCode
from glone.core.result import Err
from glone.output.console import Style
from glone.output.errors import print_config_error
from glone.services.sync import has_checkout


def providers(
    config: Path | None = typer.Option(None, "--config", help="Config file to use"),
) -> None:
    """List configured providers and whether they will be cloned or pulled."""
    ctx = build_context()
    config_path = config or ctx.paths.config_path

    result = load_config(config_path)
    if isinstance(result, Err):
        print_config_error(result.error, ctx.console)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if not result.value.providers:
        ctx.console.warning(f"no providers configured in {config_path}")
        return

    for provider in result.value.providers:
        match provider.auth:
            case TokenAuth(username=username, password=password):
                auth = f"token ({username}, {password})"
            case SshAuth(path=path):
                auth = f"ssh ({path})"
            case PublicAuth():
                auth = "public"
        action = "pull" if has_checkout(provider.sync_dir) else "clone"
        ctx.console.print(f"{provider.name}", Style.HEADER)
        ctx.console.print(f"  {provider.url} @ {provider.branch}")
        ctx.console.print(f"  {provider.sync_dir} [{action}, auth: {auth}]", Style.DIM)
