from __future__ import annotations

import os
from pathlib import Path

import typer

from glone import __version__
from glone.cli.commands.providers import providers
from glone.cli.commands.sync import sync
from glone.cli.commands.where import where
from glone.cli.context import CONFIG_DIR_ENV

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(sync)
app.command()(providers)
app.command()(where)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config_dir: Path | None = typer.Option(
        None,
        "--config-dir",
        help="Directory holding config.toml and app.log (overrides the user config dir)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config_dir is not None:
        os.environ[CONFIG_DIR_ENV] = str(config_dir.expanduser())

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
