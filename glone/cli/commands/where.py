from __future__ import annotations

from glone.cli.context import build_context


def where() -> None:
    """Show where glone keeps its config and log."""
    ctx = build_context()
    ctx.console.print(f"config: {ctx.paths.config_path}")
    ctx.console.print(f"log: {ctx.paths.log_path}")
