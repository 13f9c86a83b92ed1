"""Root Typer application with subcommand registration."""

from __future__ import annotations

from typing import Optional

import typer

from manifest_producer import ManifestContext, __version__

app = typer.Typer(
    name="manifest-producer",
    help="Per-function syscall manifests for ELF binaries",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared state across commands
_ctx = ManifestContext()


def get_context() -> ManifestContext:
    return _ctx


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"manifest-producer {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-C", help="Path to manifest-producer.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True
    ),
) -> None:
    """manifest-producer — which syscalls can each function reach?"""
    from manifest_producer.config.loader import load_config
    from manifest_producer.errors import ConfigError
    from manifest_producer.utils.formatters import print_error
    from manifest_producer.utils.logging import setup_logging

    setup_logging(level="DEBUG" if verbose else "INFO", json_output=json_logs)
    try:
        cfg = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    level = "DEBUG" if verbose else cfg.logging.level
    setup_logging(level=level, json_output=json_logs or cfg.logging.json_output)
    _ctx.config = cfg
    _ctx.json_logs = json_logs


# -- Subcommand registration --
from manifest_producer.cli.analyze import analyze_cmd  # noqa: E402
from manifest_producer.cli.info import info_cmd  # noqa: E402

app.command(name="analyze")(analyze_cmd)
app.command(name="info")(info_cmd)
