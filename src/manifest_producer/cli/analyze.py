"""manifest-producer analyze — syscall sets for every function of interest."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def analyze_cmd(
    binary: Path = typer.Argument(..., help="Path to ELF binary"),
    api_list: Optional[Path] = typer.Option(
        None, "--api-list", "-a", help="JSON array of function names to report on"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Manifest output directory"),
    exact: bool = typer.Option(False, "--exact", help="Match API names exactly instead of by substring"),
    table: bool = typer.Option(True, "--table/--no-table", help="Print a summary table"),
) -> None:
    """Analyze BINARY and write basic_info, flow_call and feature manifests."""
    from manifest_producer.cli.app import get_context
    from manifest_producer.errors import ManifestError
    from manifest_producer.manifest import read_api_list, write_manifests
    from manifest_producer.pipeline import analyze_binary
    from manifest_producer.utils.formatters import (
        print_error,
        print_reports,
        print_success,
        print_warning,
    )
    from manifest_producer.utils.progress import progress_context

    ctx = get_context()
    cfg = ctx.ensure_config()
    if exact:
        cfg.analysis.match = "exact"

    if not binary.exists():
        print_error(f"Path not found: {binary}")
        raise typer.Exit(1)

    requested = None
    if api_list is not None:
        try:
            requested = read_api_list(api_list)
        except (OSError, ValueError) as exc:
            print_error(f"Cannot read API list: {exc}")
            raise typer.Exit(1)

    try:
        with progress_context(f"Analyzing {binary.name}") as (progress, task_id):

            def _advance(fn) -> None:
                progress.update(task_id, advance=1, description=fn.name[:40])

            result = analyze_binary(binary, requested=requested, config=cfg, on_progress=_advance)
    except ManifestError as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    for name in result.unmatched:
        print_warning(f"API not found: {name}")

    if table:
        print_reports(result.reports, title=f"{binary.name} ({result.language.name}, {result.facts.linkage.value})")

    out_dir = output or Path(cfg.output.directory)
    write_manifests(result, out_dir, indent=cfg.output.indent)
    print_success(f"Manifests for {len(result.reports)} function(s) written to {out_dir}")
