"""Rich output formatters for CLI display."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.table import Table

from manifest_producer.models import BinaryFacts, FunctionReport, LanguageTag, Status

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLE = {
    Status.COMPLETE: "green",
    Status.PARTIAL: "yellow",
    Status.UNRESOLVED: "red",
}


def print_facts(facts: BinaryFacts, language: LanguageTag | None = None) -> None:
    table = Table(title=facts.path, show_header=False)
    table.add_column("field", style="bold")
    table.add_column("value")
    table.add_row("sha256", facts.sha256)
    table.add_row("architecture", f"{facts.architecture} ({facts.word_size}-bit, {facts.endianness})")
    table.add_row("type", facts.file_type)
    table.add_row("entry", hex(facts.entry_point))
    table.add_row("linkage", facts.linkage.value)
    table.add_row("pie", str(facts.pie))
    table.add_row("stripped", str(facts.stripped))
    if language is not None:
        table.add_row("language", language.name)
    console.print(table)


def print_reports(reports: Sequence[FunctionReport], title: str | None = None) -> None:
    """Render per-function syscall sets as a Rich table."""
    if not reports:
        console.print("[dim]No results.[/dim]")
        return

    table = Table(title=title, show_lines=True)
    table.add_column("function", overflow="fold")
    table.add_column("range")
    table.add_column("syscalls", overflow="fold")
    table.add_column("status")

    for report in reports:
        fn = report.function
        style = _STATUS_STYLE[report.status]
        table.add_row(
            fn.name,
            f"{fn.start:#x}-{fn.end:#x}",
            ", ".join(report.syscalls) or "-",
            f"[{style}]{report.status.value}[/{style}]",
        )

    console.print(table)


def print_success(msg: str) -> None:
    console.print(f"[bold green]{msg}[/bold green]")


def print_error(msg: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {msg}")


def print_warning(msg: str) -> None:
    err_console.print(f"[bold yellow]Warning:[/bold yellow] {msg}")
