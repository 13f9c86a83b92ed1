"""Rich progress bar for the per-function analysis loop."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


def create_progress(console: Console | None = None) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


@contextmanager
def progress_context(description: str, total: int | None = None) -> Generator[tuple[Progress, int], None, None]:
    """Context manager yielding (progress, task_id) for a single tracked task."""
    progress = create_progress(Console(stderr=True))
    with progress:
        task_id = progress.add_task(description, total=total)
        yield progress, task_id
