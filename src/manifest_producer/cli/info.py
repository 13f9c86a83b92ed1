"""manifest-producer info — load-time facts and language of a binary."""

from __future__ import annotations

from pathlib import Path

import typer


def info_cmd(
    binary: Path = typer.Argument(..., help="Path to ELF binary"),
) -> None:
    """Show linkage, PIE, stripped status and source language of BINARY."""
    from manifest_producer.elf.dwarf import classify_language
    from manifest_producer.elf.image import open_binary
    from manifest_producer.errors import LanguageNotFoundError, ManifestError, StrippedBinaryError
    from manifest_producer.utils.formatters import print_error, print_facts, print_warning

    try:
        with open_binary(binary) as image:
            language = None
            try:
                language = classify_language(image)
            except (StrippedBinaryError, LanguageNotFoundError) as exc:
                print_warning(str(exc))
            print_facts(image.facts(), language)
    except ManifestError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
