"""Source-language classification from DWARF compilation units."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from elftools.common.exceptions import DWARFError, ELFError
from elftools.dwarf.enums import ENUM_DW_LANG

from manifest_producer.elf.image import BinaryImage
from manifest_producer.errors import LanguageNotFoundError, LoadError, StrippedBinaryError
from manifest_producer.models import LanguageTag
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)

_LANG_PREFIX = "DW_LANG_"
_LANG_NAMES = {value: name for name, value in ENUM_DW_LANG.items()}

# C compilation units from a statically linked libc (musl) ship inside Rust
# binaries and do not reflect the program's language.
_C_FAMILY = frozenset({"C", "C89", "C99", "C11", "C17"})
_MEMORY_SAFE = "Rust"


def language_name(code: int) -> str:
    """Map a DW_AT_language code to its name without the prefix."""
    name = _LANG_NAMES.get(code)
    if name is None:
        return f"unknown_{code:#x}"
    return name[len(_LANG_PREFIX):] if name.startswith(_LANG_PREFIX) else name


def select_language(tags: Iterable[str]) -> str | None:
    """Pick the most frequent tag; ties go to the first one seen."""
    counts = Counter(tags)
    if _MEMORY_SAFE in counts and _C_FAMILY.intersection(counts):
        for tag in _C_FAMILY:
            counts.pop(tag, None)
    if not counts:
        return None
    # most_common() is stable, so equal counts keep insertion order
    return counts.most_common(1)[0][0]


def compile_unit_languages(image: BinaryImage) -> list[str]:
    """Return the language of every compilation unit, in table order."""
    try:
        dwarf = image.elf.get_dwarf_info()
        tags = []
        for cu in dwarf.iter_CUs():
            attr = cu.get_top_DIE().attributes.get("DW_AT_language")
            if attr is None or not isinstance(attr.value, int):
                continue
            tags.append(language_name(attr.value))
    except (DWARFError, ELFError) as exc:
        raise LoadError(str(image.path), f"malformed DWARF: {exc}") from exc
    return tags


def classify_language(image: BinaryImage) -> LanguageTag:
    """Infer the dominant source language of ``image``.

    Raises :class:`StrippedBinaryError` when the image has no debug info and
    :class:`LanguageNotFoundError` when no compilation unit names a language.
    """
    if image.is_stripped():
        raise StrippedBinaryError(str(image.path))

    tags = compile_unit_languages(image)
    selected = select_language(tags)
    if selected is None:
        raise LanguageNotFoundError(str(image.path))

    log.info("language_classified", language=selected, units=len(tags))
    return LanguageTag(selected)
