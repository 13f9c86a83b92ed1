"""Language-aware symbol name normalization."""

from __future__ import annotations

import re
from functools import lru_cache

from manifest_producer.models import LanguageTag
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)

_RUST_HASH = re.compile(r"::h[0-9a-f]{16}$")
_RUST_LEGACY = re.compile(r"^_ZN.*E$")
_RUST_ESCAPE = re.compile(r"\$(SP|BP|RF|LT|GT|LP|RP|C|u[0-9a-f]{1,6})\$|\.\.")
_RUST_ESCAPES = {
    "SP": "@",
    "BP": "*",
    "RF": "&",
    "LT": "<",
    "GT": ">",
    "LP": "(",
    "RP": ")",
    "C": ",",
}


def strip_version(name: str) -> str:
    """Drop an ELF symbol version suffix (``read@GLIBC_2.2.5``)."""
    return name.split("@", 1)[0] if "@" in name[1:] else name


def _demangle_itanium(name: str) -> str | None:
    import cxxfilt

    try:
        result = cxxfilt.demangle(name)
    except cxxfilt.InvalidName:
        return None
    return result if result != name else None


def _unescape_rust(path: str) -> str:
    """Decode the ``$LT$``/``$u20$``/``..`` escapes of legacy Rust path segments."""

    def _replace(match: re.Match[str]) -> str:
        code = match.group(1)
        if code is None:
            return "::"
        if code.startswith("u"):
            value = int(code[1:], 16)
            return chr(value) if value <= 0x10FFFF else match.group(0)
        return _RUST_ESCAPES[code]

    # segments starting with an escape get a leading underscore
    segments = [s[1:] if s.startswith("_$") else s for s in path.split("::")]
    return "::".join(_RUST_ESCAPE.sub(_replace, s) for s in segments)


def _demangle_rust(name: str) -> str | None:
    # legacy Rust mangling is Itanium-compatible plus a trailing hash segment
    result = _demangle_itanium(name)
    if result is None:
        log.debug("rust_demangle_failed", name=name)
        return None
    return _unescape_rust(_RUST_HASH.sub("", result))


@lru_cache(maxsize=8192)
def _demangle(name: str, family: str) -> str:
    if family == "cpp" and name.startswith("_Z"):
        return _demangle_itanium(name) or name
    if family == "rust" and _RUST_LEGACY.match(name):
        return _demangle_rust(name) or name
    return name


def demangle(name: str, language: LanguageTag) -> str:
    """Return the canonical display name for ``name``.

    Names that do not follow the language's mangling scheme come back
    unchanged; plain C exports are common in C++ and Rust binaries.
    """
    return _demangle(strip_version(name), language.family)
