"""Selecting functions of interest by name."""

from __future__ import annotations

from typing import Iterable, Sequence

from manifest_producer.models import FunctionDescriptor, MatchResult
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)


def find_function(
    name: str, functions: Sequence[FunctionDescriptor], exact: bool = False
) -> FunctionDescriptor | None:
    """First function in discovery order whose name contains ``name``.

    Matching is case-sensitive. Overloads and mangled variants are not
    ranked: the first candidate wins. ``exact`` requires equality instead.
    """
    for fn in functions:
        if (fn.name == name) if exact else (name in fn.name):
            return fn
    return None


def match_functions(
    requested: Iterable[str], functions: Sequence[FunctionDescriptor], exact: bool = False
) -> MatchResult:
    matched: dict[str, FunctionDescriptor] = {}
    unmatched: list[str] = []
    for name in requested:
        fn = find_function(name, functions, exact=exact)
        if fn is None:
            log.warning("api_not_found", name=name)
            unmatched.append(name)
        else:
            matched[name] = fn
    return MatchResult(matched=matched, unmatched=tuple(unmatched))
