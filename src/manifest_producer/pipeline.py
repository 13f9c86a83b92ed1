"""One analysis run: load, classify, discover, analyze."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable, Sequence

from manifest_producer.analysis.arch import profile_for
from manifest_producer.analysis.flow import SyscallFlowEngine
from manifest_producer.analysis.matching import match_functions
from manifest_producer.config.models import AnalysisConfig, ManifestConfig
from manifest_producer.elf.dwarf import classify_language
from manifest_producer.elf.image import open_binary
from manifest_producer.elf.regions import CodeRegionResolver
from manifest_producer.elf.symbols import discover_functions
from manifest_producer.models import AnalysisResult, FunctionDescriptor
from manifest_producer.utils.logging import bind_binary, get_logger, unbind_binary

log = get_logger(__name__)

ProgressCallback = Callable[[FunctionDescriptor], None]


def select_targets(
    functions: list[FunctionDescriptor],
    requested: Sequence[str] | None,
    cfg: AnalysisConfig,
) -> tuple[list[FunctionDescriptor], tuple[str, ...]]:
    """Functions to report on, plus the requested names that matched nothing.

    ``auto`` reports only the requested functions when names are given and
    every function otherwise; ``all`` and ``requested`` force one mode.
    """
    if requested is None:
        return (functions if cfg.mode != "requested" else []), ()

    match = match_functions(requested, functions, exact=cfg.match == "exact")
    if cfg.mode == "all":
        return functions, match.unmatched
    targets = list(dict.fromkeys(match.matched.values()))
    return targets, match.unmatched


def analyze_binary(
    path: str | Path,
    requested: Sequence[str] | None = None,
    config: ManifestConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Compute per-function syscall sets for the ELF file at ``path``.

    Fatal conditions raise a :class:`~manifest_producer.errors.ManifestError`
    subclass; per-function problems only show in the report status.
    """
    cfg = (config or ManifestConfig()).analysis
    with open_binary(path) as image:
        bind_binary(str(image.path), image.sha256)
        try:
            language = classify_language(image)
            functions = discover_functions(image, language)
            if image.is_position_independent() and cfg.load_bias:
                functions = [
                    replace(fn, start=fn.start + cfg.load_bias, end=fn.end + cfg.load_bias)
                    for fn in functions
                ]

            resolver = CodeRegionResolver(image, profile_for(image.machine), cfg.load_bias)
            engine = SyscallFlowEngine(image, functions, resolver, language, cfg)
            targets, unmatched = select_targets(functions, requested, cfg)

            reports = []
            for fn in targets:
                reports.append(engine.analyze(fn))
                if on_progress is not None:
                    on_progress(fn)

            log.info(
                "analysis_complete",
                language=language.name,
                functions=len(functions),
                reported=len(reports),
                unmatched=len(unmatched),
            )
            return AnalysisResult(
                facts=image.facts(),
                language=language,
                reports=tuple(reports),
                unmatched=unmatched,
            )
        finally:
            unbind_binary()
