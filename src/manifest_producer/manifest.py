"""JSON manifests for an analysis result."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from manifest_producer.analysis.features import classify_features
from manifest_producer.models import AnalysisResult
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)

BASIC_INFO = "basic_info.json"
FLOW_CALL = "flow_call.json"
FEATURE_MANIFEST = "feature_manifest.json"


def read_api_list(path: str | Path) -> list[str]:
    """Load a JSON array of API names of interest."""
    data = json.loads(Path(path).read_text())
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError(f"{path}: expected a JSON array of strings")
    return data


def basic_info(result: AnalysisResult) -> dict[str, Any]:
    facts = result.facts
    return {
        "file_name": Path(facts.path).name,
        "sha256": facts.sha256,
        "architecture": facts.architecture,
        "word_size": facts.word_size,
        "endianness": facts.endianness,
        "file_type": facts.file_type,
        "entry_point": hex(facts.entry_point),
        "language": result.language.name,
        "linkage": facts.linkage.value,
        "pie": facts.pie,
        "stripped": facts.stripped,
        "function_count": len(result.reports),
        "unmatched_apis": list(result.unmatched),
    }


def flow_call(result: AnalysisResult) -> list[dict[str, Any]]:
    return [
        {
            "name": report.name,
            "start": hex(report.function.start),
            "end": hex(report.function.end),
            "syscalls": list(report.syscalls),
            "status": report.status.value,
            "imports": list(report.imports),
            "unresolved_calls": report.unresolved_calls,
        }
        for report in result.reports
    ]


def feature_manifest(result: AnalysisResult) -> list[dict[str, Any]]:
    return [
        {"name": report.name, "features": classify_features(report.syscalls)}
        for report in result.reports
    ]


def write_manifests(result: AnalysisResult, directory: str | Path, indent: int = 2) -> list[Path]:
    """Write the three manifest files into ``directory`` and return their paths."""
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    written = []
    for name, payload in (
        (BASIC_INFO, basic_info(result)),
        (FLOW_CALL, flow_call(result)),
        (FEATURE_MANIFEST, feature_manifest(result)),
    ):
        path = out / name
        path.write_text(json.dumps(payload, indent=indent) + "\n")
        written.append(path)
    log.info("manifests_written", directory=str(out), files=len(written))
    return written
