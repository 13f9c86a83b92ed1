"""Tests for manifest rendering and feature grouping."""

import json

import pytest

from manifest_producer.analysis.features import classify_features
from manifest_producer.manifest import (
    basic_info,
    feature_manifest,
    flow_call,
    read_api_list,
    write_manifests,
)


def test_classify_features():
    features = classify_features(["write", "socket", "connect", "mmap", "indeterminate"])
    assert features["network"] == ["connect", "socket"]
    assert features["filesystem"] == ["write"]
    assert features["memory"] == ["mmap"]
    assert features["unknown"] == ["indeterminate"]


def test_classify_features_unknown_numbers():
    assert classify_features(["syscall_9999"]) == {"unknown": ["syscall_9999"]}
    assert classify_features([]) == {}


def test_read_api_list(tmp_path):
    path = tmp_path / "apis.json"
    path.write_text('["turnLampOn", "accessNetwork"]')
    assert read_api_list(path) == ["turnLampOn", "accessNetwork"]


@pytest.mark.parametrize("payload", ['{"a": 1}', '["ok", 3]', '"turnLampOn"'])
def test_read_api_list_rejects_non_string_arrays(tmp_path, payload):
    path = tmp_path / "apis.json"
    path.write_text(payload)
    with pytest.raises(ValueError):
        read_api_list(path)


def test_basic_info(sample_result):
    info = basic_info(sample_result)
    assert info["file_name"] == "lamp"
    assert info["entry_point"] == "0x401000"
    assert info["language"] == "C99"
    assert info["linkage"] == "static"
    assert info["function_count"] == 2
    assert info["unmatched_apis"] == ["turnLampOff"]


def test_flow_call(sample_result):
    entries = flow_call(sample_result)
    assert entries[0] == {
        "name": "turnLampOn",
        "start": "0x401000",
        "end": "0x401008",
        "syscalls": ["write"],
        "status": "complete",
        "imports": [],
        "unresolved_calls": 0,
    }
    assert entries[1]["status"] == "partial"


def test_feature_manifest(sample_result):
    entries = feature_manifest(sample_result)
    assert entries[0] == {"name": "turnLampOn", "features": {"filesystem": ["write"]}}
    assert entries[1]["features"]["unknown"] == ["indeterminate"]


def test_write_manifests(sample_result, tmp_path):
    out = tmp_path / "nested" / "out"
    paths = write_manifests(sample_result, out, indent=4)
    assert [p.name for p in paths] == ["basic_info.json", "flow_call.json", "feature_manifest.json"]
    flow = json.loads((out / "flow_call.json").read_text())
    assert flow[1]["syscalls"] == ["connect", "indeterminate", "socket"]
    assert (out / "basic_info.json").read_text().startswith('{\n    "file_name"')
