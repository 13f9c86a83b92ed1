"""Tests for ELF loading and load-time facts."""

import hashlib

import pytest

from elfbuilder import Asm, ElfBuilder, slot
from manifest_producer.elf.image import open_binary
from manifest_producer.errors import LoadError
from manifest_producer.models import Linkage


def _write(tmp_path, name="bin", **kwargs) -> str:
    b = ElfBuilder(**kwargs)
    b.function(0, "main", Asm(slot(0)).syscall(60).ret())
    return b.write(tmp_path / name)


def test_static_executable_facts(tmp_path):
    path = _write(tmp_path)
    with open_binary(path) as image:
        facts = image.facts()
    assert facts.architecture == "x86_64"
    assert facts.machine == "EM_X86_64"
    assert facts.word_size == 64
    assert facts.endianness == "little"
    assert facts.file_type == "executable"
    assert facts.linkage is Linkage.STATIC
    assert facts.pie is False
    assert facts.stripped is False
    assert facts.entry_point == slot(0)


def test_sha256_matches_file(tmp_path):
    path = _write(tmp_path)
    with open_binary(path) as image:
        assert image.sha256 == hashlib.sha256(open(path, "rb").read()).hexdigest()


def test_interp_means_dynamic(tmp_path):
    path = _write(tmp_path, dynamic=True)
    with open_binary(path) as image:
        assert image.linkage is Linkage.DYNAMIC
        assert not image.is_static()


def test_et_dyn_means_pie(tmp_path):
    path = _write(tmp_path, pie=True)
    with open_binary(path) as image:
        assert image.is_position_independent()
        assert image.facts().file_type == "shared_object"


@pytest.mark.parametrize("kwargs", [{"languages": None}, {"symtab": False}])
def test_stripped_without_symbols_or_debug_info(tmp_path, kwargs):
    path = _write(tmp_path, **kwargs)
    with open_binary(path) as image:
        assert image.is_stripped()


def test_context_manager_closes_stream(tmp_path):
    path = _write(tmp_path)
    with open_binary(path) as image:
        assert not image.closed
    assert image.closed


def test_missing_file_raises_load_error(tmp_path):
    with pytest.raises(LoadError):
        open_binary(tmp_path / "missing")


def test_non_elf_raises_load_error(tmp_path):
    path = tmp_path / "script.sh"
    path.write_bytes(b"#!/bin/sh\nexit 0\n")
    with pytest.raises(LoadError) as exc_info:
        open_binary(path)
    assert str(path) in str(exc_info.value)
