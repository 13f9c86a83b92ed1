"""Tests for source-language classification."""

import pytest

from elfbuilder import Asm, ElfBuilder, slot
from manifest_producer.elf.dwarf import (
    classify_language,
    compile_unit_languages,
    language_name,
    select_language,
)
from manifest_producer.elf.image import open_binary
from manifest_producer.errors import LanguageNotFoundError, StrippedBinaryError


def _image(tmp_path, languages):
    b = ElfBuilder(languages=languages)
    b.function(0, "main", Asm(slot(0)).ret())
    return open_binary(b.write(tmp_path / "bin"))


def test_language_name_strips_prefix():
    assert language_name(0x0C) == "C99"
    assert language_name(0x1C) == "Rust"
    assert language_name(0x04) == "C_plus_plus"


def test_language_name_unknown_code():
    assert language_name(0x7FFF) == "unknown_0x7fff"


def test_select_most_frequent():
    assert select_language(["C_plus_plus", "C99", "C_plus_plus"]) == "C_plus_plus"


def test_select_tie_keeps_first_seen():
    assert select_language(["C_plus_plus", "Go", "Go", "C_plus_plus"]) == "C_plus_plus"


def test_select_rust_beats_libc_units():
    tags = ["C99"] * 5 + ["Rust"] * 5
    assert select_language(tags) == "Rust"
    assert select_language(["C11", "C99", "C99", "Rust"]) == "Rust"


def test_select_nothing():
    assert select_language([]) is None


def test_compile_unit_languages_in_order(tmp_path):
    with _image(tmp_path, ["Rust", "C99", ""]) as image:
        assert compile_unit_languages(image) == ["Rust", "C99"]


def test_classify_language(tmp_path):
    with _image(tmp_path, ["C99", "C99", "C_plus_plus"]) as image:
        assert classify_language(image).name == "C99"


def test_classify_stripped(tmp_path):
    with _image(tmp_path, None) as image:
        with pytest.raises(StrippedBinaryError):
            classify_language(image)


def test_classify_no_language_attribute(tmp_path):
    with _image(tmp_path, ["", ""]) as image:
        with pytest.raises(LanguageNotFoundError):
            classify_language(image)
