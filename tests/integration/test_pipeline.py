"""End-to-end analysis runs on synthesized binaries."""

import pytest

from elfbuilder import Asm, ElfBuilder, got_slot, plt_stub, slot
from manifest_producer.config.models import AnalysisConfig, ManifestConfig
from manifest_producer.errors import (
    EmptyFunctionListError,
    LoadError,
    StrippedBinaryError,
    UnsupportedArchitectureError,
)
from manifest_producer.models import Linkage, Status
from manifest_producer.pipeline import analyze_binary

pytestmark = pytest.mark.integration


def test_lamp_scenario(lamp_binary, sample_config):
    result = analyze_binary(lamp_binary, requested=["turnLampOn", "turnLampOff"], config=sample_config)
    assert result.language.name == "C99"
    assert result.facts.linkage is Linkage.STATIC
    assert [r.name for r in result.reports] == ["turnLampOn"]
    assert result.reports[0].syscalls == ("write",)
    assert result.unmatched == ("turnLampOff",)


def test_every_function_reported_in_order(lamp_binary):
    seen = []
    result = analyze_binary(lamp_binary, on_progress=lambda fn: seen.append(fn.name))
    assert [r.name for r in result.reports] == ["turnLampOn", "main", "openSocket", "connectLoop"]
    assert seen == ["turnLampOn", "main", "openSocket", "connectLoop"]
    assert all(r.status is Status.COMPLETE for r in result.reports)


def test_dynamic_network_access(network_binary):
    result = analyze_binary(network_binary, requested=["accessNetwork"])
    assert result.facts.linkage is Linkage.DYNAMIC
    report = result.report_for("accessNetwork")
    assert report.syscalls == ("connect", "socket")


def test_exact_matching_from_config(lamp_binary):
    cfg = ManifestConfig(analysis=AnalysisConfig(match="exact"))
    result = analyze_binary(lamp_binary, requested=["LampOn"], config=cfg)
    assert result.reports == ()
    assert result.unmatched == ("LampOn",)


def test_pie_with_load_bias(tmp_path):
    bias = 0x555555554000
    b = ElfBuilder(pie=True, languages=["Rust", "C99"])
    b.function(0, "lamp::turn_on", Asm(slot(0)).syscall(1).ret())
    b.function(1, "main", Asm(slot(1)).call(slot(0)).ret())
    cfg = ManifestConfig(analysis=AnalysisConfig(load_bias=bias))
    result = analyze_binary(b.write(tmp_path / "pie"), config=cfg)
    assert result.language.name == "Rust"
    main = result.report_for("main")
    assert main.function.start == slot(1) + bias
    assert main.syscalls == ("write",)


def test_pie_imports_with_load_bias(tmp_path):
    bias = 0x7F0000000000
    b = ElfBuilder(pie=True, imports=["socket", "printf"])
    b.function(0, "openSocket", Asm(slot(0)).call(plt_stub(0)).ret())
    b.function(1, "greet", Asm(slot(1)).call_got(got_slot(1)).ret())
    cfg = ManifestConfig(analysis=AnalysisConfig(load_bias=bias))
    result = analyze_binary(b.write(tmp_path / "pie-dyn"), config=cfg)
    assert result.report_for("openSocket").imports == ("socket",)
    greet = result.report_for("greet")
    assert greet.imports == ("printf",)
    assert greet.syscalls == ("write",)
    assert greet.unresolved_calls == 0


def test_stripped_binary_rejected(tmp_path):
    b = ElfBuilder(languages=None)
    b.function(0, "main", Asm(slot(0)).ret())
    with pytest.raises(StrippedBinaryError):
        analyze_binary(b.write(tmp_path / "stripped"))


def test_no_functions_rejected(tmp_path):
    b = ElfBuilder()
    b.function(0, "main", Asm(slot(0)).ret())
    b.functions.clear()
    with pytest.raises(EmptyFunctionListError):
        analyze_binary(b.write(tmp_path / "nofuncs"))


def test_unsupported_architecture(tmp_path):
    b = ElfBuilder()
    b.function(0, "main", Asm(slot(0)).ret())
    data = bytearray(b.build())
    data[18:20] = (8).to_bytes(2, "little")  # EM_MIPS
    path = tmp_path / "mips"
    path.write_bytes(bytes(data))
    with pytest.raises(UnsupportedArchitectureError):
        analyze_binary(path)


def test_not_an_elf(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("turnLampOn\n")
    with pytest.raises(LoadError):
        analyze_binary(path)


def test_unresolved_function_does_not_abort_run(tmp_path):
    b = ElfBuilder(imports=["puts"])
    b.function(0, "main", Asm(slot(0)).call(plt_stub(0)).call(0x900000).ret())
    b.symbol("ghost", 0x900000, 16)
    result = analyze_binary(b.write(tmp_path / "ghost"))
    assert result.report_for("ghost").status is Status.UNRESOLVED
    main = result.report_for("main")
    assert main.status is Status.PARTIAL
    assert main.syscalls == ("write",)
    assert main.imports == ("puts",)
