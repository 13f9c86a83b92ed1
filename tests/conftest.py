"""Shared test fixtures."""

from __future__ import annotations

import pytest

from elfbuilder import (
    NOP,
    Asm,
    ElfBuilder,
    got_slot,
    mov_edi,
    plt_stub,
    slot,
)
from manifest_producer.config.models import AnalysisConfig, ManifestConfig, OutputConfig
from manifest_producer.models import (
    AnalysisResult,
    BinaryFacts,
    FunctionDescriptor,
    FunctionReport,
    LanguageTag,
    Linkage,
    Status,
)

SYS_WRITE = 1
SYS_SOCKET = 41
SYS_CONNECT = 42
SYS_GETPID = 39


@pytest.fixture
def sample_config(tmp_path) -> ManifestConfig:
    return ManifestConfig(
        analysis=AnalysisConfig(mode="auto", match="substring"),
        output=OutputConfig(directory=str(tmp_path / "out")),
    )


@pytest.fixture
def lamp_binary(tmp_path) -> str:
    """Static C program with a small call graph.

    slot 0 ``turnLampOn``   write
    slot 1 ``main``         calls turnLampOn and openSocket
    slot 2 ``openSocket``   socket, then tail-jumps to ``connectLoop``
    slot 3 ``connectLoop``  connect, calls itself and openSocket
    """
    b = ElfBuilder(languages=["C99", "C99"])
    b.function(0, "turnLampOn", Asm(slot(0)).syscall(SYS_WRITE).ret())
    b.function(1, "main", Asm(slot(1)).call(slot(0)).call(slot(2)).ret())
    b.function(2, "openSocket", Asm(slot(2)).syscall(SYS_SOCKET).jmp(slot(3)).code)
    b.function(3, "connectLoop", Asm(slot(3)).syscall(SYS_CONNECT).call(slot(3)).call(slot(2)).ret())
    return b.write(tmp_path / "lamp")


@pytest.fixture
def network_binary(tmp_path) -> str:
    """Dynamically linked program calling libc through the PLT."""
    b = ElfBuilder(languages=["C99"], imports=["socket", "connect", "syscall", "printf"])
    b.function(0, "accessNetwork", Asm(slot(0)).call(plt_stub(0)).call(plt_stub(1)).ret())
    b.function(1, "rawSyscall", Asm(slot(1)).emit(mov_edi(SYS_GETPID)).call(plt_stub(2)).ret())
    b.function(2, "greet", Asm(slot(2)).call_got(got_slot(3)).ret())
    b.function(3, "main", Asm(slot(3)).call(slot(0)).emit(NOP).ret())
    return b.write(tmp_path / "network")


@pytest.fixture
def sample_result() -> AnalysisResult:
    facts = BinaryFacts(
        path="/tmp/lamp",
        sha256="a" * 64,
        architecture="x86_64",
        machine="EM_X86_64",
        word_size=64,
        endianness="little",
        file_type="executable",
        entry_point=0x401000,
        linkage=Linkage.STATIC,
        pie=False,
        stripped=False,
    )
    lamp = FunctionDescriptor("turnLampOn", 0x401000, 0x401008)
    net = FunctionDescriptor("openSocket", 0x401200, 0x401210)
    return AnalysisResult(
        facts=facts,
        language=LanguageTag("C99"),
        reports=(
            FunctionReport(function=lamp, syscalls=("write",)),
            FunctionReport(
                function=net,
                syscalls=("connect", "indeterminate", "socket"),
                status=Status.PARTIAL,
                unresolved_calls=1,
            ),
        ),
        unmatched=("turnLampOff",),
    )
