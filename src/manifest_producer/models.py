"""Frozen dataclasses shared by every analysis stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

INDETERMINATE = "indeterminate"


class Linkage(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


class Status(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    UNRESOLVED = "unresolved"


class EdgeKind(str, Enum):
    LOCAL = "local"
    IMPORT = "import"
    SYSCALL = "syscall"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class LanguageTag:
    """DWARF language name without the ``DW_LANG_`` prefix."""

    name: str

    @property
    def family(self) -> str:
        if self.name.startswith("C_plus_plus") or self.name == "ObjC_plus_plus":
            return "cpp"
        if self.name == "Rust":
            return "rust"
        if self.name in ("C", "C89", "C99", "C11", "C17", "ObjC"):
            return "c"
        return "other"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BinaryFacts:
    path: str
    sha256: str
    architecture: str
    machine: str
    word_size: int
    endianness: str
    file_type: str
    entry_point: int
    linkage: Linkage
    pie: bool
    stripped: bool


@dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    start: int
    end: int
    raw_name: str = ""

    @property
    def size(self) -> int:
        return self.end - self.start

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end


@dataclass(frozen=True)
class CallEdge:
    caller: int
    site: int
    target: int | None
    kind: EdgeKind
    name: str = ""


@dataclass(frozen=True)
class FunctionReport:
    function: FunctionDescriptor
    syscalls: tuple[str, ...] = ()
    status: Status = Status.COMPLETE
    imports: tuple[str, ...] = ()
    unresolved_calls: int = 0
    note: str = ""

    @property
    def name(self) -> str:
        return self.function.name


@dataclass(frozen=True)
class MatchResult:
    matched: dict[str, FunctionDescriptor] = field(default_factory=dict)
    unmatched: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    facts: BinaryFacts
    language: LanguageTag
    reports: tuple[FunctionReport, ...] = ()
    unmatched: tuple[str, ...] = ()

    def report_for(self, name: str) -> FunctionReport | None:
        for report in self.reports:
            if report.name == name:
                return report
        return None
