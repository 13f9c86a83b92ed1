"""Error taxonomy for an analysis run.

Fatal kinds abort the whole run; ``RegionResolutionError`` is raised per
function and is caught at the function boundary by the flow engine.
"""

from __future__ import annotations


class ManifestError(RuntimeError):
    """Base class for every error raised by manifest_producer."""


class LoadError(ManifestError):
    """The file cannot be read or is not a well-formed ELF image."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot load {path}: {reason}")
        self.path = path
        self.reason = reason


class StrippedBinaryError(ManifestError):
    """The binary carries no usable symbol or debug information."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Refusing to analyse stripped binary {path}: rebuild it with debug info (-g)"
        )
        self.path = path


class LanguageNotFoundError(ManifestError):
    """DWARF is present but no compilation unit declares a language."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No DW_AT_language found in the debug info of {path}")
        self.path = path


class EmptyFunctionListError(ManifestError):
    """The symbol table yields no analysable function."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No defined function symbols found in {path}")
        self.path = path


class UnsupportedArchitectureError(ManifestError):
    """The ELF machine type has no disassembly profile."""

    def __init__(self, machine: str) -> None:
        super().__init__(f"Unsupported architecture: {machine}")
        self.machine = machine


class RegionResolutionError(ManifestError):
    """A function's address range does not map onto file content."""

    def __init__(self, name: str, start: int, end: int, reason: str) -> None:
        super().__init__(f"{name} [{start:#x}, {end:#x}): {reason}")
        self.name = name
        self.start = start
        self.end = end
        self.reason = reason


class ConfigError(ManifestError):
    """A configuration file cannot be parsed or fails validation."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid configuration {path}: {reason}")
        self.path = path
        self.reason = reason
