"""ELF image loading with pyelftools."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import Section

from manifest_producer.errors import LoadError
from manifest_producer.models import BinaryFacts, Linkage
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)

_ARCH_NAMES = {
    "EM_X86_64": "x86_64",
    "EM_386": "x86",
    "EM_ARM": "ARM",
    "EM_AARCH64": "AArch64",
    "EM_MIPS": "MIPS",
    "EM_PPC": "PPC",
    "EM_PPC64": "PPC64",
    "EM_RISCV": "RISCV",
}

_FILE_TYPES = {
    "ET_EXEC": "executable",
    "ET_DYN": "shared_object",
    "ET_REL": "relocatable",
    "ET_CORE": "core",
}

_DEBUG_INFO_SECTIONS = (".debug_info", ".zdebug_info")


class BinaryImage:
    """Read-only view of one ELF file for the duration of an analysis run.

    The underlying file stays open until :meth:`close`; use the image as a
    context manager so the handle is released on every exit path.
    """

    def __init__(self, path: Path, stream: BinaryIO, sha256: str) -> None:
        self.path = path
        self.sha256 = sha256
        self._stream = stream
        try:
            self.elf = ELFFile(stream)
            header = self.elf.header
            self.machine: str = header["e_machine"]
            self.architecture = _ARCH_NAMES.get(self.machine, str(self.machine))
            self.file_type = _FILE_TYPES.get(header["e_type"], str(header["e_type"]))
            self.entry_point: int = header["e_entry"]
            self.word_size: int = self.elf.elfclass
            self.endianness = "little" if self.elf.little_endian else "big"
            self._static = not any(
                seg["p_type"] == "PT_INTERP" for seg in self.elf.iter_segments()
            )
            self._pie = header["e_type"] == "ET_DYN"
            self._stripped = self.section(".symtab") is None or not any(
                self.section(name) is not None for name in _DEBUG_INFO_SECTIONS
            )
        except ELFError as exc:
            stream.close()
            raise LoadError(str(path), str(exc)) from exc

    # -- load-time facts --

    def is_stripped(self) -> bool:
        return self._stripped

    def is_static(self) -> bool:
        return self._static

    def is_position_independent(self) -> bool:
        return self._pie

    @property
    def linkage(self) -> Linkage:
        return Linkage.STATIC if self._static else Linkage.DYNAMIC

    def facts(self) -> BinaryFacts:
        return BinaryFacts(
            path=str(self.path),
            sha256=self.sha256,
            architecture=self.architecture,
            machine=self.machine,
            word_size=self.word_size,
            endianness=self.endianness,
            file_type=self.file_type,
            entry_point=self.entry_point,
            linkage=self.linkage,
            pie=self._pie,
            stripped=self._stripped,
        )

    # -- section access --

    def section(self, name: str) -> Section | None:
        return self.elf.get_section_by_name(name)

    def iter_sections(self):
        return self.elf.iter_sections()

    def close(self) -> None:
        if not self._stream.closed:
            self._stream.close()
            log.debug("elf_closed", path=str(self.path))

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __enter__(self) -> BinaryImage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_binary(path: str | Path) -> BinaryImage:
    """Open an ELF file and parse its structural metadata.

    Raises :class:`LoadError` if the file is unreadable or not ELF.
    """
    path = Path(path)
    try:
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        stream = open(path, "rb")
    except OSError as exc:
        log.error("elf_load_failed", path=str(path), error=str(exc))
        raise LoadError(str(path), exc.strerror or str(exc)) from exc

    image = BinaryImage(path, stream, digest)
    log.info(
        "elf_loaded",
        path=str(path),
        arch=image.architecture,
        linkage=image.linkage.value,
        pie=image.is_position_independent(),
        stripped=image.is_stripped(),
    )
    return image
