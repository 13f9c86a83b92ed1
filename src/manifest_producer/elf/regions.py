"""Function code regions and dynamic import resolution."""

from __future__ import annotations

from elftools.elf.relocation import RelocationSection
from elftools.elf.sections import Section

from manifest_producer.analysis.arch import ArchProfile
from manifest_producer.elf.demangle import strip_version
from manifest_producer.elf.image import BinaryImage
from manifest_producer.errors import RegionResolutionError
from manifest_producer.models import FunctionDescriptor
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)

SHF_ALLOC = 0x2

_RELOCATION_SECTIONS = (".rela.plt", ".rel.plt", ".rela.dyn", ".rel.dyn")
_STUB_SECTIONS = (".plt", ".plt.sec", ".plt.got")
_IMPORT_SYMBOL_TYPES = ("STT_FUNC", "STT_GNU_IFUNC", "STT_LOOS", "STT_NOTYPE")


class ImportTable:
    """Maps PLT stub and GOT slot addresses to imported symbol names."""

    def __init__(
        self,
        stubs: dict[int, str] | None = None,
        slots: dict[int, str] | None = None,
        stub_ranges: list[tuple[int, int]] | None = None,
        got_base: int | None = None,
    ) -> None:
        self.stubs = stubs or {}
        self.slots = slots or {}
        self.stub_ranges = stub_ranges or []
        self.got_base = got_base

    def __len__(self) -> int:
        return len(set(self.stubs.values()) | set(self.slots.values()))

    def lookup(self, address: int) -> str | None:
        """Import called through the stub at ``address``."""
        return self.stubs.get(address)

    def lookup_slot(self, address: int) -> str | None:
        """Import whose GOT slot lives at ``address``."""
        return self.slots.get(address)

    def in_stub_section(self, address: int) -> bool:
        return any(lo <= address < hi for lo, hi in self.stub_ranges)

    @classmethod
    def build(cls, image: BinaryImage, profile: ArchProfile) -> ImportTable:
        slots, plt_order = _relocation_slots(image)
        got = image.section(".got.plt")
        if got is None:
            got = image.section(".got")
        got_base = got["sh_addr"] if got is not None else None
        md = profile.disassembler()

        stubs: dict[int, str] = {}
        stub_ranges: list[tuple[int, int]] = []
        for name in _STUB_SECTIONS:
            section = image.section(name)
            if section is None or section["sh_size"] == 0:
                continue
            base, size = section["sh_addr"], section["sh_size"]
            stub_ranges.append((base, base + size))
            entsize = section["sh_entsize"] or (8 if name == ".plt.got" else 16)
            data = section.data()
            found = 0
            for offset in range(0, size, entsize):
                stub = md.disasm(data[offset:offset + entsize], base + offset)
                slot = profile.plt_slot(stub, got_base)
                if slot is not None and slot in slots:
                    stubs[base + offset] = slots[slot]
                    found += 1
            if name == ".plt" and not found and plt_order:
                # undecodable stubs: assume the classic layout, PLT[0] is the resolver
                for i, sym_name in enumerate(plt_order):
                    stubs[base + (i + 1) * entsize] = sym_name

        log.debug("imports_resolved", stubs=len(stubs), slots=len(slots))
        return cls(stubs=stubs, slots=slots, stub_ranges=stub_ranges, got_base=got_base)


def _relocation_slots(image: BinaryImage) -> tuple[dict[int, str], list[str]]:
    slots: dict[int, str] = {}
    plt_order: list[str] = []
    for name in _RELOCATION_SECTIONS:
        section = image.section(name)
        if not isinstance(section, RelocationSection):
            continue
        symtab = image.elf.get_section(section["sh_link"])
        for rel in section.iter_relocations():
            sym_idx = rel["r_info_sym"]
            if sym_idx == 0:
                continue
            sym = symtab.get_symbol(sym_idx)
            if not sym.name or sym.entry.st_info.type not in _IMPORT_SYMBOL_TYPES:
                continue
            sym_name = strip_version(sym.name)
            slots[rel["r_offset"]] = sym_name
            if name.endswith(".plt"):
                plt_order.append(sym_name)
    return slots, plt_order


class CodeRegionResolver:
    """Translates function address ranges into file bytes.

    ``load_bias`` is subtracted from addresses of position-independent
    images, so descriptors may carry runtime addresses.
    """

    def __init__(self, image: BinaryImage, profile: ArchProfile, load_bias: int = 0) -> None:
        self.image = image
        self.profile = profile
        self.load_bias = load_bias if image.is_position_independent() else 0
        self._sections: list[Section] = [
            s for s in image.iter_sections()
            if s["sh_flags"] & SHF_ALLOC and s["sh_size"] > 0
        ]
        self._data: dict[str, bytes] = {}
        if image.is_static():
            self.imports = ImportTable()
        else:
            self.imports = ImportTable.build(image, profile)

    def link_address(self, address: int) -> int:
        return address - self.load_bias

    def _containing(self, address: int) -> Section | None:
        for section in self._sections:
            base = section["sh_addr"]
            if base <= address < base + section["sh_size"]:
                return section
        return None

    def region(self, fn: FunctionDescriptor) -> bytes:
        """Machine code of ``fn``, exactly ``fn.size`` bytes.

        Raises :class:`RegionResolutionError` when the range does not map
        onto file content.
        """
        if fn.size == 0:
            return b""
        start = self.link_address(fn.start)
        section = self._containing(start)
        if section is None:
            raise RegionResolutionError(fn.name, fn.start, fn.end, "outside every mapped section")
        if section["sh_type"] == "SHT_NOBITS":
            raise RegionResolutionError(fn.name, fn.start, fn.end, f"{section.name} has no file content")
        base = section["sh_addr"]
        if start + fn.size > base + section["sh_size"]:
            raise RegionResolutionError(fn.name, fn.start, fn.end, f"crosses the end of {section.name}")

        data = self._data.get(section.name)
        if data is None:
            data = self._data[section.name] = section.data()
        offset = start - base
        return data[offset:offset + fn.size]
