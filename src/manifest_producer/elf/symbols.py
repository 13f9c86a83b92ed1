"""Function discovery from the ELF symbol table."""

from __future__ import annotations

from bisect import bisect_right

from elftools.elf.sections import SymbolTableSection

from manifest_producer.elf.demangle import demangle
from manifest_producer.elf.image import BinaryImage
from manifest_producer.errors import EmptyFunctionListError
from manifest_producer.models import FunctionDescriptor, LanguageTag
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)


def _is_defined(shndx: int | str) -> bool:
    # pyelftools names the reserved indices (SHN_UNDEF, SHN_ABS, SHN_COMMON)
    return isinstance(shndx, int)


def discover_functions(image: BinaryImage, language: LanguageTag) -> list[FunctionDescriptor]:
    """List every defined STT_FUNC symbol in ``.symtab`` order.

    Raises :class:`EmptyFunctionListError` when the table yields nothing.
    """
    symtab = image.section(".symtab")
    functions: list[FunctionDescriptor] = []
    skipped = 0

    if isinstance(symtab, SymbolTableSection):
        for sym in symtab.iter_symbols():
            entry = sym.entry
            if entry.st_info.type != "STT_FUNC" or not _is_defined(entry.st_shndx):
                continue
            if not sym.name:
                skipped += 1
                continue
            start = entry.st_value
            functions.append(
                FunctionDescriptor(
                    name=demangle(sym.name, language),
                    start=start,
                    end=start + entry.st_size,
                    raw_name=sym.name,
                )
            )

    if not functions:
        raise EmptyFunctionListError(str(image.path))

    log.info("functions_discovered", count=len(functions), nameless=skipped)
    return functions


class FunctionIndex:
    """Address lookups over the discovered functions.

    Aliases sharing a start address resolve to the first one discovered,
    except that a sized function always wins over a zero-size label.
    """

    def __init__(self, functions: list[FunctionDescriptor]) -> None:
        self._by_start: dict[int, FunctionDescriptor] = {}
        for fn in functions:
            current = self._by_start.get(fn.start)
            if current is None or (current.size == 0 and fn.size > 0):
                self._by_start[fn.start] = fn
        self._sized = sorted(
            (fn for fn in self._by_start.values() if fn.size > 0),
            key=lambda fn: fn.start,
        )
        self._starts = [fn.start for fn in self._sized]

    def __len__(self) -> int:
        return len(self._by_start)

    def at(self, address: int) -> FunctionDescriptor | None:
        """Function starting at ``address``, or the one whose body contains it."""
        fn = self._by_start.get(address)
        if fn is not None:
            return fn
        i = bisect_right(self._starts, address) - 1
        if i >= 0 and self._sized[i].contains(address):
            return self._sized[i]
        return None
