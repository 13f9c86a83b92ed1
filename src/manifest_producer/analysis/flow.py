"""Transitive syscall discovery over a function's call graph."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from capstone import CsInsn

from manifest_producer.analysis.syscalls import syscall_name
from manifest_producer.analysis.wrappers import GENERIC_SYSCALL_WRAPPER, WrapperTable
from manifest_producer.config.models import AnalysisConfig
from manifest_producer.elf.demangle import demangle
from manifest_producer.elf.image import BinaryImage
from manifest_producer.elf.regions import CodeRegionResolver
from manifest_producer.elf.symbols import FunctionIndex
from manifest_producer.errors import RegionResolutionError
from manifest_producer.models import (
    INDETERMINATE,
    CallEdge,
    EdgeKind,
    FunctionDescriptor,
    FunctionReport,
    LanguageTag,
    Status,
)
from manifest_producer.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class _DirectFacts:
    """What one function does by itself, before following local calls."""

    syscalls: set[str] = field(default_factory=set)
    imports: list[str] = field(default_factory=list)
    callees: list[int] = field(default_factory=list)
    unresolved: int = 0
    partial: bool = False


class SyscallFlowEngine:
    """Computes the transitive syscall set of functions in one image.

    :meth:`analyze` is the unit of work: it reads the shared image and only
    writes this engine's per-address cache of direct facts.
    """

    def __init__(
        self,
        image: BinaryImage,
        functions: list[FunctionDescriptor],
        resolver: CodeRegionResolver,
        language: LanguageTag,
        config: AnalysisConfig | None = None,
    ) -> None:
        cfg = config or AnalysisConfig()
        self.profile = resolver.profile
        self.language = language
        self._md = self.profile.disassembler()
        self._index = FunctionIndex(functions)
        self._resolver = resolver
        self._static = image.is_static()
        self._wrappers = WrapperTable(language.family, self.profile.abi, cfg.extra_wrappers)
        self._max_backtrack = cfg.max_backtrack
        self._follow_tail_calls = cfg.follow_tail_calls
        self._cache: dict[int, _DirectFacts] = {}

    # -- public API --

    def analyze(self, fn: FunctionDescriptor) -> FunctionReport:
        """Syscalls reachable from ``fn`` through local calls and imports."""
        try:
            root = self._direct(fn)
        except RegionResolutionError as exc:
            log.warning("region_unresolved", function=fn.name, reason=exc.reason)
            return FunctionReport(function=fn, status=Status.UNRESOLVED, note=exc.reason)

        syscalls = set(root.syscalls)
        imports = dict.fromkeys(root.imports)
        unresolved = root.unresolved
        partial = root.partial
        notes: list[str] = []

        visited = {fn.start}
        queue = deque(root.callees)
        while queue:
            address = queue.popleft()
            if address in visited:
                continue
            visited.add(address)
            callee = self._index.at(address)
            if callee is None:
                continue
            try:
                facts = self._direct(callee)
            except RegionResolutionError as exc:
                partial = True
                notes.append(f"{callee.name}: {exc.reason}")
                continue
            syscalls |= facts.syscalls
            imports.update(dict.fromkeys(facts.imports))
            unresolved += facts.unresolved
            partial = partial or facts.partial
            queue.extend(c for c in facts.callees if c not in visited)

        log.debug(
            "function_analyzed",
            function=fn.name,
            syscalls=len(syscalls),
            reached=len(visited),
            partial=partial,
        )
        return FunctionReport(
            function=fn,
            syscalls=tuple(sorted(syscalls)),
            status=Status.PARTIAL if partial else Status.COMPLETE,
            imports=tuple(imports),
            unresolved_calls=unresolved,
            note="; ".join(notes),
        )

    def call_edges(self, fn: FunctionDescriptor) -> list[CallEdge]:
        """Classified control transfers and traps found in ``fn``'s body."""
        insns, _ = self._decode(fn)
        return self._edges(fn, insns)

    # -- per-function scan --

    def _direct(self, fn: FunctionDescriptor) -> _DirectFacts:
        facts = self._cache.get(fn.start)
        if facts is not None:
            return facts

        insns, partial = self._decode(fn)
        facts = _DirectFacts(partial=partial)
        for edge in self._edges(fn, insns):
            if edge.kind is EdgeKind.SYSCALL:
                facts.syscalls.add(edge.name)
            elif edge.kind is EdgeKind.IMPORT:
                facts.imports.append(edge.name)
                facts.syscalls |= self._wrappers.lookup(edge.name)
            elif edge.kind is EdgeKind.LOCAL:
                facts.callees.append(edge.target)
            else:
                facts.unresolved += 1

        if partial:
            log.warning("decode_truncated", function=fn.name, start=hex(fn.start))
        self._cache[fn.start] = facts
        return facts

    def _decode(self, fn: FunctionDescriptor) -> tuple[list[CsInsn], bool]:
        code = self._resolver.region(fn)
        insns = list(self._md.disasm(code, fn.start))
        # capstone stops at the first invalid encoding
        decoded_end = insns[-1].address + insns[-1].size if insns else fn.start
        return insns, decoded_end < fn.end

    def _edges(self, fn: FunctionDescriptor, insns: list[CsInsn]) -> list[CallEdge]:
        profile = self.profile
        edges: list[CallEdge] = []
        for i, insn in enumerate(insns):
            abi = profile.trap_abi(insn)
            if abi is not None:
                name = self._constant_syscall(insns, i, profile.number_register, abi)
                edges.append(CallEdge(fn.start, insn.address, None, EdgeKind.SYSCALL, name))
                continue

            is_call = profile.is_call(insn)
            conditional = not is_call and profile.is_conditional(insn)
            if not is_call and not conditional and not profile.is_jump(insn):
                continue

            target = profile.direct_target(insn)
            if target is not None:
                # branches leaving the body are tail calls, cold splits included
                if not is_call and (fn.contains(target) or not self._follow_tail_calls):
                    continue
                edge = self._direct_edge(fn, insn, target)
            elif conditional:
                continue
            else:
                edge = self._indirect_edge(fn, insn, is_call)
            if edge is None:
                continue
            edges.append(edge)
            if edge.kind is EdgeKind.IMPORT and edge.name == GENERIC_SYSCALL_WRAPPER:
                register = profile.argument_register
                name = (
                    self._constant_syscall(insns, i, register, profile.abi)
                    if register is not None
                    else INDETERMINATE
                )
                edges.append(CallEdge(fn.start, insn.address, edge.target, EdgeKind.SYSCALL, name))
        return edges

    def _direct_edge(self, fn: FunctionDescriptor, insn: CsInsn, target: int) -> CallEdge | None:
        if not self._static:
            imported = self._resolver.imports.lookup(self._resolver.link_address(target))
            if imported is not None:
                return CallEdge(
                    fn.start, insn.address, target, EdgeKind.IMPORT, demangle(imported, self.language)
                )

        callee = self._index.at(target)
        if callee is not None:
            return CallEdge(fn.start, insn.address, callee.start, EdgeKind.LOCAL, callee.name)
        return CallEdge(fn.start, insn.address, target, EdgeKind.UNRESOLVED)

    def _indirect_edge(self, fn: FunctionDescriptor, insn: CsInsn, is_call: bool) -> CallEdge | None:
        if not self._static:
            imports = self._resolver.imports
            slot = self.profile.memory_slot(insn, imports.got_base)
            if slot is not None:
                # GOT-relative and absolute slots are already link-time addresses
                if self.profile.pc_relative(insn):
                    slot = self._resolver.link_address(slot)
                imported = imports.lookup_slot(slot)
                if imported is not None:
                    return CallEdge(
                        fn.start, insn.address, slot, EdgeKind.IMPORT, demangle(imported, self.language)
                    )
        # indirect jumps are mostly switch tables; only calls count as unresolved
        if is_call:
            return CallEdge(fn.start, insn.address, None, EdgeKind.UNRESOLVED)
        return None

    def _constant_syscall(self, insns: list[CsInsn], index: int, register: str, abi: str) -> str:
        """Walk back from ``insns[index]`` to the constant loaded in ``register``."""
        profile = self.profile
        stop = max(-1, index - 1 - self._max_backtrack)
        for j in range(index - 1, stop, -1):
            prev = insns[j]
            if profile.is_call(prev):
                break
            value = profile.constant_written(prev, register)
            if value is not None:
                return syscall_name(abi, value)
            if profile.writes_register(prev, register):
                break
        return INDETERMINATE
