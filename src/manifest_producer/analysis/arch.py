"""Per-architecture instruction semantics on top of capstone."""

from __future__ import annotations

import re
from typing import Iterable

import capstone
from capstone import CS_ARCH_X86, CS_MODE_32, CS_MODE_64, Cs, CsError, CsInsn
from capstone.x86 import X86_OP_IMM, X86_OP_MEM, X86_OP_REG, X86_REG_EBX, X86_REG_INVALID, X86_REG_RIP

from manifest_producer.errors import UnsupportedArchitectureError

_X86_GPR = re.compile(r"^[re]?([abcd])[xlh]$")
_X86_INDEX = re.compile(r"^[re]?(si|di|sp|bp)l?$")
_X86_EXT = re.compile(r"^(r\d+)[dwb]?$")
_A64_GPR = re.compile(r"^[wx](\d+)$")
_A64_IMM = re.compile(r"^#(-?0x[0-9a-f]+|-?\d+)$")
_A64_MOV = re.compile(r"^([wx]\d+), #(-?0x[0-9a-f]+|-?\d+)$")
_A64_ADRP = re.compile(r"^x(\d+), #(0x[0-9a-f]+)$")
_A64_LDR = re.compile(r"^x\d+, \[x(\d+)(?:, #(0x[0-9a-f]+|\d+))?\]$")


def base_mnemonic(insn: CsInsn) -> str:
    """Mnemonic without prefixes such as ``bnd`` or ``notrack``."""
    return insn.mnemonic.split()[-1]


class ArchProfile:
    """Base profile; subclasses describe one instruction set."""

    name = ""
    abi = ""
    number_register = ""
    argument_register: str | None = None
    call_mnemonics: frozenset[str] = frozenset()
    jump_mnemonics: frozenset[str] = frozenset()
    conditional_mnemonics: frozenset[str] = frozenset()

    def disassembler(self) -> Cs:
        raise NotImplementedError

    def canonical_register(self, name: str) -> str:
        return name

    def trap_abi(self, insn: CsInsn) -> str | None:
        """ABI of the kernel entry performed by ``insn``, if it is a trap."""
        raise NotImplementedError

    def direct_target(self, insn: CsInsn) -> int | None:
        raise NotImplementedError

    def memory_slot(self, insn: CsInsn, got_base: int | None = None) -> int | None:
        """Address of the pointer an indirect branch loads its target from."""
        return None

    def pc_relative(self, insn: CsInsn) -> bool:
        """Whether :meth:`memory_slot` derived the slot from ``insn.address``."""
        return False

    def constant_written(self, insn: CsInsn, register: str) -> int | None:
        """Value ``insn`` puts in ``register`` when it is a plain constant."""
        raise NotImplementedError

    def plt_slot(self, stub: Iterable[CsInsn], got_base: int | None = None) -> int | None:
        for insn in stub:
            if base_mnemonic(insn) in self.jump_mnemonics:
                return self.memory_slot(insn, got_base)
        return None

    def writes_register(self, insn: CsInsn, register: str) -> bool:
        try:
            _, written = insn.regs_access()
        except CsError:
            return True
        return any(self.canonical_register(insn.reg_name(r)) == register for r in written)

    def is_call(self, insn: CsInsn) -> bool:
        return base_mnemonic(insn) in self.call_mnemonics

    def is_jump(self, insn: CsInsn) -> bool:
        return base_mnemonic(insn) in self.jump_mnemonics

    def is_conditional(self, insn: CsInsn) -> bool:
        return base_mnemonic(insn) in self.conditional_mnemonics


class X86Profile(ArchProfile):
    call_mnemonics = frozenset({"call"})
    jump_mnemonics = frozenset({"jmp"})
    conditional_mnemonics = frozenset({
        "ja", "jae", "jb", "jbe", "je", "jne", "jg", "jge", "jl", "jle",
        "jo", "jno", "jp", "jnp", "js", "jns", "jcxz", "jecxz", "jrcxz",
        "loop", "loope", "loopne",
    })

    def canonical_register(self, name: str) -> str:
        for pattern, fmt in ((_X86_GPR, "r{}x"), (_X86_INDEX, "r{}"), (_X86_EXT, "{}")):
            match = pattern.match(name)
            if match:
                return fmt.format(match.group(1))
        return name

    def direct_target(self, insn: CsInsn) -> int | None:
        ops = insn.operands
        if len(ops) == 1 and ops[0].type == X86_OP_IMM:
            return ops[0].imm
        return None

    def memory_slot(self, insn: CsInsn, got_base: int | None = None) -> int | None:
        ops = insn.operands
        if len(ops) != 1 or ops[0].type != X86_OP_MEM:
            return None
        mem = ops[0].mem
        if mem.index != X86_REG_INVALID:
            return None
        if mem.base == X86_REG_RIP:
            return insn.address + insn.size + mem.disp
        if mem.base == X86_REG_INVALID:
            return mem.disp & 0xFFFFFFFF
        if mem.base == X86_REG_EBX and got_base is not None:
            return got_base + mem.disp
        return None

    def pc_relative(self, insn: CsInsn) -> bool:
        ops = insn.operands
        return len(ops) == 1 and ops[0].type == X86_OP_MEM and ops[0].mem.base == X86_REG_RIP

    def constant_written(self, insn: CsInsn, register: str) -> int | None:
        ops = insn.operands
        if len(ops) != 2 or ops[0].type != X86_OP_REG:
            return None
        if self.canonical_register(insn.reg_name(ops[0].reg)) != register:
            return None
        mnemonic = base_mnemonic(insn)
        if mnemonic == "mov" and ops[1].type == X86_OP_IMM:
            return ops[1].imm & 0xFFFFFFFF
        if mnemonic in ("xor", "sub") and ops[1].type == X86_OP_REG and ops[1].reg == ops[0].reg:
            return 0
        return None


class X86_64Profile(X86Profile):
    name = "x86_64"
    abi = "x86_64"
    number_register = "rax"
    argument_register = "rdi"

    def disassembler(self) -> Cs:
        md = Cs(CS_ARCH_X86, CS_MODE_64)
        md.detail = True
        return md

    def trap_abi(self, insn: CsInsn) -> str | None:
        mnemonic = base_mnemonic(insn)
        if mnemonic == "syscall":
            return "x86_64"
        if (mnemonic == "int" and insn.op_str == "0x80") or mnemonic == "sysenter":
            return "i386"
        return None


class I386Profile(X86Profile):
    name = "x86"
    abi = "i386"
    number_register = "rax"

    def disassembler(self) -> Cs:
        md = Cs(CS_ARCH_X86, CS_MODE_32)
        md.detail = True
        return md

    def trap_abi(self, insn: CsInsn) -> str | None:
        mnemonic = base_mnemonic(insn)
        if (mnemonic == "int" and insn.op_str == "0x80") or mnemonic == "sysenter":
            return "i386"
        return None


class AArch64Profile(ArchProfile):
    name = "AArch64"
    abi = "aarch64"
    number_register = "x8"
    argument_register = "x0"
    call_mnemonics = frozenset({"bl", "blr"})
    jump_mnemonics = frozenset({"b", "br"})
    conditional_mnemonics = frozenset({"cbz", "cbnz", "tbz", "tbnz"})

    def disassembler(self) -> Cs:
        arch = getattr(capstone, "CS_ARCH_AARCH64", None)
        if arch is None:
            arch = capstone.CS_ARCH_ARM64
        md = Cs(arch, capstone.CS_MODE_ARM)
        md.detail = True
        return md

    def canonical_register(self, name: str) -> str:
        match = _A64_GPR.match(name)
        return f"x{match.group(1)}" if match else name

    def trap_abi(self, insn: CsInsn) -> str | None:
        return "aarch64" if insn.mnemonic == "svc" else None

    def is_conditional(self, insn: CsInsn) -> bool:
        return insn.mnemonic.startswith("b.") or insn.mnemonic in self.conditional_mnemonics

    def direct_target(self, insn: CsInsn) -> int | None:
        # cbz/tbz carry the label as their last operand
        match = _A64_IMM.match(insn.op_str.rsplit(", ", 1)[-1])
        return int(match.group(1), 0) if match else None

    def constant_written(self, insn: CsInsn, register: str) -> int | None:
        if insn.mnemonic not in ("mov", "movz"):
            return None
        match = _A64_MOV.match(insn.op_str)
        if match is None or self.canonical_register(match.group(1)) != register:
            return None
        return int(match.group(2), 0)

    def plt_slot(self, stub: Iterable[CsInsn], got_base: int | None = None) -> int | None:
        pages: dict[str, int] = {}
        for insn in stub:
            if insn.mnemonic == "adrp":
                match = _A64_ADRP.match(insn.op_str)
                if match:
                    pages[match.group(1)] = int(match.group(2), 16)
            elif insn.mnemonic == "ldr":
                match = _A64_LDR.match(insn.op_str)
                if match and match.group(1) in pages:
                    return pages[match.group(1)] + int(match.group(2) or "0", 0)
        return None


_PROFILES: dict[str, type[ArchProfile]] = {
    "EM_X86_64": X86_64Profile,
    "EM_386": I386Profile,
    "EM_AARCH64": AArch64Profile,
}


def profile_for(machine: str) -> ArchProfile:
    """Profile for an ELF ``e_machine`` value.

    Raises :class:`UnsupportedArchitectureError` for anything else.
    """
    cls = _PROFILES.get(machine)
    if cls is None:
        raise UnsupportedArchitectureError(machine)
    return cls()
