"""
Instruction Set Definition
==========================

This module defines the instruction set of the target machine: every
mnemonic with its opcode byte. The machine has a fixed-width instruction
format, so each instruction occupies one 4-byte slot no matter how many
of the bytes it actually uses.

Slot Layout
-----------
```
byte 0      opcode
byte 1..3   operands, in source order:
              register           1 byte   (r0..r255)
              immediate / label  2 bytes  (big-endian)
```

Register and Immediate Forms
----------------------------
Most operations exist twice: a register form (`add`) and an immediate
form named with a trailing "i" (`addi`). When an instruction is written
with an immediate or label operand, the encoder promotes it to the
immediate form:

    add r1 r2    -> 16 01 02 00
    add r1 5     -> 17 01 00 05   (promoted to addi)

Both lookup tables are built once into an immutable InstructionSet and
handed to each stage by reference.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional


# Every instruction statement occupies exactly this many bytes
SLOT_SIZE = 4

# Suffix that names the immediate form of an instruction
IMMEDIATE_SUFFIX = "i"


# =============================================================================
# Instruction Descriptor
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    One instruction of the machine.

    Attributes:
        mnemonic: Instruction name (lower case)
        opcode: Opcode byte written to slot byte 0
    """
    mnemonic: str
    opcode: int

    def __repr__(self) -> str:
        return f"InstructionInfo({self.mnemonic!r}, 0x{self.opcode:02X})"


# =============================================================================
# Instruction Table
# =============================================================================

INSTRUCTIONS: tuple[InstructionInfo, ...] = (
    InstructionInfo("nop", 0x00),
    InstructionInfo("hlt", 0xFF),
    InstructionInfo("print", 0xFE),
    InstructionInfo("ld", 0x01),
    InstructionInfo("st", 0x02),
    InstructionInfo("int", 0x03),
    InstructionInfo("inti", 0x04),
    InstructionInfo("ret", 0x05),
    InstructionInfo("mov", 0x06),
    InstructionInfo("movi", 0x07),
    InstructionInfo("cmp", 0x08),
    InstructionInfo("cmpi", 0x09),
    InstructionInfo("jmp", 0x0A),
    InstructionInfo("jmpi", 0x0B),
    InstructionInfo("jz", 0x0C),
    InstructionInfo("jzi", 0x0D),
    InstructionInfo("jnz", 0x0E),
    InstructionInfo("jnzi", 0x0F),
    InstructionInfo("jl", 0x10),
    InstructionInfo("jli", 0x11),
    InstructionInfo("jg", 0x12),
    InstructionInfo("jgi", 0x13),
    InstructionInfo("inc", 0x14),
    InstructionInfo("dec", 0x15),
    InstructionInfo("add", 0x16),
    InstructionInfo("addi", 0x17),
    InstructionInfo("sub", 0x18),
    InstructionInfo("subi", 0x19),
    InstructionInfo("mul", 0x1A),
    InstructionInfo("muli", 0x1B),
    InstructionInfo("div", 0x1C),
    InstructionInfo("divi", 0x1D),
    InstructionInfo("call", 0x1E),
    InstructionInfo("calli", 0x1F),
)


# =============================================================================
# Lookup Structure
# =============================================================================

class InstructionSet:
    """
    Read-only name and opcode lookups over a table of instructions.

    Usage:
        isa = InstructionSet(INSTRUCTIONS)
        info = isa.get("add")          # InstructionInfo('add', 0x16)
        isa.promote(info)              # InstructionInfo('addi', 0x17)
        isa.by_opcode(0x17).mnemonic   # 'addi'
    """

    def __init__(self, instructions: Iterable[InstructionInfo]):
        by_name: dict[str, InstructionInfo] = {}
        by_opcode: dict[int, InstructionInfo] = {}

        for info in instructions:
            name = info.mnemonic.lower()
            if name in by_name:
                raise ValueError(f"duplicate mnemonic '{name}' in instruction table")
            if info.opcode in by_opcode:
                raise ValueError(
                    f"duplicate opcode 0x{info.opcode:02X} in instruction table "
                    f"('{by_opcode[info.opcode].mnemonic}' and '{name}')"
                )
            if not 0 <= info.opcode <= 0xFF:
                raise ValueError(f"opcode for '{name}' does not fit a byte")
            by_name[name] = info
            by_opcode[info.opcode] = info

        self._by_name: Mapping[str, InstructionInfo] = MappingProxyType(by_name)
        self._by_opcode: Mapping[int, InstructionInfo] = MappingProxyType(by_opcode)

    def __contains__(self, mnemonic: str) -> bool:
        return mnemonic.lower() in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    @property
    def mnemonics(self) -> list[str]:
        """All mnemonics, sorted."""
        return sorted(self._by_name)

    def get(self, mnemonic: str) -> Optional[InstructionInfo]:
        """Look up an instruction by name (case-insensitive)."""
        return self._by_name.get(mnemonic.lower())

    def by_opcode(self, opcode: int) -> Optional[InstructionInfo]:
        """Look up an instruction by opcode byte."""
        return self._by_opcode.get(opcode)

    def promote(self, info: InstructionInfo) -> InstructionInfo:
        """
        Return the immediate form of an instruction.

        If `mnemonic + "i"` does not exist the instruction is returned
        unchanged; this covers mnemonics that already name the immediate
        form (movi) and those without one (ld, st).
        """
        return self._by_name.get(info.mnemonic + IMMEDIATE_SUFFIX, info)


DEFAULT_INSTRUCTION_SET = InstructionSet(INSTRUCTIONS)
