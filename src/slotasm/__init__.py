"""
Slotasm - Assembler Toolchain for a Fixed-Slot Instruction Machine
==================================================================

Main Components
---------------
- **assembler**: two-pass assembler (slotasm)
    Converts assembly source files to binary images holding a data
    section and one 4-byte slot per instruction

- **disassembler**: image inspector (slotdump)
    Lists the data entries and decodes every code slot

Quick Start
-----------
    >>> from slotasm import Assembler
    >>> asm = Assembler()
    >>> image = asm.assemble_file("program.asm")
    >>> asm.write_binary("program.bin")

Or use the command-line tools:
    $ slotasm program.asm program.bin -l program.lst
    $ slotdump program.bin
"""

__version__ = "1.0.0"

from slotasm.assembler import Assembler, assemble, assemble_file
from slotasm.config import AssemblerConfig
from slotasm.disassembler import SlotDisassembler
from slotasm.errors import (
    SlotasmError,
    AssemblerError,
    AssemblyFailedError,
    AssemblySyntaxError,
    DirectiveError,
    DuplicateAliasError,
    DuplicateLabelError,
    ImageFormatError,
    InvalidOperandError,
    MultipleImmediateOperandsError,
    OutputWriteError,
    SourceLocation,
    TooManyOperandsError,
    UndefinedAliasError,
    UndefinedLabelError,
    UnknownInstructionError,
    UnreadableSourceError,
)

__all__ = [
    "__version__",
    "Assembler",
    "assemble",
    "assemble_file",
    "AssemblerConfig",
    "SlotDisassembler",
    "SlotasmError",
    "AssemblerError",
    "AssemblyFailedError",
    "AssemblySyntaxError",
    "DirectiveError",
    "DuplicateAliasError",
    "DuplicateLabelError",
    "ImageFormatError",
    "InvalidOperandError",
    "MultipleImmediateOperandsError",
    "OutputWriteError",
    "SourceLocation",
    "TooManyOperandsError",
    "UndefinedAliasError",
    "UndefinedLabelError",
    "UnknownInstructionError",
    "UnreadableSourceError",
]
