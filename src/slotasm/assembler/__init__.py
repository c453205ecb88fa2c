"""
Slot Assembler
==============

A two-pass assembler for a small machine whose instructions all occupy
one 4-byte slot.

Main Components
---------------
- **Assembler**: Runs the whole pipeline and writes the outputs
- **Preprocessor**: Loads source files and splices includes
- **AliasResolver**: Substitutes `$name` operands with `~name` values
- **SymbolTableBuilder**: Pass 1, assigns label addresses
- **InstructionEncoder**: Pass 2, encodes instruction slots
- **DataSegmentBuilder**: Parses data directives
- **BinaryImage**: Lays out and reads back the final image

Assembly Process
----------------
Because every instruction has the same size, the address of every label
is known after one walk over the source (pass 1). Pass 2 then encodes
each instruction directly, with no fixups or relaxation.

Example Usage
-------------
>>> from slotasm.assembler import Assembler
>>> asm = Assembler()
>>> image = asm.assemble_string('''
... ~count r1
... start:
...     movi $count 5
...     jmpi @start
... 8000 "hello\\n"
... ''')
>>> asm.get_symbols()
{'start': 0}
"""

from slotasm.assembler.assembler import Assembler, assemble, assemble_file
from slotasm.assembler.aliases import Alias, AliasResolver, AliasTable
from slotasm.assembler.codegen import InstructionEncoder
from slotasm.assembler.data import DataEntry, DataSegmentBuilder, DataTable
from slotasm.assembler.layout import BinaryImage, build_image
from slotasm.assembler.lexer import SourceLine, Token, tokenize_line
from slotasm.assembler.opcodes import (
    DEFAULT_INSTRUCTION_SET,
    SLOT_SIZE,
    InstructionInfo,
    InstructionSet,
)
from slotasm.assembler.parser import (
    Immediate,
    LabelRef,
    Register,
    Statement,
    StatementKind,
    SubLabelRef,
    build_statements,
)
from slotasm.assembler.preprocessor import Preprocessor
from slotasm.assembler.symbols import Symbol, SymbolTable, SymbolTableBuilder

__all__ = [
    "Assembler",
    "assemble",
    "assemble_file",
    "Alias",
    "AliasResolver",
    "AliasTable",
    "InstructionEncoder",
    "DataEntry",
    "DataSegmentBuilder",
    "DataTable",
    "BinaryImage",
    "build_image",
    "SourceLine",
    "Token",
    "tokenize_line",
    "DEFAULT_INSTRUCTION_SET",
    "SLOT_SIZE",
    "InstructionInfo",
    "InstructionSet",
    "Immediate",
    "LabelRef",
    "Register",
    "Statement",
    "StatementKind",
    "SubLabelRef",
    "build_statements",
    "Preprocessor",
    "Symbol",
    "SymbolTable",
    "SymbolTableBuilder",
]
