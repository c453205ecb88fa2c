"""
Slot Assembler - Main Interface
===============================

This module provides the Assembler class, the primary interface for
turning source text into a binary image. It runs the stages in order:

1. Preprocessor - load source, splice includes, tokenize lines
2. Statements - classify every line once
3. AliasResolver - substitute `$name` operands
4. SymbolTableBuilder - pass 1, label addresses and validation
5. InstructionEncoder - pass 2, one 4-byte slot per instruction
6. DataSegmentBuilder - data directives
7. BinaryImage - final layout

Each stage fails on its own errors before the next stage runs.

Example Usage
-------------
>>> from slotasm.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
... start:
...     movi r1 5
...     jmpi @loop
... loop:
...     inc r1
... ''')
>>> asm.get_symbols()
{'start': 0, 'loop': 8}
>>> asm.write_binary("program.bin")
"""

import logging
from pathlib import Path
from typing import Optional

from slotasm.assembler.aliases import AliasResolver, AliasTable
from slotasm.assembler.codegen import InstructionEncoder
from slotasm.assembler.data import DataSegmentBuilder, DataTable
from slotasm.assembler.layout import BinaryImage
from slotasm.assembler.lexer import SourceLine
from slotasm.assembler.opcodes import DEFAULT_INSTRUCTION_SET, InstructionSet
from slotasm.assembler.parser import Statement, build_statements
from slotasm.assembler.preprocessor import Preprocessor
from slotasm.assembler.symbols import SymbolTable, SymbolTableBuilder
from slotasm.config import AssemblerConfig
from slotasm.errors import OutputWriteError


logger = logging.getLogger(__name__)


class Assembler:
    """
    Main assembler class.

    One instance can assemble many sources; every call starts from fresh
    tables, so results never leak from one assembly into the next.

    Attributes:
        config: Include paths, error limit and listing switch
        isa: Instruction set shared by all stages
    """

    def __init__(self, config: Optional[AssemblerConfig] = None,
                 isa: InstructionSet = DEFAULT_INSTRUCTION_SET,
                 verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            config: Assembler configuration (defaults to AssemblerConfig())
            isa: Instruction set to assemble for
            verbose: Log stage progress at INFO level
        """
        self.config = config or AssemblerConfig()
        self.isa = isa
        self._verbose = verbose
        self._reset()

    def _reset(self) -> None:
        self._statements: list[Statement] = []
        self._aliases = AliasTable()
        self._symbols = SymbolTable()
        self._data = DataTable()
        self._code = b""
        self._image: Optional[bytes] = None
        self._listing: list[str] = []

    def _progress(self, message: str) -> None:
        if self._verbose:
            logger.info(message)
        else:
            logger.debug(message)

    # =========================================================================
    # Configuration
    # =========================================================================

    def add_include_path(self, path: str | Path) -> None:
        """Add a directory to search for include files."""
        self.config.add_include_path(path)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Name used in diagnostics and for relative includes

        Returns:
            The binary image

        Raises:
            AssemblerError: If any stage fails
        """
        self._reset()
        preprocessor = Preprocessor(self.config.include_paths)
        lines = preprocessor.load_string(source, filename)
        return self._assemble(lines)

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble a source file.

        Raises:
            UnreadableSourceError: If the file or one of its includes
                                   cannot be read
            AssemblerError: If any other stage fails
        """
        self._reset()
        self._progress(f"Assembling {filepath}...")
        preprocessor = Preprocessor(self.config.include_paths)
        lines = preprocessor.load_file(filepath)
        return self._assemble(lines)

    def _assemble(self, lines: list[SourceLine]) -> bytes:
        max_errors = self.config.max_errors

        statements = build_statements(lines)
        self._progress(f"Parsed {len(statements)} statements")

        aliases = AliasResolver(max_errors).resolve(statements)
        symbols = SymbolTableBuilder(self.isa, max_errors).build(statements)

        encoder = InstructionEncoder(self.isa, max_errors, self.config.listing)
        code = encoder.encode(statements, symbols)

        data = DataSegmentBuilder(max_errors).build(statements)
        image = BinaryImage.from_tables(data, code).to_bytes()

        self._statements = statements
        self._aliases = aliases
        self._symbols = symbols
        self._data = data
        self._code = code
        self._listing = encoder.listing
        self._image = image

        self._progress(
            f"Generated {len(code)} bytes of code, {len(data)} data entries, "
            f"{len(image)} byte image"
        )
        return image

    # =========================================================================
    # Results
    # =========================================================================

    def get_code(self) -> bytes:
        """The complete binary image of the last assembly."""
        return self._image or b""

    def get_code_segment(self) -> bytes:
        """Only the instruction slots of the last assembly."""
        return self._code

    def get_statements(self) -> list[Statement]:
        return self._statements

    def get_symbols(self) -> dict[str, int]:
        """Label name -> address."""
        return self._symbols.as_dict()

    def get_symbol_table(self) -> SymbolTable:
        return self._symbols

    def get_aliases(self) -> dict[str, str]:
        """Alias name -> replacement text."""
        return self._aliases.as_dict()

    def get_data_table(self) -> dict[int, bytes]:
        """Load offset -> data bytes."""
        return self._data.as_dict()

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing with addresses, slot bytes and source lines,
            followed by the symbol and data tables.
        """
        lines = []
        lines.append("Slot Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr  Code          Line  Source")
        lines.append("-" * 60)
        lines.extend(self._listing)
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for name, address in sorted(self._symbols.as_dict().items()):
            lines.append(f"{name:20s} = 0x{address:04X}")
        if len(self._data):
            lines.append("")
            lines.append("Data Table")
            lines.append("-" * 30)
            for entry in self._data:
                lines.append(f"0x{entry.offset:04X}  {len(entry.payload):5d} bytes")
        return "\n".join(lines) + "\n"

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write the binary image.

        Raises:
            OutputWriteError: If nothing was assembled or the file cannot
                              be written
        """
        if self._image is None:
            raise OutputWriteError(str(filepath), "nothing has been assembled")
        self._write(filepath, self._image)
        self._progress(f"Wrote {len(self._image)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing file."""
        self._write(filepath, self.get_listing())
        self._progress(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the symbol table file.

        Format: name address (one per line)
        """
        lines = ["# Symbol table", "# Generated by slotasm"]
        for name, address in sorted(self._symbols.as_dict().items()):
            lines.append(f"{name} 0x{address:04X}")
        self._write(filepath, "\n".join(lines) + "\n")
        self._progress(f"Wrote symbols to {filepath}")

    @staticmethod
    def _write(filepath: str | Path, content: str | bytes) -> None:
        path = Path(filepath)
        try:
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(str(filepath), e.strerror or str(e)) from e


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Returns:
        The binary image

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """Convenience function to assemble a file."""
    return Assembler().assemble_file(filepath)
