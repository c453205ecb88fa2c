"""
Symbol Table Builder (Pass 1)
=============================

The first pass walks the statements in source order and assigns an
address to every label without emitting any bytes.

Addressing
----------
Every instruction occupies one fixed-size slot, so the address counter
simply advances by SLOT_SIZE per instruction. Labels, alias definitions
and data directives take no space. Because sizes never depend on operand
values, one pass is enough to know every label's address and the second
pass never needs to patch anything.

Sub-labels
----------
A label starting with `.` belongs to the most recent ordinary label and
is stored under the concatenated name:

```asm
print:              # print       = 0x0000
.loop:              # print.loop  = 0x0000
    jnzi @.loop
clear:              # clear       = 0x0004
.loop:              # clear.loop  = 0x0004
```

Besides addresses this pass validates each instruction: the mnemonic must
exist, there may be at most two operands, and at most one of them may be
an immediate value or label reference. The typed operands are stored on
the statement for the encoding pass.
"""

from dataclasses import dataclass
import difflib
import logging
from typing import Iterator, Optional

from slotasm.assembler.opcodes import (
    DEFAULT_INSTRUCTION_SET,
    SLOT_SIZE,
    InstructionSet,
)
from slotasm.assembler.parser import (
    SUBLABEL_MARKER,
    Statement,
    StatementKind,
    parse_operand,
)
from slotasm.errors import (
    AssemblerError,
    DuplicateLabelError,
    ErrorCollector,
    MultipleImmediateOperandsError,
    SourceLocation,
    TooManyOperandsError,
    UnknownInstructionError,
)


logger = logging.getLogger(__name__)

# Size of the address space; addresses are 16-bit
ADDRESS_SPACE = 0x10000

MAX_OPERANDS = 2


# =============================================================================
# Symbol Table
# =============================================================================

@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Full symbol name (sub-labels include their enclosing label)
        value: Resolved address
        location: Where the label was defined
        is_local: True for sub-labels
        parent: Enclosing label for sub-labels
    """
    name: str
    value: int
    location: SourceLocation
    is_local: bool = False
    parent: Optional[str] = None


class SymbolTable:
    """
    Mapping from label name to resolved 16-bit address.

    Attributes:
        code_size: Size of the code segment in bytes, set by the builder
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}
        self.code_size = 0

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __getitem__(self, name: str) -> int:
        return self._symbols[name].value

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def get(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def define(self, symbol: Symbol, source_line: Optional[str] = None) -> None:
        """
        Add a label.

        Raises:
            DuplicateLabelError: If the name is already defined
        """
        existing = self._symbols.get(symbol.name)
        if existing is not None:
            raise DuplicateLabelError(
                symbol.name,
                location=symbol.location,
                original_location=existing.location,
                source_line=source_line,
            )
        self._symbols[symbol.name] = symbol

    def resolve(self, name: str) -> Optional[int]:
        """Return the address of a label, or None if undefined."""
        symbol = self._symbols.get(name)
        return symbol.value if symbol else None

    def similar(self, name: str) -> list[str]:
        """Names close to `name`, for typo hints."""
        return difflib.get_close_matches(name, list(self._symbols), n=3)

    def as_dict(self) -> dict[str, int]:
        """Return a plain name -> address dictionary."""
        return {name: sym.value for name, sym in self._symbols.items()}


# =============================================================================
# Pass 1
# =============================================================================

class SymbolTableBuilder:
    """
    Builds the symbol table and validates instructions.

    The walk is a fold over the statements carrying two accumulators: the
    address counter and the enclosing label. Nothing is kept on the
    builder between calls, so one builder can serve many assemblies.

    Usage:
        builder = SymbolTableBuilder()
        symbols = builder.build(statements)
        symbols["loop"]      # -> 8
        symbols.code_size    # -> 12
    """

    def __init__(self, isa: InstructionSet = DEFAULT_INSTRUCTION_SET,
                 max_errors: int = 100):
        self.isa = isa
        self.max_errors = max_errors

    def build(self, statements: list[Statement]) -> SymbolTable:
        """
        Run pass 1 over all statements.

        Sets `scope` on every statement and `operands` on instructions.

        Raises:
            AssemblerError: On the first stage failure (several errors are
                            aggregated into AssemblyFailedError)
        """
        table = SymbolTable()
        errors = ErrorCollector(self.max_errors)
        address = 0
        scope: Optional[str] = None

        for stmt in statements:
            try:
                address, scope = self._visit(stmt, table, address, scope)
            except AssemblerError as e:
                errors.add(e)
                if stmt.kind == StatementKind.INSTRUCTION:
                    address += SLOT_SIZE

        errors.raise_if_errors("symbol pass")

        table.code_size = address
        logger.debug(f"Pass 1: {len(table)} labels, {address} bytes of code")
        return table

    def _visit(self, stmt: Statement, table: SymbolTable,
               address: int, scope: Optional[str]) -> tuple[int, Optional[str]]:
        """Process one statement; returns the updated (address, scope)."""
        stmt.scope = scope

        if stmt.kind == StatementKind.LABEL:
            if address >= ADDRESS_SPACE:
                raise AssemblerError(
                    f"label '{stmt.label_name}' does not fit the 16-bit address space",
                    stmt.location,
                    source_line=stmt.source_line,
                )
            return address, self._define_label(stmt, table, address, scope)

        if stmt.kind in (StatementKind.ALIAS, StatementKind.DATA):
            return address, scope

        if address >= ADDRESS_SPACE:
            raise AssemblerError(
                "code does not fit the 16-bit address space",
                stmt.location,
                source_line=stmt.source_line,
            )
        self._check_instruction(stmt)
        return address + SLOT_SIZE, scope

    def _define_label(self, stmt: Statement, table: SymbolTable,
                      address: int, scope: Optional[str]) -> Optional[str]:
        """Define a label; returns the new enclosing label."""
        name = stmt.label_name
        is_local = name.startswith(SUBLABEL_MARKER)
        full_name = f"{scope or ''}{name}" if is_local else name

        table.define(
            Symbol(
                name=full_name,
                value=address,
                location=stmt.location,
                is_local=is_local,
                parent=scope if is_local else None,
            ),
            stmt.source_line,
        )
        return scope if is_local else name

    def _check_instruction(self, stmt: Statement) -> None:
        """Validate mnemonic and operands, storing the typed operands."""
        mnemonic = stmt.head
        if mnemonic not in self.isa:
            raise UnknownInstructionError(
                mnemonic,
                location=stmt.location,
                source_line=stmt.source_line,
                similar_mnemonics=difflib.get_close_matches(
                    mnemonic.lower(), self.isa.mnemonics, n=3
                ),
            )

        operand_tokens = stmt.operand_tokens
        if len(operand_tokens) > MAX_OPERANDS:
            raise TooManyOperandsError(
                mnemonic,
                len(operand_tokens),
                location=stmt.token_location(operand_tokens[MAX_OPERANDS]),
                source_line=stmt.source_line,
            )

        operands = [
            parse_operand(token, stmt.location, stmt.source_line)
            for token in operand_tokens
        ]
        if sum(1 for operand in operands if operand.is_wide) > 1:
            raise MultipleImmediateOperandsError(
                mnemonic,
                location=stmt.location,
                source_line=stmt.source_line,
            )
        stmt.operands = operands


def build_symbol_table(statements: list[Statement],
                       isa: InstructionSet = DEFAULT_INSTRUCTION_SET) -> SymbolTable:
    """Convenience function: run pass 1."""
    return SymbolTableBuilder(isa).build(statements)
