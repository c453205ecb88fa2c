"""
Instruction Encoder (Pass 2)
============================

The second pass walks the statements again, in the same order and with
the same address counter as pass 1, and encodes every instruction into
its 4-byte slot.

Encoding
--------
- Byte 0 is the opcode of the written mnemonic.
- Operands fill the following bytes in source order: a register takes one
  byte, an immediate value or label address takes two (big-endian).
- An immediate or label operand promotes the instruction to its
  immediate form (`jmp` -> `jmpi`).
- Unused bytes stay zero.

```
start:
    movi r1 5       0000  07 01 00 05
    jmpi @loop      0004  0B 00 08 00
loop:
    inc r1          0008  14 01 00 00
```

Pass 1 has already validated every instruction and attached its typed
operands; the only user error found here is a reference to an undefined
label.
"""

import logging
import struct
from typing import Optional

from slotasm.assembler.lexer import Token
from slotasm.assembler.opcodes import (
    DEFAULT_INSTRUCTION_SET,
    SLOT_SIZE,
    InstructionSet,
)
from slotasm.assembler.parser import (
    SUBLABEL_MARKER,
    Immediate,
    LabelRef,
    Operand,
    Register,
    Statement,
    StatementKind,
    SubLabelRef,
)
from slotasm.assembler.symbols import SymbolTable
from slotasm.errors import (
    AssemblerError,
    ErrorCollector,
    UndefinedLabelError,
)


logger = logging.getLogger(__name__)


class InstructionEncoder:
    """
    Generates the code segment from validated statements.

    Usage:
        encoder = InstructionEncoder()
        code = encoder.encode(statements, symbols)
        print("\\n".join(encoder.listing))
    """

    def __init__(self, isa: InstructionSet = DEFAULT_INSTRUCTION_SET,
                 max_errors: int = 100, listing: bool = True):
        """
        Initialize the encoder.

        Args:
            isa: Instruction set used for opcode lookup and promotion
            max_errors: Errors collected before giving up
            listing: Collect listing lines while encoding
        """
        self.isa = isa
        self.max_errors = max_errors
        self.collect_listing = listing
        self.listing: list[str] = []

    def encode(self, statements: list[Statement], symbols: SymbolTable) -> bytes:
        """
        Run pass 2 over all statements.

        Sets `address` on every statement and `slot`/`byte_count` on
        instructions.

        Returns:
            The code segment: one slot per instruction, in source order

        Raises:
            AssemblerError: If a label reference cannot be resolved
        """
        self.listing = []
        errors = ErrorCollector(self.max_errors)
        code = bytearray()
        address = 0

        for stmt in statements:
            stmt.address = address
            try:
                if stmt.kind == StatementKind.LABEL:
                    self._check_label(stmt, symbols, address)
                elif stmt.kind == StatementKind.INSTRUCTION:
                    self._encode_instruction(stmt, symbols)
            except AssemblerError as e:
                errors.add(e)

            if stmt.kind == StatementKind.INSTRUCTION:
                code.extend(stmt.slot)
                address += SLOT_SIZE

            self._trace(stmt)

        errors.raise_if_errors("encoding pass")

        if address != symbols.code_size:
            raise AssemblerError(
                f"internal error: encoding pass produced {address} bytes, "
                f"symbol pass computed {symbols.code_size}"
            )

        logger.debug(f"Pass 2: encoded {len(code) // SLOT_SIZE} instructions")
        return bytes(code)

    # =========================================================================
    # Statement Encoding
    # =========================================================================

    def _check_label(self, stmt: Statement, symbols: SymbolTable, address: int) -> None:
        """Both passes must agree on label addresses."""
        name = stmt.label_name
        if stmt.scope is not None and name.startswith(SUBLABEL_MARKER):
            name = f"{stmt.scope}{name}"
        resolved = symbols.resolve(name)
        if resolved is not None and resolved != address:
            raise AssemblerError(
                f"internal error: label '{name}' at 0x{address:04X} in pass 2, "
                f"0x{resolved:04X} in pass 1",
                stmt.location,
            )

    def _encode_instruction(self, stmt: Statement, symbols: SymbolTable) -> None:
        """Encode one instruction into its slot."""
        info = self.isa.get(stmt.head)
        if info is None or len(stmt.operands) != len(stmt.operand_tokens):
            raise AssemblerError(
                f"internal error: '{stmt.text}' reached pass 2 without validation",
                stmt.location,
            )

        slot = bytearray(SLOT_SIZE)
        position = 1

        for operand, token in zip(stmt.operands, stmt.operand_tokens):
            if isinstance(operand, Register):
                width = 1
                payload = bytes([operand.number])
            else:
                width = 2
                payload = struct.pack(">H", self._operand_value(operand, token, stmt, symbols))
                info = self.isa.promote(info)

            if position + width > SLOT_SIZE:
                raise AssemblerError(
                    f"internal error: operands of '{stmt.text}' overflow the slot",
                    stmt.location,
                )
            slot[position:position + width] = payload
            position += width

        slot[0] = info.opcode
        stmt.slot = slot
        stmt.byte_count = SLOT_SIZE

    def _operand_value(self, operand: Operand, token: Token,
                       stmt: Statement, symbols: SymbolTable) -> int:
        """The 16-bit value of an immediate or label operand."""
        if isinstance(operand, Immediate):
            return operand.value

        if isinstance(operand, SubLabelRef):
            name = operand.qualify(stmt.scope)
        elif isinstance(operand, LabelRef):
            name = operand.name
        else:
            raise AssemblerError(f"internal error: unexpected operand {operand!r}")

        address = symbols.resolve(name)
        if address is None:
            raise UndefinedLabelError(
                name,
                location=stmt.token_location(token),
                source_line=stmt.source_line,
                similar_labels=symbols.similar(name),
            )
        return address

    # =========================================================================
    # Listing
    # =========================================================================

    def _trace(self, stmt: Statement) -> None:
        """Echo a statement as address, tokens and bytes."""
        hex_str = " ".join(f"{b:02X}" for b in stmt.encoded())
        if stmt.kind == StatementKind.INSTRUCTION:
            logger.debug(f"0x{stmt.address:04x} {stmt.text:<20} {hex_str}")

        if self.collect_listing:
            self.listing.append(
                f"{stmt.address:04X}  {hex_str:12s}  {stmt.location.line:4d}  {stmt.text}"
            )


def encode_statements(statements: list[Statement], symbols: SymbolTable,
                      isa: Optional[InstructionSet] = None) -> bytes:
    """Convenience function: run pass 2."""
    return InstructionEncoder(isa or DEFAULT_INSTRUCTION_SET).encode(statements, symbols)
