"""
Statement Parser
================

This module classifies cleaned source lines into statements and turns
operand tokens into typed operands.

Statement Kinds
---------------
The kind of a statement is decided once, from its first token:

| First token        | Kind        | Example              |
|--------------------|-------------|----------------------|
| single `name:`     | LABEL       | `loop:` / `.next:`   |
| starts with `~`    | ALIAS       | `~count 10`          |
| starts with digit  | DATA        | `8000 "hello\\n"`    |
| anything else      | INSTRUCTION | `add r1 5`           |

Operand Forms
-------------
| Syntax                 | Operand      | Slot bytes |
|------------------------|--------------|------------|
| `r3`, `R3`             | Register     | 1          |
| `42`, `0x2A`, `2Ah`    | Immediate    | 2          |
| `@name`, `@proc.sub`   | LabelRef     | 2          |
| `@.sub`                | SubLabelRef  | 2          |
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Union
import string

from slotasm.assembler.lexer import SourceLine, Token
from slotasm.assembler.opcodes import SLOT_SIZE
from slotasm.errors import InvalidOperandError, SourceLocation


LABEL_TERMINATOR = ":"
SUBLABEL_MARKER = "."
ALIAS_DEFINITION_MARKER = "~"
ALIAS_REFERENCE_MARKER = "$"
LABEL_REFERENCE_MARKER = "@"
REGISTER_MARKERS = ("r", "R")

MAX_REGISTER = 0xFF
MAX_WORD = 0xFFFF


# =============================================================================
# Statement Kind
# =============================================================================

class StatementKind(Enum):
    """Category of a statement, decided from its first token."""
    LABEL = auto()
    ALIAS = auto()
    DATA = auto()
    INSTRUCTION = auto()


def classify(tokens: list[Token]) -> StatementKind:
    """Decide the kind of a statement from its tokens."""
    first = tokens[0].value
    if len(tokens) == 1 and len(first) > 1 and first.endswith(LABEL_TERMINATOR):
        return StatementKind.LABEL
    if first.startswith(ALIAS_DEFINITION_MARKER):
        return StatementKind.ALIAS
    if first[0].isdigit():
        return StatementKind.DATA
    return StatementKind.INSTRUCTION


# =============================================================================
# Operands
# =============================================================================

@dataclass(frozen=True)
class Register:
    """Register operand, encoded as one byte."""
    number: int
    is_wide = False


@dataclass(frozen=True)
class Immediate:
    """Literal 16-bit value, encoded big-endian."""
    value: int
    is_wide = True


@dataclass(frozen=True)
class LabelRef:
    """Reference to a label by its full name."""
    name: str
    is_wide = True


@dataclass(frozen=True)
class SubLabelRef:
    """
    Reference to a sub-label of the enclosing label.

    The name includes the leading marker, so the qualified name is just
    the enclosing label's name followed by this one.
    """
    name: str
    is_wide = True

    def qualify(self, scope: Optional[str]) -> str:
        """Full label name under the enclosing label."""
        return f"{scope or ''}{self.name}"


Operand = Union[Register, Immediate, LabelRef, SubLabelRef]


def _parse_hex(digits: str, text: str) -> int:
    if not digits or any(c not in string.hexdigits for c in digits):
        raise ValueError(f"invalid number '{text}'")
    return int(digits, 16)


def parse_integer(text: str) -> int:
    """
    Parse an integer literal.

    Accepted forms: decimal (`42`), prefixed hex (`0x2A`) and suffixed
    hex (`2Ah`). The literal must start with a digit.

    Raises:
        ValueError: If the text is not a valid literal
    """
    if not text or not text[0].isdigit():
        raise ValueError(f"invalid number '{text}'")
    if text[:2] in ("0x", "0X"):
        return _parse_hex(text[2:], text)
    if text[-1] in ("h", "H"):
        return _parse_hex(text[:-1], text)
    if not text.isdigit():
        raise ValueError(f"invalid number '{text}'")
    return int(text, 10)


def parse_operand(token: Token, location: SourceLocation,
                  source_line: Optional[str] = None) -> Operand:
    """
    Turn one operand token into a typed operand.

    Raises:
        InvalidOperandError: If the token has no known shape or its value
                             does not fit the slot
    """
    text = token.value
    where = SourceLocation(location.filename, location.line, token.column)

    def invalid(message: str, hint: Optional[str] = None) -> InvalidOperandError:
        return InvalidOperandError(message, where, hint=hint, source_line=source_line)

    if text.startswith(LABEL_REFERENCE_MARKER):
        name = text[1:]
        if not name or name == SUBLABEL_MARKER:
            raise invalid(f"missing label name in '{text}'")
        if name.startswith(SUBLABEL_MARKER):
            return SubLabelRef(name)
        return LabelRef(name)

    if text[0] in REGISTER_MARKERS and text[1:].isdigit():
        number = int(text[1:])
        if number > MAX_REGISTER:
            raise invalid(f"register '{text}' out of range", f"registers are r0..r{MAX_REGISTER}")
        return Register(number)

    if text[0].isdigit():
        try:
            value = parse_integer(text)
        except ValueError:
            raise invalid(f"invalid number '{text}'") from None
        if value > MAX_WORD:
            raise invalid(f"value {text} does not fit 16 bits")
        return Immediate(value)

    raise invalid(
        f"invalid operand '{text}'",
        "operands are registers (r1), numbers (5, 0x10, 10h) or labels (@name)",
    )


# =============================================================================
# Statement
# =============================================================================

@dataclass
class Statement:
    """
    One source statement, updated in place by the assembly passes.

    Attributes:
        location: Where the statement starts
        source_line: Original source text
        tokens: Tokens; token 0 is the mnemonic, label, alias marker or
                data offset
        kind: Statement category
        scope: Enclosing label, set by the symbol pass
        operands: Typed operands, set by the symbol pass (instructions only)
        address: Slot address, set by the encoding pass
        slot: Encoded bytes of the instruction
        byte_count: Meaningful bytes in slot (0 for non-instructions)
    """
    location: SourceLocation
    source_line: str
    tokens: list[Token]
    kind: StatementKind
    scope: Optional[str] = None
    operands: list[Operand] = field(default_factory=list)
    address: Optional[int] = None
    slot: bytearray = field(default_factory=lambda: bytearray(SLOT_SIZE))
    byte_count: int = 0

    @property
    def head(self) -> str:
        """Text of token 0."""
        return self.tokens[0].value

    @property
    def operand_tokens(self) -> list[Token]:
        """Tokens after the head."""
        return self.tokens[1:]

    @property
    def label_name(self) -> str:
        """Label name without its terminator (LABEL statements)."""
        return self.head[:-len(LABEL_TERMINATOR)]

    @property
    def text(self) -> str:
        """Current tokens joined by spaces."""
        return " ".join(token.value for token in self.tokens)

    def token_location(self, token: Token) -> SourceLocation:
        """Location of one of this statement's tokens."""
        return SourceLocation(self.location.filename, self.location.line, token.column)

    def encoded(self) -> bytes:
        """The meaningful bytes of the slot."""
        return bytes(self.slot[:self.byte_count])


def build_statements(lines: list[SourceLine]) -> list[Statement]:
    """Create one statement per cleaned source line."""
    return [
        Statement(
            location=line.location,
            source_line=line.text,
            tokens=list(line.tokens),
            kind=classify(list(line.tokens)),
        )
        for line in lines
    ]
