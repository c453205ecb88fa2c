"""
Data Segment Builder
====================

Data directives preload memory outside the instruction stream. Each one
starts with a hexadecimal load offset followed by a literal:

```asm
8000 [ 0x100 5 ]        # 01 00 05
8010 42                 # 2A
8020 "Hi\\n"            # 48 69 0A
```

Literal Forms
-------------
| Form              | Encoding                                          |
|-------------------|---------------------------------------------------|
| `[ v1 v2 ... ]`   | each value: 1 byte if <= 0xFF, else 2 big-endian  |
| `v`               | same 1-or-2 byte encoding                         |
| `"text"`          | UTF-8 bytes after escape processing               |

Values use the same literal syntax as immediates (`42`, `0x2A`, `2Ah`).
The offset is hexadecimal even without a prefix or suffix.

String escapes: `\\n \\r \\t \\b \\0 \\\\ \\"`. Any other escaped character
stands for itself; a trailing lone backslash is dropped.

Entries for different offsets coexist; overlapping ranges are not
detected.
"""

from dataclasses import dataclass
import logging
from typing import Iterator, Optional
import string

from slotasm.assembler.lexer import Token
from slotasm.assembler.parser import (
    MAX_WORD,
    Statement,
    StatementKind,
    parse_integer,
)
from slotasm.errors import DirectiveError, ErrorCollector, SourceLocation


logger = logging.getLogger(__name__)

ESCAPE_SEQUENCES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "0": "\0",
}


# =============================================================================
# Literal Decoding
# =============================================================================

def parse_offset(text: str) -> int:
    """
    Parse a data load offset.

    Bare digits are hexadecimal; `0x` prefixed and `h` suffixed forms
    are accepted too.

    Raises:
        ValueError: If the text is not a 16-bit hexadecimal number
    """
    if text[:2] in ("0x", "0X") or text[-1:] in ("h", "H"):
        value = parse_integer(text)
    elif text and all(c in string.hexdigits for c in text):
        value = int(text, 16)
    else:
        raise ValueError(f"invalid offset '{text}'")
    if value > MAX_WORD:
        raise ValueError(f"offset '{text}' does not fit 16 bits")
    return value


def encode_value(value: int) -> bytes:
    """Encode a value in 1 byte if it fits, otherwise 2 big-endian bytes."""
    if value < 0 or value > MAX_WORD:
        raise ValueError(f"value {value} does not fit 16 bits")
    if value <= 0xFF:
        return bytes([value])
    return value.to_bytes(2, "big")


def decode_string(body: str) -> bytes:
    """
    Process escapes in the body of a quoted string.

    Args:
        body: String contents without the surrounding quotes

    Returns:
        UTF-8 encoded bytes
    """
    chars = []
    escaped = False
    for char in body:
        if escaped:
            chars.append(ESCAPE_SEQUENCES.get(char, char))
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            chars.append(char)
    return "".join(chars).encode("utf-8")


# =============================================================================
# Data Table
# =============================================================================

@dataclass(frozen=True)
class DataEntry:
    """
    One block of preloaded bytes.

    Attributes:
        offset: Load address
        payload: Bytes to place at the offset
        location: Directive that produced the entry
    """
    offset: int
    payload: bytes
    location: Optional[SourceLocation] = None


class DataTable:
    """Mapping from load offset to the bytes loaded there."""

    def __init__(self):
        self._entries: dict[int, DataEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, offset: int) -> bool:
        return offset in self._entries

    def __getitem__(self, offset: int) -> bytes:
        return self._entries[offset].payload

    def __iter__(self) -> Iterator[DataEntry]:
        """Entries in ascending offset order."""
        return iter(sorted(self._entries.values(), key=lambda e: e.offset))

    def add(self, entry: DataEntry) -> None:
        """Store an entry; a later entry for the same offset replaces it."""
        self._entries[entry.offset] = entry

    def as_dict(self) -> dict[int, bytes]:
        return {entry.offset: entry.payload for entry in self}


# =============================================================================
# Builder
# =============================================================================

class DataSegmentBuilder:
    """
    Builds the data table from data directives.

    Usage:
        table = DataSegmentBuilder().build(statements)
        table[0x8000]   # -> b"Hi\\n"
    """

    def __init__(self, max_errors: int = 100):
        self.max_errors = max_errors

    def build(self, statements: list[Statement]) -> DataTable:
        """
        Parse every DATA statement into the table.

        Raises:
            DirectiveError: If a directive is malformed (several errors
                            are aggregated into AssemblyFailedError)
        """
        table = DataTable()
        errors = ErrorCollector(self.max_errors)

        for stmt in statements:
            if stmt.kind != StatementKind.DATA:
                continue
            try:
                table.add(self.parse_directive(stmt))
            except DirectiveError as e:
                errors.add(e)

        errors.raise_if_errors("data segment")
        logger.debug(f"Data segment: {len(table)} entries")
        return table

    def parse_directive(self, stmt: Statement) -> DataEntry:
        """Parse one `<offset> <literal>` directive."""
        def fail(message: str, token: Optional[Token] = None,
                 hint: Optional[str] = None) -> DirectiveError:
            location = stmt.token_location(token) if token else stmt.location
            return DirectiveError(message, location, hint=hint, source_line=stmt.source_line)

        try:
            offset = parse_offset(stmt.head)
        except ValueError as e:
            raise fail(str(e), stmt.tokens[0]) from None

        literal = stmt.operand_tokens
        if not literal:
            raise fail(
                f"missing data after offset '{stmt.head}'",
                hint="write a number, [ list ] or \"string\"",
            )

        first = literal[0].value
        if first.startswith('"'):
            if len(literal) > 1:
                raise fail("unexpected tokens after string", literal[1])
            if len(first) < 2 or not first.endswith('"'):
                raise fail("unterminated string", literal[0])
            payload = decode_string(first[1:-1])

        elif first.startswith("["):
            payload = self._parse_list(stmt, fail)

        else:
            if len(literal) > 1:
                raise fail(
                    "unexpected tokens after value",
                    literal[1],
                    hint="use [ v1 v2 ... ] for several values",
                )
            payload = self._encode(first, literal[0], fail)

        if len(payload) > MAX_WORD:
            raise fail(f"data block of {len(payload)} bytes is too long")

        return DataEntry(offset, payload, stmt.location)

    def _parse_list(self, stmt: Statement, fail) -> bytes:
        """Encode a bracketed list; brackets may touch the values."""
        literal = stmt.operand_tokens
        end = next(
            (index for index, token in enumerate(literal) if token.value.endswith("]")),
            None,
        )
        if end is None:
            raise fail("unterminated list", literal[-1], hint="close the list with ]")

        trailing = literal[end + 1:]
        if trailing and not any("]" in token.value for token in trailing):
            raise fail(
                "unexpected tokens after list",
                trailing[0],
                hint="put every value inside [ ]",
            )

        payload = bytearray()
        for index, token in enumerate(literal):
            text = token.value
            if index == 0:
                text = text[1:]
            if index == len(literal) - 1:
                text = text[:-1]
            if "[" in text or "]" in text:
                raise fail("nested or misplaced bracket", token)
            if text:
                payload.extend(self._encode(text, token, fail))
        return bytes(payload)

    @staticmethod
    def _encode(text: str, token: Token, fail) -> bytes:
        try:
            return encode_value(parse_integer(text))
        except ValueError as e:
            raise fail(str(e), token) from None


def build_data_segment(statements: list[Statement]) -> DataTable:
    """Convenience function: build the data table."""
    return DataSegmentBuilder().build(statements)
