# =============================================================================
# test_data.py - Data Segment Tests
# =============================================================================
# Tests for data directives: offsets, literal forms, string escapes and
# malformed directives.
# =============================================================================

import pytest

from slotasm.assembler.aliases import resolve_aliases
from slotasm.assembler.data import (
    DataEntry,
    DataSegmentBuilder,
    DataTable,
    build_data_segment,
    decode_string,
    encode_value,
    parse_offset,
)
from slotasm.assembler.lexer import split_lines
from slotasm.assembler.parser import build_statements
from slotasm.errors import AssemblyFailedError, DirectiveError


def data_of(source: str) -> dict[int, bytes]:
    statements = build_statements(split_lines(source))
    resolve_aliases(statements)
    return build_data_segment(statements).as_dict()


# =============================================================================
# Literal Helpers
# =============================================================================

class TestParseOffset:
    """Test load offset parsing."""

    @pytest.mark.parametrize("text,value", [
        ("8000", 0x8000),
        ("10", 0x10),
        ("0", 0),
        ("0x8000", 0x8000),
        ("8000h", 0x8000),
        ("FFFF", 0xFFFF),
    ])
    def test_valid(self, text, value):
        assert parse_offset(text) == value

    @pytest.mark.parametrize("text", ["10000", "80g0", "", "0x", "0x10000"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_offset(text)


class TestEncodeValue:
    """Test the 1-or-2 byte value encoding."""

    def test_one_byte(self):
        assert encode_value(5) == b"\x05"
        assert encode_value(0xFF) == b"\xff"

    def test_two_bytes(self):
        assert encode_value(0x100) == b"\x01\x00"
        assert encode_value(0xFFFF) == b"\xff\xff"

    def test_too_large(self):
        with pytest.raises(ValueError):
            encode_value(0x10000)


class TestDecodeString:
    """Test string escape processing."""

    @pytest.mark.parametrize("body,expected", [
        ("Hi", b"Hi"),
        ("Hi\\n", b"Hi\n"),
        ("a\\tb\\rc", b"a\tb\rc"),
        ("\\b\\0", b"\b\x00"),
        ('say \\"x\\"', b'say "x"'),
        ("back\\\\slash", b"back\\slash"),
        ("\\q", b"q"),
        ("end\\", b"end"),
        ("", b""),
    ])
    def test_escapes(self, body, expected):
        assert decode_string(body) == expected

    def test_utf8(self):
        assert decode_string("é") == b"\xc3\xa9"


# =============================================================================
# Directive Tests
# =============================================================================

class TestDirectives:
    """Test complete data directives."""

    def test_list(self):
        assert data_of("8000 [ 0x100 5 ]") == {0x8000: b"\x01\x00\x05"}

    def test_list_brackets_touching(self):
        assert data_of("8000 [1 2 3]") == {0x8000: b"\x01\x02\x03"}
        assert data_of("8000 [7]") == {0x8000: b"\x07"}

    def test_list_with_commas(self):
        assert data_of("8000 [ 1, 2, 0x300 ]") == {0x8000: b"\x01\x02\x03\x00"}

    def test_empty_list(self):
        assert data_of("8000 [ ]") == {0x8000: b""}
        assert data_of("8000 []") == {0x8000: b""}

    def test_single_value(self):
        assert data_of("8010 42") == {0x8010: b"\x2a"}
        assert data_of("8010 0x1234") == {0x8010: b"\x12\x34"}

    def test_string(self):
        assert data_of('8020 "Hi\\n"') == {0x8020: b"Hi\n"}

    def test_string_with_separators(self):
        assert data_of('8000 "a, b # c"') == {0x8000: b"a, b # c"}

    def test_string_with_escaped_quote(self):
        assert data_of('8000 "a\\"b"') == {0x8000: b'a"b'}

    def test_string_trailing_backslash_dropped(self):
        assert data_of('8000 "ab\\"') == {0x8000: b"ab"}
        assert data_of('8000 "\\"') == {0x8000: b""}

    def test_prefixed_offset(self):
        assert data_of("0x10 1") == {0x10: b"\x01"}

    def test_alias_value(self):
        assert data_of("~letter 0x41\n8000 $letter") == {0x8000: b"\x41"}

    def test_several_entries(self):
        table = data_of("8000 1\n9000 2")
        assert table == {0x8000: b"\x01", 0x9000: b"\x02"}

    def test_same_offset_replaced(self):
        assert data_of("8000 1\n8000 2") == {0x8000: b"\x02"}

    def test_instructions_ignored(self):
        assert data_of("nop\nstart:\n~x 1") == {}


class TestDirectiveErrors:
    """Test malformed directives."""

    @pytest.mark.parametrize("source", [
        "8000",
        "80000 1",
        "80g0 1",
        "8000 [ 1 2",
        "8000 [ [1] ]",
        "8000 [ 1 ] 2",
        "8000 0x10000",
        "8000 [ 1 0x10000 ]",
        "8000 foo",
        "8000 1 2",
        '8000 "abc',
        '8000 "abc\\" d',
        '8000 "a" 5',
    ])
    def test_rejected(self, source):
        with pytest.raises(DirectiveError):
            data_of(source)

    def test_error_location(self):
        with pytest.raises(DirectiveError) as exc_info:
            data_of("nop\n8000 [ 1 zz ]")
        location = exc_info.value.location
        assert (location.line, location.column) == (2, 10)

    def test_tokens_after_list(self):
        with pytest.raises(DirectiveError, match="unexpected tokens after list") as exc_info:
            data_of("8000 [ 1 2 ] 3")
        assert exc_info.value.location.column == 14

    def test_unterminated_list_message(self):
        with pytest.raises(DirectiveError, match="unterminated list"):
            data_of("8000 [ 1 2")

    def test_errors_aggregated(self):
        with pytest.raises(AssemblyFailedError) as exc_info:
            data_of("8000\n9000 foo")
        assert len(exc_info.value.errors) == 2


class TestDataTable:
    """Test the data table container."""

    def test_sorted_iteration(self):
        table = DataTable()
        table.add(DataEntry(0x9000, b"b"))
        table.add(DataEntry(0x1000, b"a"))
        assert [entry.offset for entry in table] == [0x1000, 0x9000]
        assert table[0x1000] == b"a"
        assert 0x9000 in table
        assert len(table) == 2

    def test_builder_returns_fresh_table(self):
        builder = DataSegmentBuilder()
        first = builder.build(build_statements(split_lines("8000 1")))
        second = builder.build(build_statements(split_lines("9000 1")))
        assert list(first.as_dict()) == [0x8000]
        assert list(second.as_dict()) == [0x9000]
