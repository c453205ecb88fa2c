# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the complete pipeline from source text to image.
#
# Test coverage includes:
#   - Complete program assembly
#   - Include file processing
#   - Stage ordering and error reporting with line numbers
#   - Output files
#   - Determinism and isolation between runs
# =============================================================================

import pytest

from slotasm.assembler import Assembler, assemble, assemble_file
from slotasm.config import AssemblerConfig
from slotasm.errors import (
    AssemblerError,
    AssemblyFailedError,
    DirectiveError,
    OutputWriteError,
    TooManyErrors,
    UndefinedAliasError,
    UndefinedLabelError,
    UnreadableSourceError,
)


PROGRAM = """
# count forever
start:
    movi r1 5
    jmpi @loop
loop:
    inc r1
"""

PROGRAM_CODE = bytes([
    0x07, 0x01, 0x00, 0x05,
    0x0B, 0x00, 0x08, 0x00,
    0x14, 0x01, 0x00, 0x00,
])


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline from source to image."""

    def test_program(self):
        asm = Assembler()
        image = asm.assemble_string(PROGRAM)
        assert image == b"\x00\x00" + PROGRAM_CODE
        assert asm.get_code() == image
        assert asm.get_code_segment() == PROGRAM_CODE
        assert asm.get_symbols() == {"start": 0, "loop": 8}

    def test_program_with_data(self):
        source = PROGRAM + '8000 "Hi"\n'
        image = assemble(source)
        assert image[:8] == bytes([0x00, 0x06, 0x80, 0x00, 0x00, 0x02, 0x48, 0x69])
        assert image[8:] == PROGRAM_CODE

    def test_program_with_aliases(self):
        source = """
~counter r1
~start_value 5
~target @loop
    movi $counter $start_value
    jmpi $target
loop:
    inc $counter
"""
        asm = Assembler()
        assert asm.assemble_string(source)[2:] == PROGRAM_CODE
        assert asm.get_aliases() == {
            "counter": "r1",
            "start_value": "5",
            "target": "@loop",
        }

    def test_data_table(self):
        asm = Assembler()
        asm.assemble_string("9000 [ 1 2 ]\n8000 0x1234\nnop")
        assert asm.get_data_table() == {0x8000: b"\x12\x34", 0x9000: b"\x01\x02"}

    def test_empty_source(self):
        assert assemble("# nothing\n\n") == b"\x00\x00"

    def test_statements_available(self):
        asm = Assembler()
        asm.assemble_string(PROGRAM)
        statements = asm.get_statements()
        assert [s.address for s in statements] == [0, 0, 4, 8, 8]


# =============================================================================
# Determinism and Isolation
# =============================================================================

class TestRepeatability:
    """Test that assemblies do not influence each other."""

    def test_deterministic(self):
        source = PROGRAM + "9000 1\n8000 2\n"
        asm = Assembler()
        first = asm.assemble_string(source)
        second = asm.assemble_string(source)
        assert first == second == Assembler().assemble_string(source)

    def test_fresh_tables_per_run(self):
        asm = Assembler()
        asm.assemble_string("~x 1\na:\nnop\n8000 1")
        asm.assemble_string("b:\nnop")
        assert asm.get_symbols() == {"b": 0}
        assert asm.get_aliases() == {}
        assert asm.get_data_table() == {}

    def test_failed_run_clears_results(self):
        asm = Assembler()
        asm.assemble_string(PROGRAM)
        with pytest.raises(AssemblerError):
            asm.assemble_string("bogus")
        assert asm.get_code() == b""
        assert asm.get_symbols() == {}


# =============================================================================
# Error Reporting Tests
# =============================================================================

class TestErrors:
    """Test stage ordering and diagnostics."""

    def test_undefined_alias_message(self):
        with pytest.raises(UndefinedAliasError) as exc_info:
            assemble("nop\nmovi $foo 1")
        first_line = str(exc_info.value).splitlines()[0]
        assert first_line == "<input>:2:6: error: undefined alias 'foo'"

    def test_alias_stage_runs_first(self):
        """An undefined alias is reported before unknown instructions."""
        with pytest.raises(UndefinedAliasError):
            assemble("bogus\nmovi $foo 1")

    def test_symbol_stage_before_encoding(self):
        with pytest.raises(AssemblyFailedError) as exc_info:
            assemble("bogus\nblah\njmp @nowhere")
        assert all(e.line in (1, 2) for e in exc_info.value.errors)

    def test_undefined_label(self):
        with pytest.raises(UndefinedLabelError):
            assemble("jmp @nowhere")

    def test_data_errors(self):
        with pytest.raises(DirectiveError):
            assemble("nop\n8000 [ 1 2")

    def test_error_limit_from_config(self):
        asm = Assembler(AssemblerConfig(max_errors=2))
        with pytest.raises(TooManyErrors) as exc_info:
            asm.assemble_string("a\nb\nc\nd")
        assert len(exc_info.value.errors) == 2

    def test_reference_to_label_past_address_space(self):
        """Reported by pass 1 before any slot is encoded."""
        source = "jmp @end\n" + "nop\n" * 0x3FFF + "end:\n"
        with pytest.raises(AssemblerError, match="address space"):
            assemble(source)

    def test_filename_in_errors(self, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("nop\njmp @missing\n")
        with pytest.raises(UndefinedLabelError) as exc_info:
            assemble_file(source)
        assert exc_info.value.location.filename == str(source)
        assert exc_info.value.location.line == 2


# =============================================================================
# File and Include Tests
# =============================================================================

class TestFiles:
    """Test file input and include handling."""

    def test_assemble_file(self, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text(PROGRAM)
        assert Assembler().assemble_file(source) == b"\x00\x00" + PROGRAM_CODE

    def test_include(self, tmp_path):
        (tmp_path / "defs.asm").write_text("~counter r1\n")
        source = tmp_path / "prog.asm"
        source.write_text("include defs.asm\nstart:\nmovi $counter 5\n")
        asm = Assembler()
        asm.assemble_file(source)
        assert asm.get_code_segment() == PROGRAM_CODE[:4]

    def test_include_path(self, tmp_path):
        lib = tmp_path / "lib"
        lib.mkdir()
        (lib / "util.asm").write_text("util:\nret\n")
        asm = Assembler()
        asm.add_include_path(lib)
        asm.assemble_string("call @util\ninclude util.asm\n")
        assert asm.get_symbols() == {"util": 4}

    def test_missing_source(self, tmp_path):
        with pytest.raises(UnreadableSourceError):
            Assembler().assemble_file(tmp_path / "absent.asm")


# =============================================================================
# Output Tests
# =============================================================================

class TestOutputs:
    """Test writing images, listings and symbol files."""

    def test_write_binary(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(PROGRAM)
        out = tmp_path / "prog.bin"
        asm.write_binary(out)
        assert out.read_bytes() == asm.get_code()

    def test_nothing_written_after_failure(self, tmp_path):
        asm = Assembler()
        with pytest.raises(UndefinedAliasError):
            asm.assemble_string("movi $foo 1")
        out = tmp_path / "prog.bin"
        with pytest.raises(OutputWriteError):
            asm.write_binary(out)
        assert not out.exists()

    def test_unwritable_output(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(PROGRAM)
        with pytest.raises(OutputWriteError):
            asm.write_binary(tmp_path / "missing" / "prog.bin")

    def test_listing(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(PROGRAM + "8000 1\n")
        listing = asm.get_listing()
        assert "0004  0B 00 08 00" in listing
        assert "Symbol Table" in listing
        assert "loop                 = 0x0008" in listing
        assert "0x8000" in listing

        out = tmp_path / "prog.lst"
        asm.write_listing(out)
        assert out.read_text() == listing

    def test_symbols(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(PROGRAM)
        out = tmp_path / "prog.sym"
        asm.write_symbols(out)
        lines = out.read_text().splitlines()
        assert "loop 0x0008" in lines
        assert "start 0x0000" in lines
        assert lines[0].startswith("#")
