# =============================================================================
# test_opcodes.py - Instruction Set Tests
# =============================================================================
# Tests for the instruction table and its lookups.
# =============================================================================

import pytest

from slotasm.assembler.opcodes import (
    DEFAULT_INSTRUCTION_SET,
    INSTRUCTIONS,
    InstructionInfo,
    InstructionSet,
)


class TestInstructionTable:
    """Test the built-in instruction table."""

    def test_size(self):
        assert len(DEFAULT_INSTRUCTION_SET) == len(INSTRUCTIONS) == 34

    @pytest.mark.parametrize("mnemonic,opcode", [
        ("nop", 0x00),
        ("hlt", 0xFF),
        ("print", 0xFE),
        ("ld", 0x01),
        ("movi", 0x07),
        ("jmpi", 0x0B),
        ("inc", 0x14),
        ("calli", 0x1F),
    ])
    def test_opcodes(self, mnemonic, opcode):
        assert DEFAULT_INSTRUCTION_SET.get(mnemonic).opcode == opcode

    def test_case_insensitive(self):
        assert "ADD" in DEFAULT_INSTRUCTION_SET
        assert DEFAULT_INSTRUCTION_SET.get("Add").mnemonic == "add"

    def test_unknown(self):
        assert "jump" not in DEFAULT_INSTRUCTION_SET
        assert DEFAULT_INSTRUCTION_SET.get("jump") is None

    def test_by_opcode(self):
        assert DEFAULT_INSTRUCTION_SET.by_opcode(0xFF).mnemonic == "hlt"
        assert DEFAULT_INSTRUCTION_SET.by_opcode(0x20) is None

    def test_mnemonics_sorted(self):
        mnemonics = DEFAULT_INSTRUCTION_SET.mnemonics
        assert mnemonics == sorted(mnemonics)
        assert "divi" in mnemonics


class TestPromotion:
    """Test selection of the immediate form."""

    def test_register_form_promoted(self):
        isa = DEFAULT_INSTRUCTION_SET
        assert isa.promote(isa.get("add")) == InstructionInfo("addi", 0x17)

    def test_immediate_form_kept(self):
        """`movi` has no `movii`, so it stays as written."""
        isa = DEFAULT_INSTRUCTION_SET
        assert isa.promote(isa.get("movi")).opcode == 0x07

    def test_no_immediate_form_kept(self):
        isa = DEFAULT_INSTRUCTION_SET
        assert isa.promote(isa.get("ld")).opcode == 0x01


class TestCustomTables:
    """Test construction-time validation."""

    def test_duplicate_mnemonic(self):
        with pytest.raises(ValueError, match="duplicate mnemonic"):
            InstructionSet([InstructionInfo("nop", 0), InstructionInfo("NOP", 1)])

    def test_duplicate_opcode(self):
        with pytest.raises(ValueError, match="duplicate opcode"):
            InstructionSet([InstructionInfo("a", 1), InstructionInfo("b", 1)])

    def test_opcode_range(self):
        with pytest.raises(ValueError):
            InstructionSet([InstructionInfo("big", 0x100)])

    def test_custom_promotion(self):
        isa = InstructionSet([InstructionInfo("put", 0x40), InstructionInfo("puti", 0x41)])
        assert isa.promote(isa.get("put")).opcode == 0x41
