# =============================================================================
# test_aliases.py - Alias Resolution Tests
# =============================================================================
# Tests for `~name value` definitions and `$name` substitution.
# =============================================================================

import pytest

from slotasm.assembler.aliases import AliasResolver, resolve_aliases
from slotasm.assembler.lexer import split_lines
from slotasm.assembler.parser import build_statements
from slotasm.errors import (
    AssemblyFailedError,
    AssemblySyntaxError,
    DuplicateAliasError,
    UndefinedAliasError,
)


def statements(source: str):
    return build_statements(split_lines(source))


class TestSubstitution:
    """Test successful alias resolution."""

    def test_basic(self):
        stmts = statements("~counter r4\n~limit 0x40\nmovi $counter $limit")
        table = resolve_aliases(stmts)
        assert stmts[2].text == "movi r4 0x40"
        assert table.as_dict() == {"counter": "r4", "limit": "0x40"}

    def test_use_before_definition(self):
        stmts = statements("movi $x 1\n~x r2")
        resolve_aliases(stmts)
        assert stmts[0].text == "movi r2 1"

    def test_label_value(self):
        stmts = statements("~target @loop\njmp $target")
        resolve_aliases(stmts)
        assert stmts[1].text == "jmp @loop"

    def test_data_statement(self):
        stmts = statements("~letter 0x41\n8000 $letter")
        resolve_aliases(stmts)
        assert stmts[1].text == "8000 0x41"

    def test_substituted_token_keeps_column(self):
        stmts = statements("~x r2\nmov   $x r1")
        resolve_aliases(stmts)
        assert stmts[1].tokens[1].column == 7

    def test_mnemonic_not_substituted(self):
        """Only operand tokens are replaced."""
        stmts = statements("~nop r1\n$nop r1")
        resolve_aliases(stmts)
        assert stmts[1].head == "$nop"

    def test_no_aliases(self):
        stmts = statements("nop")
        assert len(resolve_aliases(stmts)) == 0
        assert stmts[0].text == "nop"


class TestAliasErrors:
    """Test malformed definitions and undefined references."""

    def test_undefined(self):
        with pytest.raises(UndefinedAliasError) as exc_info:
            resolve_aliases(statements("movi $foo 1"))
        error = exc_info.value
        assert error.alias == "foo"
        assert (error.location.line, error.location.column) == (1, 6)

    def test_several_undefined(self):
        with pytest.raises(AssemblyFailedError) as exc_info:
            resolve_aliases(statements("movi $a 1\nmovi $b 2"))
        assert [e.alias for e in exc_info.value.errors] == ["a", "b"]

    def test_duplicate(self):
        with pytest.raises(DuplicateAliasError) as exc_info:
            resolve_aliases(statements("~x 1\n~x 2"))
        assert exc_info.value.original_location.line == 1

    @pytest.mark.parametrize("source", ["~x", "~x 1 2", "~ 5"])
    def test_malformed_definition(self, source):
        with pytest.raises(AssemblySyntaxError):
            resolve_aliases(statements(source))

    def test_chained_alias(self):
        with pytest.raises(AssemblySyntaxError, match="another alias"):
            resolve_aliases(statements("~a r1\n~b $a"))

    def test_definitions_fail_before_substitution(self):
        """A bad definition stops resolution before any reference is checked."""
        with pytest.raises(DuplicateAliasError):
            resolve_aliases(statements("~x 1\n~x 2\nmovi $undefined 1"))

    def test_error_limit(self):
        with pytest.raises(AssemblyFailedError) as exc_info:
            AliasResolver(max_errors=2).resolve(statements("nop $a\nnop $b\nnop $c"))
        assert len(exc_info.value.errors) == 2
