"""
Slotasm Error Hierarchy
=======================

This module defines the exception hierarchy for the whole assembler.
All exceptions inherit from SlotasmError, allowing callers to catch every
assembler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
SlotasmError (base)
├── AssemblerError (assembly of source text)
│   ├── AssemblySyntaxError - malformed statement
│   ├── DuplicateLabelError - label defined more than once
│   ├── UndefinedLabelError - reference to a label never defined
│   ├── DuplicateAliasError - alias defined more than once
│   ├── UndefinedAliasError - reference to an alias never defined
│   ├── UnknownInstructionError - mnemonic not in the instruction set
│   ├── TooManyOperandsError - more than two operand tokens
│   ├── MultipleImmediateOperandsError - two immediate/label operands
│   ├── InvalidOperandError - operand token of unknown shape or range
│   ├── DirectiveError - malformed data directive
│   ├── UnreadableSourceError - source or include file cannot be read
│   └── AssemblyFailedError - several errors collected from one stage
├── OutputWriteError - output file cannot be written
└── ImageFormatError - binary image cannot be parsed

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class SlotasmError(Exception):
    """
    Base exception for all slotasm errors.

        try:
            assembler.assemble_file("program.asm")
        except SlotasmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(SlotasmError):
    """
    Base exception for all assembly errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Source line number of the error, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.asm:7:5: error: undefined label 'lop'
                jmp @lop
                ^
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Malformed statement.

    Examples:
        - Alias definition without exactly one value
        - Alias value that refers to another alias
    """
    pass


class DuplicateLabelError(AssemblerError):
    """
    Label defined more than once.

    Sub-labels are checked under their qualified name, so `.loop` may
    repeat under different enclosing labels.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedLabelError(AssemblerError):
    """
    Reference to a label that was never defined.

    Raised during the second pass. Similarly named labels are suggested
    to help catch typos.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateAliasError(AssemblerError):
    """Alias defined more than once."""

    def __init__(
        self,
        alias: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.alias = alias
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{alias}' was first defined at {original_location}"

        super().__init__(
            f"duplicate alias '{alias}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedAliasError(AssemblerError):
    """Reference to an alias with no `~name value` definition."""

    def __init__(
        self,
        alias: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.alias = alias
        super().__init__(
            f"undefined alias '{alias}'",
            location=location,
            hint=f"define it with '~{alias} <value>'",
            source_line=source_line,
        )


class UnknownInstructionError(AssemblerError):
    """Mnemonic is not part of the instruction set."""

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_mnemonics: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.similar_mnemonics = similar_mnemonics or []

        hint = None
        if self.similar_mnemonics:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_mnemonics[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown instruction '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class TooManyOperandsError(AssemblerError):
    """Instruction has more than two operand tokens."""

    def __init__(
        self,
        mnemonic: str,
        count: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.count = count
        super().__init__(
            f"'{mnemonic}' has {count} operands, at most 2 are allowed",
            location=location,
            source_line=source_line,
        )


class MultipleImmediateOperandsError(AssemblerError):
    """
    More than one operand is an immediate value or label reference.

    A slot has room for one 16-bit value only.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"'{mnemonic}' has more than one immediate or label operand",
            location=location,
            hint="only one operand may be a number or a label reference",
            source_line=source_line,
        )


class InvalidOperandError(AssemblerError):
    """Operand token is not a register, number or label reference."""
    pass


class DirectiveError(AssemblerError):
    """
    Error in a data directive.

    Examples:
        - Offset does not fit 16 bits
        - Missing literal after the offset
        - Unterminated bracket list
        - Value above 0xFFFF
    """
    pass


class UnreadableSourceError(AssemblerError):
    """
    Source or include file cannot be read.

    Raised when:
    - The file does not exist
    - Permission denied reading the file
    - Circular include detected
    """

    def __init__(
        self,
        filename: str,
        reason: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        search_paths: Optional[list[str]] = None,
    ):
        self.source_filename = filename
        self.reason = reason
        self.search_paths = search_paths or []

        hint = None
        if self.search_paths:
            hint = f"searched in: {', '.join(self.search_paths)}"

        super().__init__(
            f"cannot read '{filename}': {reason}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AssemblyFailedError(AssemblerError):
    """
    Several errors were collected during one assembly stage.

    Attributes:
        errors: The individual errors, in source order
    """

    def __init__(self, stage: str, errors: list[AssemblerError]):
        self.stage = stage
        self.errors = list(errors)
        report = "\n\n".join(str(e) for e in self.errors)
        super().__init__(
            f"{stage} failed with {len(self.errors)} errors:\n\n{report}"
        )


# =============================================================================
# Output and Image Exceptions
# =============================================================================

class OutputWriteError(SlotasmError):
    """Output file (image, listing, symbols) cannot be written."""

    def __init__(self, filename: str, reason: str):
        self.output_filename = filename
        self.reason = reason
        super().__init__(f"cannot write '{filename}': {reason}")


class ImageFormatError(SlotasmError):
    """
    Binary image cannot be parsed.

    Raised when the data-size header or an entry header points past the
    end of the image.
    """
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects errors within one assembly stage for batch reporting.

    A stage keeps going after an error so that all problems in the
    source are reported together, then calls raise_if_errors() before
    the next stage runs.

    Example:
        collector = ErrorCollector(max_errors=100)
        for stmt in statements:
            try:
                ...
            except AssemblerError as e:
                collector.add(e)
        collector.raise_if_errors("symbol pass")
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(self.max_errors, self.errors)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self) -> str:
        """Format all errors for display."""
        lines = []
        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")
        return "\n".join(lines)

    def raise_if_errors(self, stage: str) -> None:
        """
        Fail the stage if anything was collected.

        A single error is raised as itself so callers can catch the
        specific kind; several errors are wrapped in AssemblyFailedError.
        """
        if not self.errors:
            return
        if len(self.errors) == 1:
            raise self.errors[0]
        raise AssemblyFailedError(stage, self.errors)

    def clear(self) -> None:
        """Clear all collected errors."""
        self.errors.clear()


class TooManyErrors(AssemblyFailedError):
    """Raised when too many errors have been encountered in one stage."""

    def __init__(self, max_errors: int, errors: list[AssemblerError]):
        super().__init__(f"assembly (stopped after {max_errors} errors)", errors)
