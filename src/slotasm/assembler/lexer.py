"""
Source Line Lexer
=================

This module turns raw source lines into whitespace-separated tokens.
The language is line-oriented: one statement per line, and a statement
is nothing more than a list of tokens.

Normalization Rules
-------------------
- `#` starts a comment that runs to the end of the line
- Spaces, tabs and commas separate tokens
- A double-quoted string is a single token, kept verbatim including its
  quotes and escapes; `#`, commas and spaces inside it are literal
- Lines with no tokens after cleaning are dropped

Example
-------
>>> tokenize_line('  add r1, 5   # bump')
[Token('add', 3), Token('r1', 7), Token('5', 11)]
>>> tokenize_line('8000 "a, b # c"')
[Token('8000', 1), Token('"a, b # c"', 6)]
"""

from dataclasses import dataclass
import re

from slotasm.errors import SourceLocation


COMMENT_MARKER = "#"

# A quoted string (possibly unterminated), a comment, or a bare word
_TOKEN_PATTERN = re.compile(
    r'(?P<string>"(?:\\.|[^"\\])*"?)'
    r"|(?P<comment>" + re.escape(COMMENT_MARKER) + r".*)"
    r'|(?P<word>[^\s,"' + re.escape(COMMENT_MARKER) + r"]+)"
)


# =============================================================================
# Token and Line Data Classes
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    One token of a statement.

    Attributes:
        value: Token text
        column: Column in the source line (1-indexed)
    """
    value: str
    column: int

    def __repr__(self) -> str:
        return f"Token({self.value!r}, {self.column})"

    def replace(self, value: str) -> "Token":
        """Return a token with new text at the same column."""
        return Token(value, self.column)


@dataclass(frozen=True)
class SourceLine:
    """
    A non-empty source line after cleaning.

    Attributes:
        text: Original line text (without line terminator)
        location: File and line the text came from
        tokens: Tokens of the line, never empty
    """
    text: str
    location: SourceLocation
    tokens: tuple[Token, ...]


# =============================================================================
# Tokenization
# =============================================================================

def tokenize_line(text: str) -> list[Token]:
    """
    Split one source line into tokens.

    Args:
        text: Raw source line

    Returns:
        Tokens in order; empty for blank and comment-only lines
    """
    tokens = []
    for match in _TOKEN_PATTERN.finditer(text):
        if match.lastgroup == "comment":
            break
        tokens.append(Token(match.group(), match.start() + 1))
    return tokens


def clean_line(text: str) -> str:
    """Return the line reduced to its tokens joined by single spaces."""
    return " ".join(token.value for token in tokenize_line(text))


def split_lines(source: str, filename: str = "<input>") -> list[SourceLine]:
    """
    Tokenize every line of a source text.

    Blank and comment-only lines are dropped; line numbers still count
    them so diagnostics point at the right place.
    """
    lines = []
    for number, text in enumerate(source.splitlines(), start=1):
        tokens = tokenize_line(text)
        if tokens:
            location = SourceLocation(filename, number, tokens[0].column)
            lines.append(SourceLine(text, location, tuple(tokens)))
    return lines
