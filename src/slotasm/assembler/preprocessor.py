"""
Source Preprocessor
===================

Loads source text and splices include files into it, producing the flat
list of cleaned lines the assembler works on.

Include Directive
-----------------
```asm
include lib/print.asm
include "macros and aliases.asm"
```

The included file's lines replace the directive, recursively. Files are
looked up relative to the including file first, then in the configured
include paths. Each spliced line keeps its own file name and line number
for diagnostics.
"""

import logging
from pathlib import Path
from typing import Optional

from slotasm.assembler.lexer import SourceLine, split_lines
from slotasm.errors import UnreadableSourceError


logger = logging.getLogger(__name__)

INCLUDE_KEYWORD = "include"


class Preprocessor:
    """
    Expands include directives.

    Usage:
        pre = Preprocessor(include_paths=[Path("lib")])
        lines = pre.load_file("main.asm")

    Attributes:
        include_paths: Directories searched after the including file's own
    """

    def __init__(self, include_paths: Optional[list[Path]] = None):
        self.include_paths: list[Path] = list(include_paths or [])

    def load_file(self, filepath: str | Path) -> list[SourceLine]:
        """
        Read a source file and expand its includes.

        Raises:
            UnreadableSourceError: If the file or any include cannot be read
        """
        filepath = Path(filepath)
        source = self._read(filepath, directive=None)
        return self._expand(source, str(filepath), stack=[filepath.resolve()])

    def load_string(self, source: str, filename: str = "<input>") -> list[SourceLine]:
        """Expand includes in source text that did not come from a file."""
        stack = [] if filename.startswith("<") else [Path(filename).resolve()]
        return self._expand(source, filename, stack=stack)

    # =========================================================================
    # Internals
    # =========================================================================

    def _expand(self, source: str, filename: str, stack: list[Path]) -> list[SourceLine]:
        result: list[SourceLine] = []

        for line in split_lines(source, filename):
            if line.tokens[0].value.lower() != INCLUDE_KEYWORD:
                result.append(line)
                continue

            if len(line.tokens) != 2:
                raise UnreadableSourceError(
                    " ".join(t.value for t in line.tokens[1:]) or "<missing>",
                    "include expects exactly one file name",
                    location=line.location,
                    source_line=line.text,
                )

            name = line.tokens[1].value
            if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
                name = name[1:-1]

            path = self._resolve(name, filename, line)
            resolved = path.resolve()
            if resolved in stack:
                raise UnreadableSourceError(
                    name,
                    "circular include",
                    location=line.location,
                    source_line=line.text,
                )

            logger.debug(f"{line.location}: including {path}")
            included = self._read(path, directive=line)
            result.extend(self._expand(included, str(path), stack + [resolved]))

        return result

    def _resolve(self, name: str, current_file: str, directive: SourceLine) -> Path:
        """Resolve an include name to an existing file."""
        directories = []
        if not current_file.startswith("<"):
            directories.append(Path(current_file).parent)
        directories.extend(self.include_paths)

        for directory in directories:
            candidate = directory / name
            if candidate.is_file():
                return candidate

        raise UnreadableSourceError(
            name,
            "file not found",
            location=directive.location,
            source_line=directive.text,
            search_paths=[str(d) for d in directories],
        )

    def _read(self, path: Path, directive: Optional[SourceLine]) -> str:
        """Read a whole file, reporting the include site on failure."""
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            raise UnreadableSourceError(
                str(path),
                reason,
                location=directive.location if directive else None,
                source_line=directive.text if directive else None,
            ) from e


def load_source(
    source: str,
    filename: str = "<input>",
    include_paths: Optional[list[Path]] = None,
) -> list[SourceLine]:
    """Convenience function: expand includes in a source string."""
    return Preprocessor(include_paths).load_string(source, filename)


