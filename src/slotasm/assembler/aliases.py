"""
Alias Resolution
================

Aliases are plain textual substitutions for operand tokens:

```asm
~counter r4
~limit   0x40
    movi $counter $limit     # becomes: movi r4 0x40
```

Resolution runs before any address-sensitive pass: all definitions are
collected first (so an alias may be used above its definition), then
every `$name` operand token is replaced by its value. An alias value is
taken literally; it cannot refer to another alias.
"""

from dataclasses import dataclass
import logging
from typing import Iterator

from slotasm.assembler.parser import (
    ALIAS_DEFINITION_MARKER,
    ALIAS_REFERENCE_MARKER,
    Statement,
    StatementKind,
)
from slotasm.errors import (
    AssemblySyntaxError,
    DuplicateAliasError,
    ErrorCollector,
    SourceLocation,
    UndefinedAliasError,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Alias:
    """
    One alias definition.

    Attributes:
        name: Alias name (without the `~` marker)
        value: Replacement token text
        location: Where the alias was defined
    """
    name: str
    value: str
    location: SourceLocation


class AliasTable:
    """Mapping from alias name to its definition."""

    def __init__(self):
        self._aliases: dict[str, Alias] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._aliases

    def __len__(self) -> int:
        return len(self._aliases)

    def __iter__(self) -> Iterator[Alias]:
        return iter(self._aliases.values())

    def get(self, name: str) -> Alias | None:
        return self._aliases.get(name)

    def define(self, alias: Alias, source_line: str | None = None) -> None:
        """
        Add a definition.

        Raises:
            DuplicateAliasError: If the name is already defined
        """
        existing = self._aliases.get(alias.name)
        if existing is not None:
            raise DuplicateAliasError(
                alias.name,
                location=alias.location,
                original_location=existing.location,
                source_line=source_line,
            )
        self._aliases[alias.name] = alias

    def as_dict(self) -> dict[str, str]:
        """Return a plain name -> value dictionary."""
        return {name: alias.value for name, alias in self._aliases.items()}


class AliasResolver:
    """
    Collects alias definitions and substitutes alias references.

    Usage:
        resolver = AliasResolver()
        table = resolver.resolve(statements)   # mutates statement tokens

    Attributes:
        max_errors: Errors collected per phase before giving up
    """

    def __init__(self, max_errors: int = 100):
        self.max_errors = max_errors

    def resolve(self, statements: list[Statement]) -> AliasTable:
        """
        Resolve all aliases in place.

        Returns:
            The table of definitions that were applied

        Raises:
            AssemblerError: If a definition is malformed or a reference is
                            undefined (several errors are aggregated)
        """
        table = self.collect(statements)
        self.substitute(statements, table)
        logger.debug(f"Resolved {len(table)} aliases")
        return table

    def collect(self, statements: list[Statement]) -> AliasTable:
        """First scan: record every `~name value` definition."""
        table = AliasTable()
        errors = ErrorCollector(self.max_errors)

        for stmt in statements:
            if stmt.kind != StatementKind.ALIAS:
                continue
            try:
                table.define(self._parse_definition(stmt), stmt.source_line)
            except (AssemblySyntaxError, DuplicateAliasError) as e:
                errors.add(e)

        errors.raise_if_errors("alias definition")
        return table

    def substitute(self, statements: list[Statement], table: AliasTable) -> None:
        """Second scan: replace every `$name` operand with its value."""
        errors = ErrorCollector(self.max_errors)

        for stmt in statements:
            if stmt.kind not in (StatementKind.INSTRUCTION, StatementKind.DATA):
                continue
            for index in range(1, len(stmt.tokens)):
                token = stmt.tokens[index]
                if not token.value.startswith(ALIAS_REFERENCE_MARKER):
                    continue
                name = token.value[len(ALIAS_REFERENCE_MARKER):]
                alias = table.get(name)
                if alias is None:
                    errors.add(UndefinedAliasError(
                        name,
                        location=stmt.token_location(token),
                        source_line=stmt.source_line,
                    ))
                    continue
                stmt.tokens[index] = token.replace(alias.value)

        errors.raise_if_errors("alias substitution")

    @staticmethod
    def _parse_definition(stmt: Statement) -> Alias:
        name = stmt.head[len(ALIAS_DEFINITION_MARKER):]
        if not name:
            raise AssemblySyntaxError(
                "alias definition without a name",
                stmt.location,
                hint="write '~name value'",
                source_line=stmt.source_line,
            )
        if len(stmt.tokens) != 2:
            raise AssemblySyntaxError(
                f"alias '{name}' must have exactly one value",
                stmt.location,
                hint="write '~name value'",
                source_line=stmt.source_line,
            )
        value = stmt.tokens[1].value
        if value.startswith(ALIAS_REFERENCE_MARKER):
            raise AssemblySyntaxError(
                f"alias '{name}' cannot be defined by another alias ('{value}')",
                stmt.token_location(stmt.tokens[1]),
                source_line=stmt.source_line,
            )
        return Alias(name, value, stmt.location)


def resolve_aliases(statements: list[Statement], max_errors: int = 100) -> AliasTable:
    """Convenience function: resolve aliases in place."""
    return AliasResolver(max_errors).resolve(statements)
