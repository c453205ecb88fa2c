"""
Slotasm - Configuration
=======================

Assembler configuration. Values can come from:
- Default values (defined here)
- Environment variables (AssemblerConfig.from_env)
- Command-line options, which override both
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List
import os


ENV_INCLUDE_PATH = "SLOTASM_INCLUDE_PATH"
ENV_MAX_ERRORS = "SLOTASM_MAX_ERRORS"


@dataclass
class AssemblerConfig:
    """
    Configuration for one Assembler instance.

    Attributes:
        include_paths: Directories searched for include files, after the
                       directory of the including file
        max_errors: Errors collected in one stage before giving up
        listing: Collect listing lines while encoding
    """

    include_paths: List[Path] = field(default_factory=list)
    max_errors: int = 100
    listing: bool = True

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Environment variables (all optional):
            SLOTASM_INCLUDE_PATH: Include directories, os.pathsep separated
            SLOTASM_MAX_ERRORS: Maximum errors per stage (integer)
        """
        config = cls()

        if include_path := os.environ.get(ENV_INCLUDE_PATH):
            paths = [Path(p) for p in include_path.split(os.pathsep) if p]
            config.include_paths[:0] = paths

        if max_errors := os.environ.get(ENV_MAX_ERRORS):
            try:
                config.max_errors = max(1, int(max_errors))
            except ValueError:
                pass  # Ignore invalid values

        return config

    def add_include_path(self, path: str | Path) -> None:
        """Append an include directory if it is not already configured."""
        path = Path(path)
        if path not in self.include_paths:
            self.include_paths.append(path)
