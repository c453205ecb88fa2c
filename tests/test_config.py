# =============================================================================
# test_config.py - Configuration Tests
# =============================================================================

import os
from pathlib import Path

from slotasm.config import AssemblerConfig


class TestDefaults:
    def test_defaults(self):
        config = AssemblerConfig()
        assert config.include_paths == []
        assert config.max_errors == 100
        assert config.listing is True

    def test_add_include_path(self):
        config = AssemblerConfig()
        config.add_include_path("lib")
        config.add_include_path(Path("lib"))
        assert config.include_paths == [Path("lib")]


class TestFromEnv:
    """Test environment variable overrides."""

    def test_no_variables(self, monkeypatch):
        monkeypatch.delenv("SLOTASM_INCLUDE_PATH", raising=False)
        monkeypatch.delenv("SLOTASM_MAX_ERRORS", raising=False)
        assert AssemblerConfig.from_env() == AssemblerConfig()

    def test_include_path(self, monkeypatch):
        monkeypatch.setenv("SLOTASM_INCLUDE_PATH", os.pathsep.join(["lib", "", "common"]))
        config = AssemblerConfig.from_env()
        assert config.include_paths == [Path("lib"), Path("common")]

    def test_max_errors(self, monkeypatch):
        monkeypatch.setenv("SLOTASM_MAX_ERRORS", "5")
        assert AssemblerConfig.from_env().max_errors == 5

    def test_max_errors_at_least_one(self, monkeypatch):
        monkeypatch.setenv("SLOTASM_MAX_ERRORS", "0")
        assert AssemblerConfig.from_env().max_errors == 1

    def test_invalid_max_errors_ignored(self, monkeypatch):
        monkeypatch.setenv("SLOTASM_MAX_ERRORS", "many")
        assert AssemblerConfig.from_env().max_errors == 100
