"""
Tests for Environment Utilities (stock_insights/utils/env.py)

Tests:
1. .env auto-loading from an explicit path
2. Existing environment variables are never overridden
3. Plug-in import paths resolve to objects or fail with ProviderConfigError
"""

import os
from pathlib import Path

import pytest


class TestLoadRepoDotenv:
    """Tests for load_repo_dotenv()."""

    def test_loads_env_file_from_explicit_path(self, tmp_path: Path):
        """Test loading .env from an explicit path."""
        from stock_insights.utils.env import load_repo_dotenv

        env_file = tmp_path / ".env"
        env_file.write_text("TEST_VAR_XYZ=test_value_123\n")

        os.environ.pop("TEST_VAR_XYZ", None)

        try:
            result = load_repo_dotenv(dotenv_path=env_file)

            assert result is True
            assert os.environ.get("TEST_VAR_XYZ") == "test_value_123"
        finally:
            os.environ.pop("TEST_VAR_XYZ", None)

    def test_returns_false_when_env_not_found(self, tmp_path: Path):
        """Test returns False when .env doesn't exist."""
        from stock_insights.utils.env import load_repo_dotenv

        nonexistent = tmp_path / "nonexistent" / ".env"
        assert load_repo_dotenv(dotenv_path=nonexistent) is False

    def test_does_not_override_existing_env_vars(self, tmp_path: Path):
        """Test that existing env vars are not overridden."""
        from stock_insights.utils.env import load_repo_dotenv

        os.environ["EXISTING_VAR_ABC"] = "original_value"

        env_file = tmp_path / ".env"
        env_file.write_text("EXISTING_VAR_ABC=new_value\n")

        try:
            load_repo_dotenv(dotenv_path=env_file)
            assert os.environ.get("EXISTING_VAR_ABC") == "original_value"
        finally:
            os.environ.pop("EXISTING_VAR_ABC", None)

    def test_parses_quoted_values_and_comments(self, tmp_path: Path):
        """Test parsing of quoted values, comments and blank lines."""
        from stock_insights.utils.env import load_repo_dotenv

        env_file = tmp_path / ".env"
        env_file.write_text(
            "# provider settings\n"
            "\n"
            'DOUBLE_QUOTED="value with spaces"\n'
            "SINGLE_QUOTED='another value'\n"
        )

        keys = ["DOUBLE_QUOTED", "SINGLE_QUOTED"]
        for k in keys:
            os.environ.pop(k, None)

        try:
            load_repo_dotenv(dotenv_path=env_file)

            assert os.environ.get("DOUBLE_QUOTED") == "value with spaces"
            assert os.environ.get("SINGLE_QUOTED") == "another value"
        finally:
            for k in keys:
                os.environ.pop(k, None)


class TestLoadObject:
    """Tests for load_object() plug-in resolution."""

    def test_resolves_module_attribute(self):
        """A valid path returns the attribute itself."""
        from stock_insights.utils.env import load_object
        from stock_insights.interfaces import StubTradingCalendar

        assert load_object("stock_insights.interfaces:StubTradingCalendar") is StubTradingCalendar

    @pytest.mark.parametrize("path", ["no_colon_here", ":attr", "module:"])
    def test_malformed_path_raises(self, path):
        """Paths without both parts are rejected."""
        from stock_insights.utils.env import ProviderConfigError, load_object

        with pytest.raises(ProviderConfigError) as exc_info:
            load_object(path)
        assert "package.module:attribute" in str(exc_info.value)

    def test_missing_module_raises(self):
        from stock_insights.utils.env import ProviderConfigError, load_object

        with pytest.raises(ProviderConfigError):
            load_object("definitely_not_a_module_xyz:Client")

    def test_missing_attribute_raises(self):
        from stock_insights.utils.env import ProviderConfigError, load_object

        with pytest.raises(ProviderConfigError) as exc_info:
            load_object("stock_insights.interfaces:NoSuchThing")
        assert "NoSuchThing" in str(exc_info.value)


class TestGetRepoRoot:
    """Tests for get_repo_root()."""

    def test_finds_directory_with_pyproject(self):
        """The package lives in a repo whose root holds pyproject.toml."""
        from stock_insights.utils.env import get_repo_root

        root = get_repo_root()
        assert (root / "pyproject.toml").exists() or (root / ".git").exists()
