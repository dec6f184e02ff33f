"""
Environment Variable Utilities
==============================

Shared helpers for:
- Auto-loading .env from repo root
- Resolving plug-in import paths for upstream collaborators
- Never logging secrets

Usage:
    from stock_insights.utils.env import load_repo_dotenv, load_object

    load_repo_dotenv()  # Auto-loads .env from repo root if present
    provider_cls = load_object("my_vendor.client:MarketDataClient")
"""

import importlib
import logging
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ProviderConfigError(RuntimeError):
    """Raised when a configured plug-in path cannot be imported."""
    pass


def get_repo_root() -> Path:
    """
    Find the repository root directory.

    Searches upward from this file (then from cwd) for a directory containing
    a .git directory or a pyproject.toml.

    Returns:
        Path to repo root (cwd when nothing matches)
    """
    current = Path(__file__).resolve().parent

    check_paths = [current]
    cwd = Path.cwd()
    if cwd != current:
        check_paths.append(cwd)

    for start_path in check_paths:
        path = start_path
        for _ in range(10):  # Limit search depth
            if (path / ".git").exists():
                return path
            if (path / "pyproject.toml").exists():
                return path
            if path.parent == path:
                break
            path = path.parent

    return cwd


def load_repo_dotenv(dotenv_path: Optional[Path] = None) -> bool:
    """
    Load .env file from repo root if present.

    Safe to call multiple times - already-set environment variables
    are never overridden.

    Args:
        dotenv_path: Optional explicit path to .env file.
                     If not provided, searches for .env in repo root.

    Returns:
        True if .env was found and loaded, False otherwise
    """
    if dotenv_path is None:
        dotenv_path = get_repo_root() / ".env"

    if not dotenv_path.exists():
        logger.debug(f".env not found at {dotenv_path}")
        return False

    loaded = load_dotenv(dotenv_path, override=False)
    if loaded:
        logger.debug(f"Loaded .env from {dotenv_path}")
    return loaded


def load_object(path: str) -> Any:
    """
    Import an object from a "package.module:attribute" path.

    Used to plug concrete vendor clients (market data, text completion)
    into the core without the core depending on them.

    Raises:
        ProviderConfigError: If the path is malformed or cannot be imported
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ProviderConfigError(
            f"Invalid plug-in path '{path}'. Expected 'package.module:attribute'."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProviderConfigError(f"Cannot import module '{module_name}': {e}") from e

    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ProviderConfigError(f"Module '{module_name}' has no attribute '{attr}'") from e
