"""
Shared Utility Functions
========================

Common utilities used across the codebase.
"""

from stock_insights.utils.env import (
    load_repo_dotenv,
    load_object,
    get_repo_root,
    ProviderConfigError,
)

__all__ = [
    "load_repo_dotenv",
    "load_object",
    "get_repo_root",
    "ProviderConfigError",
]
