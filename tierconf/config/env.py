"""Environment variable helpers used while resolving configuration."""
from __future__ import annotations

import os
from typing import Optional

DEBUG_CONFIG_ENV = "DEBUG_CONFIG"

_TRUTHY = {"1", "true", "yes", "y", "on"}


def env_var(name: str) -> Optional[str]:
    """Return the variable's value, or None when unset.

    An empty value counts as set.
    """
    if not name:
        return None
    return os.environ.get(name)


def env_bool(name: str, default: bool = False) -> bool:
    """Parse boolean from environment variable.

    Args:
        name: Environment variable name
        default: Default value if not set

    Returns:
        Boolean value (True for "1", "true", "yes", "y", "on")
    """
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in _TRUTHY


def debug_config_enabled() -> bool:
    """Whether the fully substituted document should be dumped before decoding."""
    return env_bool(DEBUG_CONFIG_ENV)
