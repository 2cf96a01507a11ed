"""Boolean flags read from the environment."""

from __future__ import annotations

import os

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class ConfigurationError(RuntimeError):
    """Raised when an environment variable holds a value that cannot be parsed."""


def env_flag(name: str, *, default: bool = False) -> bool:
    """Parse a boolean environment variable such as ``RESMAP_SQL_ECHO=1``."""

    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {value!r}")
