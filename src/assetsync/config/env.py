"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import ConfigurationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def optional_env_str(name: str) -> str | None:
    """Return a stripped environment value, treating blanks as absent."""

    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def optional_env_int(name: str, default: int | None = None) -> int | None:
    value = optional_env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}", variable=name
        ) from exc


def optional_env_float(name: str, default: float) -> float:
    value = optional_env_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be a number, got {value!r}", variable=name
        ) from exc


def optional_env_bool(name: str, *, default: bool) -> bool:
    value = optional_env_str(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {value!r}", variable=name)
