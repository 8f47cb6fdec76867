"""Errors raised while loading configuration."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A configuration value is present but cannot be used."""

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class MissingConfigurationError(ConfigurationError):
    """A value the current run depends on was never configured."""
