"""Application configuration helpers."""

from __future__ import annotations

from .env import (
    optional_env_bool,
    optional_env_float,
    optional_env_int,
    optional_env_str,
)
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .huntress import HuntressConfig, get_huntress_config, huntress_resilience
from .logging import configure_logging
from .storage import DatabaseConfig, get_database_config, registry_data_dir
from .sync import (
    EnrichmentConfig,
    SourceDefaults,
    SyncConfig,
    get_enrichment_config,
    get_sync_config,
)

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "EnrichmentConfig",
    "HuntressConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SourceDefaults",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_enrichment_config",
    "get_huntress_config",
    "get_sync_config",
    "huntress_resilience",
    "optional_env_bool",
    "optional_env_float",
    "optional_env_int",
    "optional_env_str",
    "registry_data_dir",
]
