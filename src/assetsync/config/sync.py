"""Configuration for device sync runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .env import optional_env_bool, optional_env_float, optional_env_int
from .errors import ConfigurationError

DEFAULT_CHUNK_SIZE: Final[int] = 50
DEFAULT_CACHE_TTL_SECONDS: Final[int] = 3600
DEFAULT_MAX_WORKERS: Final[int] = 4
DEFAULT_CHUNK_ATTEMPTS: Final[int] = 3

DEFAULT_ENRICHMENT_LIMIT: Final[int] = 3
DEFAULT_ENRICHMENT_CHUNK_SIZE: Final[int] = 100
DEFAULT_CUSTOM_COLUMN_PREFIX: Final[str] = "_snipeit_"

INTUNE_CATEGORY_NAME: Final[str] = "Intune Devices"
JAMF_COMPUTER_CATEGORY_NAME: Final[str] = "JAMF Computers"
JAMF_MOBILE_CATEGORY_NAME: Final[str] = "JAMF Mobile Devices"


@dataclass(frozen=True, slots=True)
class SourceDefaults:
    """Per-source knobs: chunking, auto-assignment and override identities."""

    computer_category_name: str
    mobile_category_name: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    auto_assign_users: bool = False
    status_id: int | None = None
    location_id: int | None = None
    computer_category_id: int | None = None
    mobile_category_id: int | None = None
    model_id: int | None = None
    manufacturer_id: int | None = None

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")


@dataclass(frozen=True, slots=True)
class SyncConfig:
    intune: SourceDefaults = field(
        default_factory=lambda: SourceDefaults(
            computer_category_name=INTUNE_CATEGORY_NAME,
            mobile_category_name=INTUNE_CATEGORY_NAME,
        )
    )
    jamf: SourceDefaults = field(
        default_factory=lambda: SourceDefaults(
            computer_category_name=JAMF_COMPUTER_CATEGORY_NAME,
            mobile_category_name=JAMF_MOBILE_CATEGORY_NAME,
        )
    )
    sync_jamf_computers: bool = True
    sync_jamf_mobile_devices: bool = True
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS
    chunk_attempts: int = DEFAULT_CHUNK_ATTEMPTS
    chunk_retry_backoff_seconds: float = 0.0


@dataclass(frozen=True, slots=True)
class EnrichmentConfig:
    incident_limit: int = DEFAULT_ENRICHMENT_LIMIT
    remediation_limit: int = DEFAULT_ENRICHMENT_LIMIT
    chunk_size: int = DEFAULT_ENRICHMENT_CHUNK_SIZE
    column_prefix: str = DEFAULT_CUSTOM_COLUMN_PREFIX


def get_sync_config() -> SyncConfig:
    model_id = optional_env_int("SNIPEIT_DEFAULT_MODEL_ID")
    manufacturer_id = optional_env_int("SNIPEIT_DEFAULT_MANUFACTURER_ID")
    intune_category_id = optional_env_int("INTUNE_DEFAULT_CATEGORY_ID")
    intune = SourceDefaults(
        computer_category_name=INTUNE_CATEGORY_NAME,
        mobile_category_name=INTUNE_CATEGORY_NAME,
        chunk_size=_positive("INTUNE_SYNC_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        auto_assign_users=optional_env_bool("INTUNE_AUTO_ASSIGN_USERS", default=False),
        status_id=optional_env_int("INTUNE_DEFAULT_STATUS_ID"),
        location_id=optional_env_int("INTUNE_DEFAULT_LOCATION_ID"),
        computer_category_id=intune_category_id,
        mobile_category_id=intune_category_id,
        model_id=model_id,
        manufacturer_id=manufacturer_id,
    )
    jamf = SourceDefaults(
        computer_category_name=JAMF_COMPUTER_CATEGORY_NAME,
        mobile_category_name=JAMF_MOBILE_CATEGORY_NAME,
        chunk_size=_positive("JAMF_SYNC_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        auto_assign_users=optional_env_bool("JAMF_AUTO_ASSIGN_USERS", default=False),
        status_id=optional_env_int("JAMF_DEFAULT_STATUS_ID"),
        location_id=optional_env_int("JAMF_DEFAULT_LOCATION_ID"),
        computer_category_id=optional_env_int("JAMF_DEFAULT_CATEGORY_ID_COMPUTERS"),
        mobile_category_id=optional_env_int("JAMF_DEFAULT_CATEGORY_ID_MOBILE"),
        model_id=model_id,
        manufacturer_id=manufacturer_id,
    )
    return SyncConfig(
        intune=intune,
        jamf=jamf,
        sync_jamf_computers=optional_env_bool("JAMF_SYNC_COMPUTERS", default=True),
        sync_jamf_mobile_devices=optional_env_bool("JAMF_SYNC_MOBILE_DEVICES", default=True),
        cache_ttl_seconds=_positive("ASSETSYNC_CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS),
        max_workers=_positive("ASSETSYNC_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        chunk_attempts=_positive("ASSETSYNC_CHUNK_ATTEMPTS", DEFAULT_CHUNK_ATTEMPTS),
        chunk_retry_backoff_seconds=optional_env_float("ASSETSYNC_CHUNK_RETRY_BACKOFF", 0.0),
    )


def get_enrichment_config() -> EnrichmentConfig:
    return EnrichmentConfig(
        incident_limit=max(0, _int("HUNTRESS_INCIDENT_LIMIT", DEFAULT_ENRICHMENT_LIMIT)),
        remediation_limit=max(0, _int("HUNTRESS_REMEDIATION_LIMIT", DEFAULT_ENRICHMENT_LIMIT)),
        chunk_size=max(1, _int("HUNTRESS_CHUNK_SIZE", DEFAULT_ENRICHMENT_CHUNK_SIZE)),
    )


def _int(name: str, default: int) -> int:
    value = optional_env_int(name, default)
    return default if value is None else value


def _positive(name: str, default: int) -> int:
    value = _int(name, default)
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}", variable=name)
    return value
