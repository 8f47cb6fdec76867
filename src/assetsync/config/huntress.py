"""Huntress API configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_float, optional_env_str
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

HUNTRESS_BASE_URL = "https://api.huntress.io"
HUNTRESS_TIMEOUT_SECONDS = 15.0


def huntress_resilience(
    *,
    base_url: str = HUNTRESS_BASE_URL,
    timeout_seconds: float = HUNTRESS_TIMEOUT_SECONDS,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="huntress",
        base_url=base_url.rstrip("/"),
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(total=2, backoff_factor=0.5),
        ratelimit=RateLimit(max_calls=60, per_seconds=60.0),
    )


@dataclass(frozen=True)
class HuntressConfig:
    """Holds Huntress API configuration values."""

    api_key: str | None = None
    resilience: ResilienceConfig = field(default_factory=huntress_resilience)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


def get_huntress_config(*, resilience: ResilienceConfig | None = None) -> HuntressConfig:
    return HuntressConfig(
        api_key=optional_env_str("HUNTRESS_API_KEY"),
        resilience=resilience
        or huntress_resilience(
            base_url=optional_env_str("HUNTRESS_URL") or HUNTRESS_BASE_URL,
            timeout_seconds=optional_env_float("HUNTRESS_TIMEOUT", HUNTRESS_TIMEOUT_SECONDS),
        ),
    )
