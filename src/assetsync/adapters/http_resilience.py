"""Async httpx client with rate limiting and retries on transient failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

from assetsync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

__all__ = ["RateLimit", "ResilienceConfig", "ResilientClient", "RetryPolicy"]


class ResilientClient:
    """GET-only JSON client shared by the read-side API adapters.

    Timeouts, dropped connections and the statuses in ``RetryPolicy.status_forcelist``
    are retried by an ``httpx_retries`` transport wrapped around ``transport`` (the
    default network transport when omitted). Every request waits for the
    ``aiolimiter`` bucket when a rate limit is set.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            transport=RetryTransport(transport=transport, retry=config.retry.build()),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, url: str, *, params: Mapping[str, str | int] | None = None) -> object:
        response = await self.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def get(
        self, url: str, *, params: Mapping[str, str | int] | None = None
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)
