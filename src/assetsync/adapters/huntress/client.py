"""HTTP client for the Huntress REST API."""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from assetsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from assetsync.config.huntress import HuntressConfig, get_huntress_config
from assetsync.domain.errors import EnrichmentSourceError, MalformedAgentPayloadError
from assetsync.domain.ports.fetching import AgentSource

from .translator import extract_collection, parse_agent_snapshot

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from assetsync.domain.model import AgentSnapshot

log = getLogger(__name__)


def authorization_header(api_key: str) -> str:
    """``key:secret`` pairs use Basic auth; anything else is sent as a bearer token."""

    if ":" in api_key:
        token = base64.b64encode(api_key.encode("utf-8")).decode("ascii")
        return f"Basic {token}"
    return f"Bearer {api_key}"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HuntressAgentSource:
    config: HuntressConfig = field(default_factory=get_huntress_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def find_agent(
        self,
        serial_number: str,
        *,
        incident_limit: int,
        remediation_limit: int,
    ) -> AgentSnapshot | None:
        if not self.config.api_key:
            raise EnrichmentSourceError("Huntress API key is not configured")
        try:
            return asyncio.run(
                self._find_agent_async(
                    serial_number,
                    incident_limit=max(0, incident_limit),
                    remediation_limit=max(0, remediation_limit),
                )
            )
        except EnrichmentSourceError:
            raise
        except httpx.HTTPError as exc:
            raise EnrichmentSourceError(
                f"Huntress request failed for serial {serial_number}: {exc}"
            ) from exc
        except ValueError as exc:
            raise MalformedAgentPayloadError(
                f"Unexpected Huntress payload for serial {serial_number}: {exc}"
            ) from exc

    def _resilience(self, api_key: str) -> ResilienceConfig:
        resilience = self.config.resilience
        headers = dict(resilience.default_headers or {})
        headers.update({"Accept": "application/json", "Authorization": authorization_header(api_key)})
        return replace(resilience, default_headers=headers)

    async def _find_agent_async(
        self,
        serial_number: str,
        *,
        incident_limit: int,
        remediation_limit: int,
    ) -> AgentSnapshot | None:
        api_key = self.config.api_key or ""
        async with self.client_factory(self._resilience(api_key)) as client:
            agents = await self._collection(
                client,
                "/v1/agents",
                {"serial_number": serial_number, "per_page": 1},
                "agents",
            )
            if not agents:
                log.debug("No Huntress agent reports serial %s", serial_number)
                return None
            agent = agents[0]
            agent_id = agent.get("id")
            if agent_id in (None, ""):
                raise MalformedAgentPayloadError(
                    f"Huntress agent for serial {serial_number} has no id"
                )

            incidents: list[Mapping[str, object]] = []
            if incident_limit:
                incidents = await self._collection(
                    client,
                    "/v1/incidents",
                    {"agent_id": str(agent_id), "per_page": incident_limit, "sort": "-detected_at"},
                    "incidents",
                )
            remediations: list[Mapping[str, object]] = []
            if remediation_limit:
                remediations = await self._collection(
                    client,
                    "/v1/remediations",
                    {
                        "agent_id": str(agent_id),
                        "per_page": remediation_limit,
                        "sort": "-requested_at",
                    },
                    "remediations",
                )

        return parse_agent_snapshot(
            agent,
            incidents[:incident_limit],
            remediations[:remediation_limit],
        )

    async def _collection(
        self,
        client: ResilientClient,
        path: str,
        params: Mapping[str, str | int],
        key: str,
    ) -> list[Mapping[str, object]]:
        return extract_collection(await client.get_json(path, params=params), key)


def build_huntress_agent_source(config: HuntressConfig | None = None) -> HuntressAgentSource:
    return HuntressAgentSource(config=config or get_huntress_config())


if TYPE_CHECKING:
    _source_check: AgentSource = HuntressAgentSource()
