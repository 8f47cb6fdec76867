"""Ports for secondary data sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from assetsync.domain.model import AgentSnapshot


@runtime_checkable
class AgentSource(Protocol):
    def find_agent(
        self,
        serial_number: str,
        *,
        incident_limit: int,
        remediation_limit: int,
    ) -> AgentSnapshot | None:
        """Return the agent reporting ``serial_number``, or ``None`` if there is none.

        Raises ``EnrichmentSourceError`` when the source cannot answer; that is
        never reported as ``None``.
        """
        ...
