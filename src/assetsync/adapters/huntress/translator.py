"""Translate Huntress API payloads into agent snapshots."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, cast

from assetsync.domain.errors import MalformedAgentPayloadError
from assetsync.domain.model import AgentRecord, AgentSnapshot, IncidentRecord, RemediationRecord

from .schema import AgentPayload, IncidentPayload, RemediationPayload

if TYPE_CHECKING:
    from collections.abc import Iterable


def extract_collection(payload: object, key: str) -> list[Mapping[str, object]]:
    """Items of a list response, read from ``key`` and falling back to ``data``."""

    items: object = payload
    if isinstance(payload, Mapping):
        envelope = cast(Mapping[str, object], payload)
        items = envelope.get(key) if key in envelope else envelope.get("data")
    if not isinstance(items, Sequence) or isinstance(items, str | bytes):
        return []
    return [cast(Mapping[str, object], item) for item in items if isinstance(item, Mapping)]


def parse_agent(data: Mapping[str, object]) -> AgentRecord:
    agent = AgentPayload.model_validate(data)
    if agent.id is None:
        raise MalformedAgentPayloadError("Huntress agent payload has no id")
    return AgentRecord(
        agent_id=agent.id,
        device_name=agent.device_name,
        hostname=agent.hostname,
        os_name=agent.os.name,
        os_version=agent.os.version,
        os_architecture=agent.os.architecture,
        ip_addresses=tuple(agent.ip_addresses),
        mac_addresses=tuple(agent.mac_addresses),
        last_seen_at=agent.last_seen_at,
        is_online=agent.is_online,
        is_decommissioned=agent.is_decommissioned,
        installation_status=agent.installation_status,
    )


def parse_incident(data: Mapping[str, object]) -> IncidentRecord:
    incident = IncidentPayload.model_validate(data)
    return IncidentRecord(
        incident_id=incident.id,
        agent_id=incident.agent_id,
        incident_type=incident.type,
        status=incident.status,
        severity=incident.severity,
        detected_at=incident.detected_at,
        resolved_at=incident.resolved_at,
        closed_at=incident.closed_at,
        title=incident.title,
        summary=incident.summary,
        description=incident.description,
        detection_method=incident.detection_method,
        evidence=incident.evidence,
        recommendation=incident.recommendation,
        remediation_steps=incident.remediation_steps,
        is_false_positive=incident.is_false_positive,
        assigned_to=incident.assigned_to,
        created_at=incident.created_at,
        updated_at=incident.updated_at,
    )


def parse_remediation(data: Mapping[str, object]) -> RemediationRecord:
    remediation = RemediationPayload.model_validate(data)
    return RemediationRecord(
        remediation_id=remediation.id,
        agent_id=remediation.agent_id,
        incident_id=remediation.incident_id,
        status=remediation.status,
        remediation_type=remediation.type,
        action_type=remediation.action_type,
        requested_at=remediation.requested_at,
        completed_at=remediation.completed_at,
        requested_by=remediation.requested_by,
        executed_by=remediation.executed_by,
        notes=remediation.notes,
        evidence=remediation.evidence,
        created_at=remediation.created_at,
        updated_at=remediation.updated_at,
    )


def parse_agent_snapshot(
    agent: Mapping[str, object],
    incidents: Iterable[Mapping[str, object]] = (),
    remediations: Iterable[Mapping[str, object]] = (),
) -> AgentSnapshot:
    return AgentSnapshot(
        agent=parse_agent(agent),
        incidents=tuple(parse_incident(item) for item in incidents),
        remediations=tuple(parse_remediation(item) for item in remediations),
    )
