"""Security-agent telemetry snapshots used for enrichment."""

from __future__ import annotations

from dataclasses import dataclass

type TelemetryValue = str | int | float | bool | None


@dataclass(frozen=True, slots=True, kw_only=True)
class AgentRecord:
    agent_id: str | int
    device_name: TelemetryValue = None
    hostname: TelemetryValue = None
    os_name: TelemetryValue = None
    os_version: TelemetryValue = None
    os_architecture: TelemetryValue = None
    ip_addresses: tuple[TelemetryValue, ...] = ()
    mac_addresses: tuple[TelemetryValue, ...] = ()
    last_seen_at: TelemetryValue = None
    is_online: TelemetryValue = None
    is_decommissioned: TelemetryValue = None
    installation_status: TelemetryValue = None


@dataclass(frozen=True, slots=True, kw_only=True)
class IncidentRecord:
    incident_id: TelemetryValue = None
    agent_id: TelemetryValue = None
    incident_type: TelemetryValue = None
    status: TelemetryValue = None
    severity: TelemetryValue = None
    detected_at: TelemetryValue = None
    resolved_at: TelemetryValue = None
    closed_at: TelemetryValue = None
    title: TelemetryValue = None
    summary: TelemetryValue = None
    description: TelemetryValue = None
    detection_method: TelemetryValue = None
    evidence: object = None
    recommendation: TelemetryValue = None
    remediation_steps: object = None
    is_false_positive: TelemetryValue = None
    assigned_to: TelemetryValue = None
    created_at: TelemetryValue = None
    updated_at: TelemetryValue = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RemediationRecord:
    remediation_id: TelemetryValue = None
    agent_id: TelemetryValue = None
    incident_id: TelemetryValue = None
    status: TelemetryValue = None
    remediation_type: TelemetryValue = None
    action_type: TelemetryValue = None
    requested_at: TelemetryValue = None
    completed_at: TelemetryValue = None
    requested_by: TelemetryValue = None
    executed_by: TelemetryValue = None
    notes: TelemetryValue = None
    evidence: object = None
    created_at: TelemetryValue = None
    updated_at: TelemetryValue = None


@dataclass(frozen=True, slots=True)
class AgentSnapshot:
    """An agent with its most recent incidents and remediations, newest first."""

    agent: AgentRecord
    incidents: tuple[IncidentRecord, ...] = ()
    remediations: tuple[RemediationRecord, ...] = ()
