"""Pydantic models describing Huntress REST API payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _as_list(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


def _person(value: object) -> object:
    """People are reported as ``{"id": ..., "name": ...}``; keep the name, else the id."""

    if isinstance(value, Mapping):
        person = cast(Mapping[str, object], value)
        name = person.get("name")
        return name if name not in (None, "") else person.get("id")
    return value


class HuntressBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AgentOsPayload(HuntressBaseModel):
    name: str | int | float | bool | None = None
    version: str | int | float | bool | None = None
    architecture: str | int | float | bool | None = None


class AgentPayload(HuntressBaseModel):
    id: str | int | None = None
    device_name: str | int | float | bool | None = None
    hostname: str | int | float | bool | None = None
    os: AgentOsPayload = Field(default_factory=AgentOsPayload)
    ip_addresses: list[str | int | float | bool | None] = Field(default_factory=list)
    mac_addresses: list[str | int | float | bool | None] = Field(default_factory=list)
    last_seen_at: str | int | float | bool | None = None
    is_online: str | int | float | bool | None = None
    is_decommissioned: str | int | float | bool | None = None
    installation_status: str | int | float | bool | None = None

    _normalize_id = field_validator("id", mode="before")(_blank_to_none)
    _normalize_lists = field_validator("ip_addresses", "mac_addresses", mode="before")(_as_list)

    @field_validator("os", mode="before")
    @classmethod
    def _normalize_os(cls, value: object) -> object:
        return value if isinstance(value, Mapping) else {}


class IncidentPayload(HuntressBaseModel):
    id: str | int | float | bool | None = None
    agent_id: str | int | float | bool | None = None
    type: str | int | float | bool | None = None
    status: str | int | float | bool | None = None
    severity: str | int | float | bool | None = None
    detected_at: str | int | float | bool | None = None
    resolved_at: str | int | float | bool | None = None
    closed_at: str | int | float | bool | None = None
    title: str | int | float | bool | None = None
    summary: str | int | float | bool | None = None
    description: str | int | float | bool | None = None
    detection_method: str | int | float | bool | None = None
    evidence: Any = None
    recommendation: str | int | float | bool | None = None
    remediation_steps: Any = None
    is_false_positive: str | int | float | bool | None = None
    assigned_to: str | int | float | bool | None = None
    created_at: str | int | float | bool | None = None
    updated_at: str | int | float | bool | None = None

    _normalize_people = field_validator("assigned_to", mode="before")(_person)


class RemediationPayload(HuntressBaseModel):
    id: str | int | float | bool | None = None
    agent_id: str | int | float | bool | None = None
    incident_id: str | int | float | bool | None = None
    status: str | int | float | bool | None = None
    type: str | int | float | bool | None = None
    action_type: str | int | float | bool | None = None
    requested_at: str | int | float | bool | None = None
    completed_at: str | int | float | bool | None = None
    requested_by: str | int | float | bool | None = None
    executed_by: str | int | float | bool | None = None
    notes: str | int | float | bool | None = None
    evidence: Any = None
    created_at: str | int | float | bool | None = None
    updated_at: str | int | float | bool | None = None

    _normalize_people = field_validator("requested_by", "executed_by", mode="before")(_person)
