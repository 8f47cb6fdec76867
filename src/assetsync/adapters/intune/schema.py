"""Pydantic models describing Microsoft Graph managed-device payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _text_or_none(value: object) -> object:
    if isinstance(value, bool | int | float):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class IntuneBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ManagedDevicePayload(IntuneBaseModel):
    serial_number: str | None = Field(default=None, alias="serialNumber")
    device_name: str | None = Field(default=None, alias="deviceName")
    model: str | None = None
    manufacturer: str | None = None
    operating_system: str | None = Field(default=None, alias="operatingSystem")
    os_version: str | None = Field(default=None, alias="osVersion")
    owner_type: str | None = Field(default=None, alias="managedDeviceOwnerType")
    enrolled_date_time: str | None = Field(default=None, alias="enrolledDateTime")
    last_sync_date_time: str | None = Field(default=None, alias="lastSyncDateTime")
    user_principal_name: str | None = Field(default=None, alias="userPrincipalName")

    _normalize_text = field_validator(
        "serial_number",
        "device_name",
        "model",
        "manufacturer",
        "operating_system",
        "os_version",
        "owner_type",
        "enrolled_date_time",
        "last_sync_date_time",
        "user_principal_name",
        mode="before",
    )(_text_or_none)
