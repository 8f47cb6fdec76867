"""Pydantic models describing JAMF Pro classic API inventory records."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

JamfDeviceType = Literal["computer", "mobile_device"]


def _text_or_none(value: object) -> object:
    if isinstance(value, bool | int | float):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _section(value: object) -> object:
    # the classic API serialises empty sections as [] or null
    return value if value else {}


class JamfBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GeneralSection(JamfBaseModel):
    serial_number: str | None = None
    name: str | None = None
    display_name: str | None = None
    model: str | None = None
    model_identifier: str | None = None
    os_version: str | None = None
    platform: str | None = None
    capacity: str | None = None

    _normalize_text = field_validator(
        "serial_number",
        "name",
        "display_name",
        "model",
        "model_identifier",
        "os_version",
        "platform",
        "capacity",
        mode="before",
    )(_text_or_none)


class HardwareSection(JamfBaseModel):
    model: str | None = None
    model_identifier: str | None = None
    os_version: str | None = None

    _normalize_text = field_validator(
        "model", "model_identifier", "os_version", mode="before"
    )(_text_or_none)


class LocationSection(JamfBaseModel):
    username: str | None = None
    real_name: str | None = None
    email_address: str | None = None
    building: str | None = None
    department: str | None = None

    _normalize_text = field_validator(
        "username", "real_name", "email_address", "building", "department", mode="before"
    )(_text_or_none)


class PurchasingSection(JamfBaseModel):
    po_number: str | None = None
    po_date: str | None = None
    purchase_date: str | None = None
    purchase_price: str | None = None

    _normalize_text = field_validator(
        "po_number", "po_date", "purchase_date", "purchase_price", mode="before"
    )(_text_or_none)


class JamfDevicePayload(JamfBaseModel):
    general: GeneralSection = Field(default_factory=GeneralSection)
    hardware: HardwareSection = Field(default_factory=HardwareSection)
    location: LocationSection = Field(default_factory=LocationSection)
    purchasing: PurchasingSection = Field(default_factory=PurchasingSection)
    device_type: JamfDeviceType | None = Field(default=None, alias="_device_type")

    _normalize_sections = field_validator(
        "general", "hardware", "location", "purchasing", mode="before"
    )(_section)
