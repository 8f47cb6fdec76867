"""Domain model for the asset registry and the device records feeding it."""

from __future__ import annotations

from .enums import DeviceKind, ReferenceKind, SourceSystem
from .records import (
    UNKNOWN_DEVICE,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
    DeviceRecord,
    PurchaseInfo,
)
from .registry import (
    ASSIGNEE_TYPE_USER,
    Asset,
    AssetModel,
    Category,
    CustomField,
    CustomValue,
    Location,
    Manufacturer,
    ReferenceEntity,
    StatusLabel,
    User,
)
from .telemetry import (
    AgentRecord,
    AgentSnapshot,
    IncidentRecord,
    RemediationRecord,
    TelemetryValue,
)

__all__ = [
    "ASSIGNEE_TYPE_USER",
    "UNKNOWN_DEVICE",
    "UNKNOWN_MANUFACTURER",
    "UNKNOWN_MODEL",
    "AgentRecord",
    "AgentSnapshot",
    "Asset",
    "AssetModel",
    "Category",
    "CustomField",
    "CustomValue",
    "DeviceKind",
    "DeviceRecord",
    "IncidentRecord",
    "Location",
    "Manufacturer",
    "PurchaseInfo",
    "ReferenceEntity",
    "ReferenceKind",
    "RemediationRecord",
    "SourceSystem",
    "StatusLabel",
    "TelemetryValue",
    "User",
]
