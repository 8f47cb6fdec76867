"""Translate Intune managed-device payloads into device records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from assetsync.domain.model import (
    UNKNOWN_DEVICE,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
    DeviceKind,
    DeviceRecord,
    SourceSystem,
)
from assetsync.domain.normalizer import parse_timestamp

from .schema import ManagedDevicePayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from assetsync.domain.normalizer import RawDevicePayload

_COMPUTER_PLATFORMS = frozenset({"windows", "macos", "linux", "chromeos"})


def device_kind_for(operating_system: str | None) -> DeviceKind:
    if operating_system and operating_system.strip().lower() in _COMPUTER_PLATFORMS:
        return DeviceKind.COMPUTER
    return DeviceKind.MOBILE


def parse_managed_device(
    data: Mapping[str, object],
    *,
    device_kind: DeviceKind | None = None,
) -> DeviceRecord:
    device = ManagedDevicePayload.model_validate(data)
    return DeviceRecord(
        serial_number=device.serial_number or "",
        source_system=SourceSystem.INTUNE,
        display_name=device.device_name or UNKNOWN_DEVICE,
        model_name=device.model or UNKNOWN_MODEL,
        manufacturer_name=device.manufacturer or UNKNOWN_MANUFACTURER,
        device_kind=device_kind or device_kind_for(device.operating_system),
        os_name=device.operating_system or "",
        os_version=device.os_version or "",
        owner_type=device.owner_type or "",
        enrolled_at=parse_timestamp(device.enrolled_date_time),
        last_seen_at=parse_timestamp(device.last_sync_date_time),
        assigned_user_identifier=device.user_principal_name,
    )


def translate_intune_payload(payload: RawDevicePayload) -> DeviceRecord:
    return parse_managed_device(payload.data, device_kind=payload.device_kind)
