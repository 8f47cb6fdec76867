"""Microsoft Intune (Graph managed devices) adapter."""

from __future__ import annotations

from .schema import ManagedDevicePayload
from .translator import device_kind_for, parse_managed_device, translate_intune_payload

__all__ = [
    "ManagedDevicePayload",
    "device_kind_for",
    "parse_managed_device",
    "translate_intune_payload",
]
