"""JAMF Pro (classic API) adapter."""

from __future__ import annotations

from .schema import JamfDevicePayload
from .translator import APPLE, parse_jamf_device, translate_jamf_payload

__all__ = ["APPLE", "JamfDevicePayload", "parse_jamf_device", "translate_jamf_payload"]
