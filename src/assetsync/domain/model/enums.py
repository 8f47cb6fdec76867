"""Domain enumerations."""

from __future__ import annotations

from enum import StrEnum


class SourceSystem(StrEnum):
    INTUNE = "intune"
    JAMF = "jamf"
    HUNTRESS = "huntress"

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]


_SOURCE_LABELS: dict[SourceSystem, str] = {
    SourceSystem.INTUNE: "Microsoft Intune",
    SourceSystem.JAMF: "JAMF Pro",
    SourceSystem.HUNTRESS: "Huntress",
}


class DeviceKind(StrEnum):
    COMPUTER = "computer"
    MOBILE = "mobile"

    @property
    def label(self) -> str:
        return "Mobile Device" if self is DeviceKind.MOBILE else "Computer"


class ReferenceKind(StrEnum):
    MANUFACTURER = "manufacturer"
    MODEL = "model"
    CATEGORY = "category"
    STATUS = "status"
    LOCATION = "location"
