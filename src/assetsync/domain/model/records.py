"""Canonical, transient device records produced by the normalizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from assetsync.domain.errors import MissingSerialNumberError
from assetsync.domain.model.enums import DeviceKind, SourceSystem

if TYPE_CHECKING:
    from datetime import date, datetime
    from decimal import Decimal

UNKNOWN_DEVICE: Final[str] = "Unknown Device"
UNKNOWN_MODEL: Final[str] = "Unknown Model"
UNKNOWN_MANUFACTURER: Final[str] = "Unknown"


@dataclass(frozen=True, slots=True)
class PurchaseInfo:
    purchased_on: date | None = None
    cost: Decimal | None = None
    order_number: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.purchased_on is None and self.cost is None and not self.order_number


@dataclass(frozen=True, slots=True, kw_only=True)
class DeviceRecord:
    """One device as reported by a management source, in canonical shape.

    Built fresh for every sync and never persisted as-is. The serial number is the
    only hard requirement; every other field degrades to a placeholder.
    """

    serial_number: str
    source_system: SourceSystem
    display_name: str = UNKNOWN_DEVICE
    model_name: str = UNKNOWN_MODEL
    manufacturer_name: str = UNKNOWN_MANUFACTURER
    device_kind: DeviceKind = DeviceKind.COMPUTER
    os_name: str = ""
    os_version: str = ""
    owner_type: str = ""
    enrolled_at: datetime | None = None
    last_seen_at: datetime | None = None
    assigned_user_identifier: str | None = None
    assigned_username: str | None = None
    location_name: str | None = None
    capacity: str | None = None
    purchase: PurchaseInfo | None = None

    def __post_init__(self) -> None:
        if not self.serial_number or not self.serial_number.strip():
            raise MissingSerialNumberError(self.display_name, self.source_system)
