"""Translate JAMF Pro computer and mobile-device records into device records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from assetsync.domain.model import (
    UNKNOWN_MODEL,
    DeviceKind,
    DeviceRecord,
    PurchaseInfo,
    SourceSystem,
)
from assetsync.domain.normalizer import parse_purchase_cost, parse_purchase_date

from .schema import JamfDevicePayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from assetsync.domain.normalizer import RawDevicePayload

APPLE: Final[str] = "Apple"
UNKNOWN_COMPUTER: Final[str] = "Unknown Computer"
UNKNOWN_MOBILE_DEVICE: Final[str] = "Unknown Mobile Device"


def parse_jamf_device(
    data: Mapping[str, object],
    *,
    device_kind: DeviceKind | None = None,
) -> DeviceRecord:
    """Build a record from a JAMF inventory record.

    ``device_kind`` comes from the endpoint the record was read from; when it is
    not given the ``_device_type`` marker in the payload decides.
    """

    device = JamfDevicePayload.model_validate(data)
    kind = device_kind or (
        DeviceKind.MOBILE if device.device_type == "mobile_device" else DeviceKind.COMPUTER
    )
    general = device.general
    serial = general.serial_number or ""

    if kind is DeviceKind.MOBILE:
        name = general.name or general.display_name or UNKNOWN_MOBILE_DEVICE
        model = general.model or general.model_identifier or UNKNOWN_MODEL
        os_version = general.os_version or ""
        capacity = general.capacity
    else:
        name = general.name or UNKNOWN_COMPUTER
        model = device.hardware.model or device.hardware.model_identifier or UNKNOWN_MODEL
        os_version = device.hardware.os_version or general.platform or ""
        capacity = None

    location = device.location
    purchasing = device.purchasing
    purchase = PurchaseInfo(
        purchased_on=parse_purchase_date(
            purchasing.po_date or purchasing.purchase_date, serial=serial
        ),
        cost=parse_purchase_cost(purchasing.purchase_price, serial=serial),
        order_number=purchasing.po_number,
    )

    return DeviceRecord(
        serial_number=serial,
        source_system=SourceSystem.JAMF,
        display_name=name,
        model_name=model,
        manufacturer_name=APPLE,
        device_kind=kind,
        os_version=os_version,
        assigned_user_identifier=location.email_address or location.username,
        assigned_username=location.username,
        location_name=location.building,
        capacity=capacity,
        purchase=None if purchase.is_empty else purchase,
    )


def translate_jamf_payload(payload: RawDevicePayload) -> DeviceRecord:
    return parse_jamf_device(payload.data, device_kind=payload.device_kind)
