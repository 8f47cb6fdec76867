"""Boundary that turns raw vendor payloads into canonical device records.

Every source gets a translator; the normalizer is the only place that knows
payloads come in different shapes. Helpers for the loosely formatted fields
vendors report (free-form dates, currency strings, ISO timestamps) live here so
translators share one interpretation of them.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING

from dateutil import parser as dateutil_parser

from assetsync.domain.errors import UnsupportedSourceError
from assetsync.domain.model import DeviceKind, DeviceRecord, SourceSystem

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

CENTS = Decimal("0.01")
_COST_NOISE = re.compile(r"[^\d.\-]")


@dataclass(frozen=True, slots=True)
class RawDevicePayload:
    """A vendor payload tagged with its origin.

    ``device_kind`` is the caller's discriminator for sources that report
    computers and mobile devices through different endpoints.
    """

    source: SourceSystem
    data: Mapping[str, object] = field(default_factory=dict)
    device_kind: DeviceKind | None = None


type DeviceTranslator = Callable[[RawDevicePayload], DeviceRecord]


class Normalizer:
    def __init__(self, translators: Mapping[SourceSystem, DeviceTranslator]) -> None:
        self._translators = dict(translators)

    def supports(self, source: SourceSystem) -> bool:
        return source in self._translators

    def normalize(self, payload: RawDevicePayload) -> DeviceRecord:
        """Translate one payload.

        Raises ``MissingSerialNumberError`` for devices without a serial and
        ``UnsupportedSourceError`` for sources that do not describe devices.
        """

        translator = self._translators.get(payload.source)
        if translator is None:
            raise UnsupportedSourceError(
                f"No device translator registered for source {payload.source!s}"
            )
        return translator(payload)


def wrap_payloads(
    source: SourceSystem,
    payloads: Iterable[Mapping[str, object]],
    *,
    device_kind: DeviceKind | None = None,
) -> list[RawDevicePayload]:
    return [RawDevicePayload(source, payload, device_kind) for payload in payloads]


def clean_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_timestamp(value: object) -> datetime | None:
    text = clean_text(value)
    if text is None:
        return None
    try:
        parsed = dateutil_parser.isoparse(text)
    except (ValueError, OverflowError):
        log.warning("Ignoring unparsable timestamp %r", text)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def parse_purchase_date(value: object, *, serial: str | None = None) -> date | None:
    text = clean_text(value)
    if text is None:
        return None
    try:
        return dateutil_parser.parse(text).date()
    except (ValueError, OverflowError):
        log.warning("Dropping unparsable purchase date %r for serial %s", text, serial)
        return None


def parse_purchase_cost(value: object, *, serial: str | None = None) -> Decimal | None:
    """Coerce a cost such as ``"$1,299.00"`` into a decimal rounded to whole cents."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float | Decimal):
        cleaned = str(value)
    else:
        cleaned = _COST_NOISE.sub("", str(value))
        if not cleaned:
            return None
    try:
        cost = Decimal(cleaned).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        cost = None
    if cost is None or not cost.is_finite():
        log.warning("Dropping unparsable purchase cost %r for serial %s", value, serial)
        return None
    return cost
