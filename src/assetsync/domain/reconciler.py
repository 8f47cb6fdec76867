"""Idempotent create-or-update of assets keyed by serial number."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from assetsync.config.errors import MissingConfigurationError
from assetsync.domain.errors import (
    AssetSyncError,
    MissingSerialNumberError,
    ReconciliationWriteError,
)
from assetsync.domain.model import (
    ASSIGNEE_TYPE_USER,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
    Asset,
    DeviceKind,
)
from assetsync.domain.outcomes import DeviceOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from assetsync.config.sync import SourceDefaults
    from assetsync.domain.model import DeviceRecord, SourceSystem, User
    from assetsync.domain.ports import AssetRepository, RegistryUnitOfWork, UserRepository
    from assetsync.domain.references import ReferenceResolver, ResolutionScope

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_notes(record: DeviceRecord) -> str:
    """Human-readable summary of where a device came from.

    Advisory only; it is derived from the record alone so identical input yields
    identical notes.
    """

    lines = [
        f"Synced from {record.source_system.label}",
        f"Device Type: {record.device_kind.label}",
    ]
    os_line = " ".join(part for part in (record.os_name, record.os_version) if part)
    if os_line:
        lines.append(f"OS: {os_line}")
    if record.owner_type:
        lines.append(f"Owner Type: {record.owner_type}")
    if record.enrolled_at is not None:
        lines.append(f"Enrolled: {record.enrolled_at.isoformat()}")
    if record.last_seen_at is not None:
        lines.append(f"Last Sync: {record.last_seen_at.isoformat()}")
    if record.capacity:
        lines.append(f"Capacity: {record.capacity}")
    if record.assigned_user_identifier:
        lines.append(f"User: {record.assigned_user_identifier}")
    if record.assigned_username and record.assigned_username != record.assigned_user_identifier:
        lines.append(f"Username: {record.assigned_username}")
    if record.location_name:
        lines.append(f"Location: {record.location_name}")
    return "\n".join(lines)


@dataclass(slots=True)
class AssetReconciler:
    """Reconciles one device record per unit of work.

    Reference resolution, the serial lookup (soft-deleted rows included), the
    upsert and the restore all happen inside a single transaction. Identities
    resolved along the way reach the shared cache only once that transaction has
    committed.
    """

    resolver: ReferenceResolver
    unit_of_work_factory: Callable[[], RegistryUnitOfWork]
    source_defaults: Mapping[SourceSystem, SourceDefaults]
    clock: Callable[[], datetime] = field(default=_utcnow)

    def reconcile(self, record: DeviceRecord) -> DeviceOutcome:
        serial = (record.serial_number or "").strip()
        if not serial:
            raise MissingSerialNumberError(record.display_name, record.source_system)
        defaults = self._defaults_for(record.source_system)

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            scope = self.resolver.scope(repositories)
            values = self._resolve_values(record, serial, defaults, scope, repositories.users)
            try:
                outcome = self._upsert(repositories.assets, record, serial, values)
                uow.commit()
            except AssetSyncError:
                raise
            except Exception as exc:
                raise ReconciliationWriteError(serial, str(exc)) from exc
        scope.publish()

        if outcome.restored:
            log.info("Restored asset %s (serial %s)", record.display_name, serial)
        else:
            log.info("%s asset %s (serial %s)", outcome.status.title(), record.display_name, serial)
        return outcome

    def _defaults_for(self, source: SourceSystem) -> SourceDefaults:
        try:
            return self.source_defaults[source]
        except KeyError:
            raise MissingConfigurationError(
                f"No sync defaults configured for source {source!s}"
            ) from None

    def _resolve_values(
        self,
        record: DeviceRecord,
        serial: str,
        defaults: SourceDefaults,
        scope: ResolutionScope,
        users: UserRepository,
    ) -> dict[str, object]:
        manufacturer_id = scope.manufacturer(
            record.manufacturer_name,
            default_id=defaults.manufacturer_id
            if record.manufacturer_name == UNKNOWN_MANUFACTURER
            else None,
        )
        is_mobile = record.device_kind is DeviceKind.MOBILE
        category_id = scope.device_category(
            record.source_system,
            record.device_kind,
            override_id=defaults.mobile_category_id if is_mobile else defaults.computer_category_id,
            fallback_name=(
                defaults.mobile_category_name if is_mobile else defaults.computer_category_name
            ),
        )
        model_id = scope.model(
            record.model_name,
            manufacturer_id,
            category_id=category_id,
            default_id=defaults.model_id if record.model_name == UNKNOWN_MODEL else None,
        )
        status_id = scope.status(record.source_system, override_id=defaults.status_id)

        values: dict[str, object] = {
            "asset_tag": serial,
            "name": record.display_name,
            "model_id": model_id,
            "status_id": status_id,
            "notes": build_notes(record),
        }

        location_id = scope.location(record.location_name)
        if location_id is None:
            location_id = defaults.location_id
        if location_id is not None:
            values["location_id"] = location_id

        if defaults.auto_assign_users:
            user = _find_assignee(record, users)
            if user is not None and user.id is not None:
                values["assigned_to"] = user.id
                values["assigned_type"] = ASSIGNEE_TYPE_USER

        purchase = record.purchase
        if purchase is not None:
            if purchase.purchased_on is not None:
                values["purchase_date"] = purchase.purchased_on
            if purchase.cost is not None:
                values["purchase_cost"] = purchase.cost
            if purchase.order_number:
                values["order_number"] = purchase.order_number
        return values

    def _upsert(
        self,
        assets: AssetRepository,
        record: DeviceRecord,
        serial: str,
        values: Mapping[str, object],
    ) -> DeviceOutcome:
        now = self.clock()
        existing = assets.get_by_serial(serial, include_deleted=True)
        if existing is None:
            asset = Asset(
                serial=serial,
                asset_tag=serial,
                name=record.display_name,
                created_at=now,
                updated_at=now,
            )
            asset.apply(values)
            assets.add(asset)
            return DeviceOutcome.created(serial, record.display_name, asset.id)

        restored = existing.trashed
        changed = existing.apply(values)
        if restored:
            existing.restore()
        if changed or restored:
            existing.updated_at = now
            assets.save(existing)
        return DeviceOutcome.updated(
            serial,
            record.display_name,
            existing.id,
            restored=restored,
            changed_fields=changed,
        )


def _find_assignee(record: DeviceRecord, users: UserRepository) -> User | None:
    identifier = record.assigned_user_identifier
    if identifier:
        user = users.find_by_email(identifier)
        if user is not None:
            return user
    for candidate in (record.assigned_username, identifier):
        if candidate:
            user = users.find_by_username(candidate)
            if user is not None:
                return user
    return None
