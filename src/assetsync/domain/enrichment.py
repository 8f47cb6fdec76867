"""Overlay security-agent telemetry onto reconciled assets.

Enrichment owns a fixed set of custom-data slots. Every pass computes the full
target map, with every slot defaulting to null, so an asset whose serial is no
longer reported by the agent source has all of its slots cleared. The map is
diffed against what the asset already holds and written only when something
differs.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from assetsync.domain.errors import ChunkFatalError, EnrichmentSourceError
from assetsync.domain.model import IncidentRecord, RemediationRecord
from assetsync.domain.outcomes import EnrichmentRunSummary, EnrichmentStatus

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from assetsync.domain.model import AgentSnapshot, Asset, CustomValue
    from assetsync.domain.ports import AgentSource, RegistryUnitOfWork

log = getLogger(__name__)

DEFAULT_RECORD_LIMIT: Final[int] = 3
DEFAULT_COLUMN_PREFIX: Final[str] = "_snipeit_"

AGENT_SLOTS: Final[tuple[str, ...]] = (
    "huntress_agent_id",
    "huntress_device_name",
    "huntress_hostname",
    "huntress_os_name",
    "huntress_os_version",
    "huntress_os_architecture",
    "huntress_ip_addresses",
    "huntress_mac_addresses",
    "huntress_last_seen_at",
    "huntress_is_online",
    "huntress_is_decommissioned",
    "huntress_installation_status",
)

INCIDENT_SLOTS: Final[Mapping[str, Callable[[IncidentRecord], object]]] = {
    "huntress_incident_id": lambda incident: incident.incident_id,
    "huntress_incident_agent_id": lambda incident: incident.agent_id,
    "huntress_incident_type": lambda incident: incident.incident_type,
    "huntress_incident_status": lambda incident: incident.status,
    "huntress_incident_severity": lambda incident: incident.severity,
    "huntress_incident_detected_at": lambda incident: incident.detected_at,
    "huntress_incident_resolved_at": lambda incident: incident.resolved_at,
    "huntress_incident_closed_at": lambda incident: incident.closed_at,
    "huntress_incident_title": lambda incident: incident.title,
    "huntress_incident_summary": lambda incident: incident.summary,
    "huntress_incident_description": lambda incident: incident.description,
    "huntress_incident_detection_method": lambda incident: incident.detection_method,
    "huntress_incident_evidence": lambda incident: incident.evidence,
    "huntress_incident_recommendation": lambda incident: incident.recommendation,
    "huntress_incident_remediation_steps": lambda incident: incident.remediation_steps,
    "huntress_incident_is_false_positive": lambda incident: format_boolean(
        incident.is_false_positive
    ),
    "huntress_incident_assigned_to": lambda incident: incident.assigned_to,
    "huntress_incident_created_at": lambda incident: incident.created_at,
    "huntress_incident_updated_at": lambda incident: incident.updated_at,
}

REMEDIATION_SLOTS: Final[Mapping[str, Callable[[RemediationRecord], object]]] = {
    "huntress_remediation_id": lambda remediation: remediation.remediation_id,
    "huntress_remediation_agent_id": lambda remediation: remediation.agent_id,
    "huntress_remediation_incident_id": lambda remediation: remediation.incident_id,
    "huntress_remediation_status": lambda remediation: remediation.status,
    "huntress_remediation_type": lambda remediation: (
        remediation.remediation_type
        if remediation.remediation_type is not None
        else remediation.action_type
    ),
    "huntress_remediation_action_type": lambda remediation: remediation.action_type,
    "huntress_remediation_requested_at": lambda remediation: remediation.requested_at,
    "huntress_remediation_completed_at": lambda remediation: remediation.completed_at,
    "huntress_remediation_requested_by": lambda remediation: remediation.requested_by,
    "huntress_remediation_executed_by": lambda remediation: remediation.executed_by,
    "huntress_remediation_notes": lambda remediation: remediation.notes,
    "huntress_remediation_evidence": lambda remediation: remediation.evidence,
    "huntress_remediation_created_at": lambda remediation: remediation.created_at,
    "huntress_remediation_updated_at": lambda remediation: remediation.updated_at,
}

ENRICHMENT_SLOTS: Final[tuple[str, ...]] = (
    *AGENT_SLOTS,
    *INCIDENT_SLOTS,
    *REMEDIATION_SLOTS,
)


def encode_value(value: object) -> str | None:
    """Encode one value for a custom-data column.

    Booleans become ``"1"``/``"0"``, scalars are stringified, containers are
    JSON-encoded and empty containers collapse to ``None``.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str | int | float):
        return str(value)
    if isinstance(value, Mapping | list | tuple):
        if not value:
            return None
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def format_boolean(value: object) -> str | None:
    if value is None:
        return None
    if value is True or value == 1 or value == "1":
        return "1"
    if value is False or value == 0 or value == "0":
        return "0"
    return str(value)


def format_simple_list(values: Iterable[object]) -> str | None:
    encoded = [encode_value(value) for value in values if value is not None and value != ""]
    lines = [line for line in encoded if line]
    return "\n".join(lines) if lines else None


def format_enumerated_list[T](items: Sequence[T], extract: Callable[[T], object]) -> str | None:
    """Render ``"i) value"`` lines, numbered by position; blank values are skipped."""

    lines: list[str] = []
    for index, item in enumerate(items, start=1):
        value = extract(item)
        if value is None or value == "":
            continue
        encoded = encode_value(value)
        if encoded is None or encoded == "":
            continue
        lines.append(f"{index}) {encoded}")
    return "\n".join(lines) if lines else None


def build_field_map(
    snapshot: AgentSnapshot | None,
    *,
    incident_limit: int = DEFAULT_RECORD_LIMIT,
    remediation_limit: int = DEFAULT_RECORD_LIMIT,
) -> dict[str, str | None]:
    """Every enrichment slot, keyed by slug, populated from ``snapshot`` when given."""

    fields: dict[str, str | None] = dict.fromkeys(ENRICHMENT_SLOTS)
    if snapshot is None:
        return fields

    agent = snapshot.agent
    fields.update(
        {
            "huntress_agent_id": encode_value(agent.agent_id),
            "huntress_device_name": encode_value(agent.device_name),
            "huntress_hostname": encode_value(agent.hostname),
            "huntress_os_name": encode_value(agent.os_name),
            "huntress_os_version": encode_value(agent.os_version),
            "huntress_os_architecture": encode_value(agent.os_architecture),
            "huntress_ip_addresses": format_simple_list(agent.ip_addresses),
            "huntress_mac_addresses": format_simple_list(agent.mac_addresses),
            "huntress_last_seen_at": encode_value(agent.last_seen_at),
            "huntress_is_online": format_boolean(agent.is_online),
            "huntress_is_decommissioned": format_boolean(agent.is_decommissioned),
            "huntress_installation_status": encode_value(agent.installation_status),
        }
    )

    incidents = snapshot.incidents[: max(0, incident_limit)]
    for slug, extract in INCIDENT_SLOTS.items():
        fields[slug] = format_enumerated_list(incidents, extract)

    remediations = snapshot.remediations[: max(0, remediation_limit)]
    for slug, extract in REMEDIATION_SLOTS.items():
        fields[slug] = format_enumerated_list(remediations, extract)

    return fields


@dataclass(frozen=True, slots=True)
class EnrichmentMerger:
    column_prefix: str = DEFAULT_COLUMN_PREFIX
    incident_limit: int = DEFAULT_RECORD_LIMIT
    remediation_limit: int = DEFAULT_RECORD_LIMIT

    def column(self, slug: str) -> str:
        return f"{self.column_prefix}{slug}"

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(self.column(slug) for slug in ENRICHMENT_SLOTS)

    def target_fields(self, snapshot: AgentSnapshot | None) -> dict[str, str | None]:
        field_map = build_field_map(
            snapshot,
            incident_limit=self.incident_limit,
            remediation_limit=self.remediation_limit,
        )
        return {self.column(slug): value for slug, value in field_map.items()}

    def merge(
        self,
        asset: Asset,
        snapshot: AgentSnapshot | None,
        *,
        provisioned: Collection[str],
    ) -> EnrichmentStatus:
        """Apply the target fields to ``asset`` in memory.

        Returns ``SKIPPED`` when nothing differs, in which case the asset is left
        untouched and must not be written.
        """

        changes: dict[str, CustomValue] = {}
        for column, value in self.target_fields(snapshot).items():
            if column not in provisioned:
                log.debug("Custom field column %s is not provisioned, skipping", column)
                continue
            if asset.custom_value(column) != value:
                changes[column] = value

        if not changes:
            return EnrichmentStatus.SKIPPED
        asset.set_custom_values(changes)
        return EnrichmentStatus.UPDATED if snapshot is not None else EnrichmentStatus.CLEARED


@dataclass(slots=True)
class AssetEnricher:
    """Runs the merger against the registry, one unit of work per asset."""

    merger: EnrichmentMerger
    source: AgentSource
    unit_of_work_factory: Callable[[], RegistryUnitOfWork]

    def enrich(self, asset_id: int) -> EnrichmentStatus:
        """Fetch and merge telemetry for one asset.

        The agent lookup runs outside any unit of work; the asset is reloaded
        before the merge.
        """

        with self.unit_of_work_factory() as uow:
            asset = uow.repositories.assets.get(asset_id)
            if asset is None or asset.trashed or not asset.serial.strip():
                return EnrichmentStatus.SKIPPED
            serial = asset.serial.strip()

        try:
            snapshot = self.source.find_agent(
                serial,
                incident_limit=self.merger.incident_limit,
                remediation_limit=self.merger.remediation_limit,
            )
        except EnrichmentSourceError as exc:
            log.warning("Skipping enrichment of asset %s (serial %s): %s", asset_id, serial, exc)
            return EnrichmentStatus.SKIPPED

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            asset = repositories.assets.get(asset_id)
            if asset is None or asset.trashed or asset.serial.strip() != serial:
                log.info("Asset %s changed during enrichment, skipping", asset_id)
                return EnrichmentStatus.SKIPPED
            status = self.merger.merge(
                asset,
                snapshot,
                provisioned=repositories.custom_fields.provisioned_columns(),
            )
            if status is not EnrichmentStatus.SKIPPED:
                repositories.assets.save(asset)
                uow.commit()

        if status is not EnrichmentStatus.SKIPPED:
            log.info("Enrichment %s for asset %s (serial %s)", status, asset_id, serial)
        return status

    def run(self, *, chunk_size: int = 100) -> EnrichmentRunSummary:
        """Enrich every non-deleted asset with a serial, walking ids in pages."""

        summary = EnrichmentRunSummary()
        after_id: int | None = None
        while True:
            with self.unit_of_work_factory() as uow:
                asset_ids = uow.repositories.assets.ids_with_serial(
                    after_id=after_id, limit=max(1, chunk_size)
                )
            if not asset_ids:
                break
            for asset_id in asset_ids:
                try:
                    status = self.enrich(asset_id)
                except ChunkFatalError:
                    raise
                except Exception:  # noqa: BLE001
                    log.exception("Enrichment of asset %s failed", asset_id)
                    summary.record_failure()
                    continue
                summary.record(status)
            after_id = asset_ids[-1]

        log.info("Enrichment run finished: %s", summary.as_dict())
        return summary
