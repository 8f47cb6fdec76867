"""Result types reported by reconciliation, enrichment and batch runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class SyncStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


class EnrichmentStatus(StrEnum):
    UPDATED = "updated"
    CLEARED = "cleared"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class DeviceOutcome:
    """What happened to one device: created, updated, skipped or error."""

    status: SyncStatus
    serial: str | None
    device_name: str | None = None
    asset_id: int | None = None
    restored: bool = False
    changed_fields: tuple[str, ...] = ()
    reason: str | None = None

    @classmethod
    def created(cls, serial: str, device_name: str, asset_id: int | None) -> DeviceOutcome:
        return cls(SyncStatus.CREATED, serial, device_name, asset_id)

    @classmethod
    def updated(
        cls,
        serial: str,
        device_name: str,
        asset_id: int | None,
        *,
        restored: bool = False,
        changed_fields: tuple[str, ...] = (),
    ) -> DeviceOutcome:
        return cls(
            SyncStatus.UPDATED,
            serial,
            device_name,
            asset_id,
            restored=restored,
            changed_fields=changed_fields,
        )

    @classmethod
    def skipped(cls, device_name: str | None, reason: str) -> DeviceOutcome:
        return cls(SyncStatus.SKIPPED, None, device_name, reason=reason)

    @classmethod
    def error(cls, serial: str | None, device_name: str | None, reason: str) -> DeviceOutcome:
        return cls(SyncStatus.ERROR, serial, device_name, reason=reason)

    @property
    def synced(self) -> bool:
        return self.status in (SyncStatus.CREATED, SyncStatus.UPDATED)


@dataclass(slots=True)
class ChunkSummary:
    """Counters for one chunk.

    ``errors`` is the operator-facing total and includes devices skipped for a
    missing serial; ``skipped`` and ``failed`` keep the two apart.
    """

    sequence: int
    processed: int = 0
    created: int = 0
    updated: int = 0
    restored: int = 0
    skipped: int = 0
    failed: int = 0
    enriched: int = 0
    cleared: int = 0
    failures: list[DeviceOutcome] = field(default_factory=list)

    @property
    def synced(self) -> int:
        return self.created + self.updated

    @property
    def errors(self) -> int:
        return self.skipped + self.failed

    def record(self, outcome: DeviceOutcome) -> None:
        self.processed += 1
        match outcome.status:
            case SyncStatus.CREATED:
                self.created += 1
            case SyncStatus.UPDATED:
                self.updated += 1
                if outcome.restored:
                    self.restored += 1
            case SyncStatus.SKIPPED:
                self.skipped += 1
                self.failures.append(outcome)
            case SyncStatus.ERROR:
                self.failed += 1
                self.failures.append(outcome)

    def record_enrichment(self, status: EnrichmentStatus) -> None:
        if status is EnrichmentStatus.UPDATED:
            self.enriched += 1
        elif status is EnrichmentStatus.CLEARED:
            self.cleared += 1

    def describe(self) -> str:
        return (
            f"Batch #{self.sequence} completed: {self.synced} synced "
            f"({self.created} created, {self.updated} updated), {self.errors} errors"
        )


@dataclass(slots=True)
class RunSummary:
    chunks: list[ChunkSummary] = field(default_factory=list)

    @classmethod
    def from_chunks(cls, chunks: Iterable[ChunkSummary]) -> RunSummary:
        return cls(chunks=sorted(chunks, key=lambda chunk: chunk.sequence))

    @property
    def processed(self) -> int:
        return sum(chunk.processed for chunk in self.chunks)

    @property
    def created(self) -> int:
        return sum(chunk.created for chunk in self.chunks)

    @property
    def updated(self) -> int:
        return sum(chunk.updated for chunk in self.chunks)

    @property
    def restored(self) -> int:
        return sum(chunk.restored for chunk in self.chunks)

    @property
    def skipped(self) -> int:
        return sum(chunk.skipped for chunk in self.chunks)

    @property
    def failed(self) -> int:
        return sum(chunk.failed for chunk in self.chunks)

    @property
    def synced(self) -> int:
        return self.created + self.updated

    @property
    def errors(self) -> int:
        return self.skipped + self.failed

    @property
    def enriched(self) -> int:
        return sum(chunk.enriched for chunk in self.chunks)

    @property
    def cleared(self) -> int:
        return sum(chunk.cleared for chunk in self.chunks)

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "synced": self.synced,
            "created": self.created,
            "updated": self.updated,
            "errors": self.errors,
            "cleared": self.cleared,
        }


@dataclass(slots=True)
class EnrichmentRunSummary:
    processed: int = 0
    updated: int = 0
    cleared: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, status: EnrichmentStatus) -> None:
        self.processed += 1
        match status:
            case EnrichmentStatus.UPDATED:
                self.updated += 1
            case EnrichmentStatus.CLEARED:
                self.cleared += 1
            case EnrichmentStatus.SKIPPED:
                self.skipped += 1

    def record_failure(self) -> None:
        self.processed += 1
        self.failed += 1

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "cleared": self.cleared,
            "skipped": self.skipped,
            "failed": self.failed,
        }
