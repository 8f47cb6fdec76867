"""Error taxonomy for reconciliation and enrichment runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assetsync.domain.model.enums import ReferenceKind, SourceSystem


class AssetSyncError(RuntimeError):
    """Base class for errors raised by the sync engine."""


class SkipCondition(AssetSyncError):
    """A device that is deliberately not reconciled. Counted, never retried."""


class MissingSerialNumberError(SkipCondition):
    def __init__(self, device_name: str | None, source: SourceSystem | None = None) -> None:
        self.device_name = device_name or "<unnamed>"
        self.source = source
        origin = f" from {source.label}" if source is not None else ""
        super().__init__(f"Device {self.device_name!r}{origin} has no serial number")


class UnsupportedSourceError(AssetSyncError):
    """The payload's source has no device translator."""


class ReferenceResolutionError(AssetSyncError):
    """The backing store failed while finding or creating a reference entity."""

    def __init__(self, kind: ReferenceKind, natural_key: str, message: str) -> None:
        self.kind = kind
        self.natural_key = natural_key
        super().__init__(f"Could not resolve {kind} {natural_key!r}: {message}")


class ReconciliationWriteError(AssetSyncError):
    """Writing or restoring an asset failed after its references were resolved."""

    def __init__(self, serial: str, message: str) -> None:
        self.serial = serial
        super().__init__(f"Could not write asset {serial!r}: {message}")


class ConcurrentWriteConflict(AssetSyncError):
    """A uniqueness constraint rejected a creation another worker won."""


class DuplicateReferenceError(ConcurrentWriteConflict):
    def __init__(self, kind: ReferenceKind, natural_key: str) -> None:
        self.kind = kind
        self.natural_key = natural_key
        super().__init__(f"{kind} {natural_key!r} was created concurrently")


class DuplicateSerialError(ConcurrentWriteConflict):
    def __init__(self, serial: str) -> None:
        self.serial = serial
        super().__init__(f"Asset with serial {serial!r} was created concurrently")


class EnrichmentSourceError(AssetSyncError):
    """The secondary source could not be reached or answered unexpectedly."""


class MalformedAgentPayloadError(EnrichmentSourceError):
    """The secondary source returned an agent record that cannot be used."""


class ChunkFatalError(AssetSyncError):
    """A systemic failure that must abort the chunk so it can be retried whole."""


class RegistryUnavailableError(ChunkFatalError):
    """The registry's backing store cannot be reached at all."""


class ChunkRetriesExhaustedError(ChunkFatalError):
    def __init__(self, sequence: int, attempts: int) -> None:
        self.sequence = sequence
        self.attempts = attempts
        super().__init__(f"Chunk #{sequence} failed after {attempts} attempt(s)")
