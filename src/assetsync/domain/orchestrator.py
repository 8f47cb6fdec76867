"""Chunked fan-out of device payloads through normalization and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from assetsync.domain.errors import (
    ChunkFatalError,
    ConcurrentWriteConflict,
    MissingSerialNumberError,
)
from assetsync.domain.outcomes import ChunkSummary, DeviceOutcome, EnrichmentStatus, RunSummary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from assetsync.domain.enrichment import AssetEnricher
    from assetsync.domain.model import DeviceRecord
    from assetsync.domain.normalizer import Normalizer, RawDevicePayload
    from assetsync.domain.ports import ChunkDispatcher, ChunkHandler
    from assetsync.domain.reconciler import AssetReconciler
    from assetsync.domain.references import ReferenceResolver

log = getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50


@dataclass(frozen=True, slots=True)
class DeviceChunk:
    """A bounded slice of a run's devices, numbered from 1."""

    sequence: int
    devices: tuple[RawDevicePayload, ...]

    def __len__(self) -> int:
        return len(self.devices)


def partition_devices(
    devices: Sequence[RawDevicePayload],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[DeviceChunk]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [
        DeviceChunk(sequence=number, devices=tuple(devices[start : start + chunk_size]))
        for number, start in enumerate(range(0, len(devices), chunk_size), start=1)
    ]


@dataclass(slots=True)
class ChunkProcessor:
    """Processes the devices of one chunk strictly in order.

    A failing device is logged, counted and passed over. Only ``ChunkFatalError``
    escapes, so the dispatcher can retry the whole chunk.
    """

    normalizer: Normalizer
    reconciler: AssetReconciler
    enricher: AssetEnricher | None = None
    conflict_retries: int = 1

    def __call__(self, chunk: DeviceChunk) -> ChunkSummary:
        summary = ChunkSummary(sequence=chunk.sequence)
        log.info("Processing batch #%s with %s device(s)", chunk.sequence, len(chunk))
        for payload in chunk.devices:
            outcome = self._process(payload)
            summary.record(outcome)
            if self.enricher is not None and outcome.synced and outcome.asset_id is not None:
                status = self._enrich(outcome)
                if status is not None:
                    summary.record_enrichment(status)
        log.info(summary.describe())
        return summary

    def _process(self, payload: RawDevicePayload) -> DeviceOutcome:
        try:
            record = self.normalizer.normalize(payload)
        except MissingSerialNumberError as exc:
            log.warning("%s, skipping", exc)
            return DeviceOutcome.skipped(exc.device_name, str(exc))
        except ChunkFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            log.exception("Could not normalize %s payload", payload.source)
            return DeviceOutcome.error(None, None, str(exc))

        try:
            return self._reconcile(record)
        except MissingSerialNumberError as exc:
            log.warning("%s, skipping", exc)
            return DeviceOutcome.skipped(exc.device_name, str(exc))
        except ChunkFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            log.exception(
                "Failed to sync device %s (serial %s)", record.display_name, record.serial_number
            )
            return DeviceOutcome.error(record.serial_number, record.display_name, str(exc))

    def _reconcile(self, record: DeviceRecord) -> DeviceOutcome:
        attempt = 0
        while True:
            try:
                return self.reconciler.reconcile(record)
            except ConcurrentWriteConflict as exc:
                if attempt >= self.conflict_retries:
                    raise
                attempt += 1
                log.info("%s; retrying device %s", exc, record.serial_number)

    def _enrich(self, outcome: DeviceOutcome) -> EnrichmentStatus | None:
        if self.enricher is None or outcome.asset_id is None:
            return None
        try:
            return self.enricher.enrich(outcome.asset_id)
        except ChunkFatalError:
            raise
        except Exception:  # noqa: BLE001
            log.exception("Enrichment failed for device serial %s", outcome.serial)
            return None


@dataclass(slots=True)
class BatchOrchestrator:
    handler: ChunkHandler
    dispatcher: ChunkDispatcher
    resolver: ReferenceResolver
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def run(self, payloads: Sequence[RawDevicePayload]) -> RunSummary:
        """Partition ``payloads``, dispatch every chunk and aggregate the counts."""

        self.resolver.invalidate()
        chunks = partition_devices(payloads, self.chunk_size)
        log.info(
            "Dispatching %s device(s) in %s chunk(s) of up to %s",
            len(payloads),
            len(chunks),
            self.chunk_size,
        )
        summary = RunSummary.from_chunks(self.dispatcher.dispatch(chunks, self.handler))
        log.info("Sync run finished: %s", summary.as_dict())
        return summary
