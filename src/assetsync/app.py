"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from assetsync.adapters.cache import InMemoryReferenceCache
from assetsync.adapters.dispatch import (
    ChunkRetryPolicy,
    InlineChunkDispatcher,
    ThreadPoolChunkDispatcher,
)
from assetsync.adapters.huntress import HuntressAgentSource
from assetsync.adapters.intune import translate_intune_payload
from assetsync.adapters.jamf import translate_jamf_payload
from assetsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyRegistryUnitOfWork,
    is_started,
    startup,
)
from assetsync.config.logging import configure_logging
from assetsync.config.sync import get_enrichment_config, get_sync_config
from assetsync.domain.enrichment import ENRICHMENT_SLOTS, AssetEnricher, EnrichmentMerger
from assetsync.domain.model import CustomField, DeviceKind, SourceSystem
from assetsync.domain.normalizer import Normalizer, wrap_payloads
from assetsync.domain.orchestrator import BatchOrchestrator, ChunkProcessor
from assetsync.domain.outcomes import EnrichmentRunSummary
from assetsync.domain.ports.unit_of_work import RegistryUnitOfWork
from assetsync.domain.reconciler import AssetReconciler
from assetsync.domain.references import ReferenceResolver

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from os import PathLike

    from assetsync.config.sync import EnrichmentConfig, SourceDefaults, SyncConfig
    from assetsync.domain.normalizer import RawDevicePayload
    from assetsync.domain.outcomes import RunSummary
    from assetsync.domain.ports import AgentSource, ChunkDispatcher, ReferenceCache

UnitOfWorkFactory = Callable[[], RegistryUnitOfWork]


log = getLogger(__name__)


def load_environment(dotenv_path: str | PathLike[str] | None = None) -> bool:
    """Load a ``.env`` file into the process environment, keeping existing values."""

    return load_dotenv(dotenv_path)


def build_normalizer() -> Normalizer:
    return Normalizer(
        {
            SourceSystem.INTUNE: translate_intune_payload,
            SourceSystem.JAMF: translate_jamf_payload,
        }
    )


def build_dispatcher(config: SyncConfig) -> ChunkDispatcher:
    retry = ChunkRetryPolicy(
        attempts=config.chunk_attempts,
        backoff_seconds=config.chunk_retry_backoff_seconds,
    )
    if config.max_workers > 1:
        return ThreadPoolChunkDispatcher(max_workers=config.max_workers, retry=retry)
    return InlineChunkDispatcher(retry=retry)


def build_enricher(
    *,
    source: AgentSource | None,
    unit_of_work_factory: UnitOfWorkFactory,
    config: EnrichmentConfig | None = None,
) -> AssetEnricher | None:
    """Wire an enricher, or return ``None`` when no agent source is configured."""

    effective_source = source if source is not None else _default_agent_source()
    if effective_source is None:
        return None
    effective_config = config or get_enrichment_config()
    merger = EnrichmentMerger(
        column_prefix=effective_config.column_prefix,
        incident_limit=effective_config.incident_limit,
        remediation_limit=effective_config.remediation_limit,
    )
    return AssetEnricher(
        merger=merger,
        source=effective_source,
        unit_of_work_factory=unit_of_work_factory,
    )


def sync_intune_devices(
    payloads: Iterable[Mapping[str, object]],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    agent_source: AgentSource | None = None,
    enrich: bool = True,
    enrichment_config: EnrichmentConfig | None = None,
    cache: ReferenceCache | None = None,
    dispatcher: ChunkDispatcher | None = None,
) -> RunSummary:
    """Reconcile Intune managed devices into the registry."""

    configure_logging()
    effective_config = config or get_sync_config()
    devices = wrap_payloads(SourceSystem.INTUNE, payloads)
    log.info("Starting Intune sync: devices=%s", len(devices))
    return _run_sync(
        devices,
        chunk_size=effective_config.intune.chunk_size,
        config=effective_config,
        unit_of_work_factory=unit_of_work_factory,
        agent_source=agent_source,
        enrich=enrich,
        enrichment_config=enrichment_config,
        cache=cache,
        dispatcher=dispatcher,
    )


def sync_jamf_devices(
    computers: Iterable[Mapping[str, object]] = (),
    mobile_devices: Iterable[Mapping[str, object]] = (),
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    agent_source: AgentSource | None = None,
    enrich: bool = True,
    enrichment_config: EnrichmentConfig | None = None,
    cache: ReferenceCache | None = None,
    dispatcher: ChunkDispatcher | None = None,
) -> RunSummary:
    """Reconcile JAMF computers and mobile devices, honouring the per-kind toggles."""

    configure_logging()
    effective_config = config or get_sync_config()
    devices: list[RawDevicePayload] = []
    if effective_config.sync_jamf_computers:
        devices.extend(wrap_payloads(SourceSystem.JAMF, computers, device_kind=DeviceKind.COMPUTER))
    else:
        log.info("JAMF computer sync disabled, ignoring computer records")
    if effective_config.sync_jamf_mobile_devices:
        devices.extend(
            wrap_payloads(SourceSystem.JAMF, mobile_devices, device_kind=DeviceKind.MOBILE)
        )
    else:
        log.info("JAMF mobile device sync disabled, ignoring mobile device records")

    log.info("Starting JAMF sync: devices=%s", len(devices))
    return _run_sync(
        devices,
        chunk_size=effective_config.jamf.chunk_size,
        config=effective_config,
        unit_of_work_factory=unit_of_work_factory,
        agent_source=agent_source,
        enrich=enrich,
        enrichment_config=enrichment_config,
        cache=cache,
        dispatcher=dispatcher,
    )


def sync_agent_enrichment(
    *,
    source: AgentSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EnrichmentConfig | None = None,
) -> EnrichmentRunSummary:
    """Overlay agent telemetry onto every asset in the registry."""

    configure_logging()
    effective_uow = _registry_unit_of_work_factory(unit_of_work_factory)
    effective_config = config or get_enrichment_config()
    enricher = build_enricher(
        source=source,
        unit_of_work_factory=effective_uow,
        config=effective_config,
    )
    if enricher is None:
        return EnrichmentRunSummary()

    log.info(
        "Starting enrichment run: chunk_size=%s, incidents=%s, remediations=%s",
        effective_config.chunk_size,
        effective_config.incident_limit,
        effective_config.remediation_limit,
    )
    return enricher.run(chunk_size=effective_config.chunk_size)


def provision_enrichment_columns(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EnrichmentConfig | None = None,
) -> tuple[str, ...]:
    """Create the custom-data columns enrichment writes to; returns the new ones."""

    effective_uow = _registry_unit_of_work_factory(unit_of_work_factory)
    prefix = (config or get_enrichment_config()).column_prefix
    created: list[str] = []
    with effective_uow() as uow:
        repository = uow.repositories.custom_fields
        provisioned = repository.provisioned_columns()
        for slug in ENRICHMENT_SLOTS:
            column = f"{prefix}{slug}"
            if column in provisioned:
                continue
            repository.add(CustomField(name=_field_label(slug), db_column=column))
            created.append(column)
        if created:
            uow.commit()
    log.info("Provisioned %s enrichment column(s)", len(created))
    return tuple(created)


def _run_sync(
    devices: list[RawDevicePayload],
    *,
    chunk_size: int,
    config: SyncConfig,
    unit_of_work_factory: UnitOfWorkFactory | None,
    agent_source: AgentSource | None,
    enrich: bool,
    enrichment_config: EnrichmentConfig | None,
    cache: ReferenceCache | None,
    dispatcher: ChunkDispatcher | None,
) -> RunSummary:
    effective_uow = _registry_unit_of_work_factory(unit_of_work_factory)
    resolver = ReferenceResolver(
        cache if cache is not None else InMemoryReferenceCache(),
        ttl_seconds=config.cache_ttl_seconds,
    )
    source_defaults: dict[SourceSystem, SourceDefaults] = {
        SourceSystem.INTUNE: config.intune,
        SourceSystem.JAMF: config.jamf,
    }
    reconciler = AssetReconciler(
        resolver=resolver,
        unit_of_work_factory=effective_uow,
        source_defaults=source_defaults,
    )
    enricher = (
        build_enricher(
            source=agent_source,
            unit_of_work_factory=effective_uow,
            config=enrichment_config,
        )
        if enrich
        else None
    )
    processor = ChunkProcessor(
        normalizer=build_normalizer(),
        reconciler=reconciler,
        enricher=enricher,
    )
    orchestrator = BatchOrchestrator(
        handler=processor,
        dispatcher=dispatcher or build_dispatcher(config),
        resolver=resolver,
        chunk_size=chunk_size,
    )
    summary = orchestrator.run(devices)
    log.info(
        "Finished sync: processed=%s, synced=%s, created=%s, updated=%s, errors=%s, cleared=%s",
        summary.processed,
        summary.synced,
        summary.created,
        summary.updated,
        summary.errors,
        summary.cleared,
    )
    return summary


def _registry_unit_of_work_factory(
    unit_of_work_factory: UnitOfWorkFactory | None,
) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyRegistryUnitOfWork


def _default_agent_source() -> AgentSource | None:
    source = HuntressAgentSource()
    if not source.is_configured:
        log.info("Huntress API key not configured, skipping enrichment")
        return None
    return source


def _field_label(slug: str) -> str:
    return slug.replace("_", " ").title()
