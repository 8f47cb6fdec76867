"""End-to-end runs of the entry points against an in-memory SQLite registry."""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from assetsync import app as app_module
from assetsync.adapters.cache import InMemoryReferenceCache
from assetsync.adapters.dispatch import InlineChunkDispatcher, ThreadPoolChunkDispatcher
from assetsync.config.sync import EnrichmentConfig, SourceDefaults, SyncConfig
from assetsync.domain.enrichment import ENRICHMENT_SLOTS
from assetsync.domain.model import (
    AgentRecord,
    AgentSnapshot,
    Asset,
    DeviceKind,
    Location,
    SourceSystem,
    StatusLabel,
)
from assetsync.domain.normalizer import wrap_payloads
from assetsync.domain.outcomes import SyncStatus
from assetsync.domain.reconciler import AssetReconciler
from assetsync.domain.references import ReferenceResolver
from tests.helpers.registry import FakeAgentSource

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from assetsync.adapters.sqlalchemy import SqlAlchemyRegistryUnitOfWork

    UowFactory = Callable[[], SqlAlchemyRegistryUnitOfWork]


def _intune(serial: str | None, name: str) -> dict[str, object]:
    return {
        "serialNumber": serial,
        "deviceName": name,
        "model": "Latitude 7440",
        "manufacturer": "Dell Inc.",
        "operatingSystem": "Windows",
        "userPrincipalName": "ada@example.com",
    }


def _jamf_computer(serial: str) -> dict[str, object]:
    return {
        "general": {"name": f"Mac {serial}", "serial_number": serial},
        "hardware": {"model": "MacBook Pro (14-inch, 2023)", "os_version": "14.4"},
        "location": {"username": "grace", "building": "HQ"},
        "purchasing": {"purchase_price": "$2,499.00", "po_date": "2023-10-01"},
    }


def _jamf_mobile(serial: str) -> dict[str, object]:
    return {"general": {"name": f"iPad {serial}", "serial_number": serial, "model": "iPad Air"}}


def _config(*, chunk_size: int = 2, **overrides: object) -> SyncConfig:
    return SyncConfig(
        intune=SourceDefaults(
            computer_category_name="Intune Devices",
            mobile_category_name="Intune Devices",
            chunk_size=chunk_size,
        ),
        jamf=SourceDefaults(
            computer_category_name="JAMF Computers",
            mobile_category_name="JAMF Mobile Devices",
            chunk_size=chunk_size,
        ),
        max_workers=1,
        **overrides,  # type: ignore[arg-type]
    )


def _assets(uow_factory: UowFactory) -> dict[str, Asset]:
    with uow_factory() as uow:
        ids = uow.repositories.assets.ids_with_serial(after_id=None, limit=100)
        found = [uow.repositories.assets.get(asset_id) for asset_id in ids]
    return {asset.serial: asset for asset in found if asset is not None}


@pytest.fixture
def seeded(sqlite_unit_of_work: UowFactory) -> UowFactory:
    with sqlite_unit_of_work() as uow:
        uow.repositories.statuses.add(StatusLabel(name="Ready to Deploy", deployable=True))
        uow.repositories.locations.add(Location(name="HQ"))
        uow.commit()
    return sqlite_unit_of_work


def test_sync_intune_devices_end_to_end(seeded: UowFactory) -> None:
    payloads = [_intune("SN-1", "A"), _intune("SN-2", "B"), _intune(None, "C")]

    summary = app_module.sync_intune_devices(
        payloads,
        unit_of_work_factory=seeded,
        config=_config(),
        enrich=False,
        dispatcher=InlineChunkDispatcher(),
    )

    assert summary.as_dict() == {
        "processed": 3,
        "synced": 2,
        "created": 2,
        "updated": 0,
        "errors": 1,
        "cleared": 0,
    }
    assets = _assets(seeded)
    assert sorted(assets) == ["SN-1", "SN-2"]
    assert assets["SN-1"].model_id == assets["SN-2"].model_id

    again = app_module.sync_intune_devices(
        payloads,
        unit_of_work_factory=seeded,
        config=_config(),
        enrich=False,
        dispatcher=InlineChunkDispatcher(),
    )

    assert (again.created, again.updated, again.errors) == (0, 2, 1)
    assert sorted(_assets(seeded)) == ["SN-1", "SN-2"]


def test_sync_restores_soft_deleted_asset(seeded: UowFactory) -> None:
    kwargs = {
        "unit_of_work_factory": seeded,
        "config": _config(),
        "enrich": False,
        "dispatcher": InlineChunkDispatcher(),
    }
    app_module.sync_intune_devices([_intune("SN-1", "A")], **kwargs)  # type: ignore[arg-type]
    with seeded() as uow:
        asset = uow.repositories.assets.get_by_serial("SN-1")
        assert asset is not None
        asset.soft_delete(datetime(2024, 1, 1, tzinfo=UTC))
        uow.repositories.assets.save(asset)
        uow.commit()

    summary = app_module.sync_intune_devices([_intune("SN-1", "A")], **kwargs)  # type: ignore[arg-type]

    assert (summary.created, summary.updated) == (0, 1)
    assert summary.chunks[0].restored == 1
    assert "SN-1" in _assets(seeded)


def test_sync_jamf_honours_device_kind_toggles(seeded: UowFactory) -> None:
    summary = app_module.sync_jamf_devices(
        [_jamf_computer("C02-1")],
        [_jamf_mobile("DMP-1")],
        unit_of_work_factory=seeded,
        config=_config(sync_jamf_mobile_devices=False),
        enrich=False,
        dispatcher=InlineChunkDispatcher(),
    )

    assert summary.processed == 1
    assets = _assets(seeded)
    assert list(assets) == ["C02-1"]
    computer = assets["C02-1"]
    assert computer.location_id is not None
    assert computer.purchase_cost is not None
    assert str(computer.purchase_cost) == "2499.00"
    assert computer.notes is not None
    assert computer.notes.startswith("Synced from JAMF Pro")


def test_jamf_resync_reports_no_changed_fields(seeded: UowFactory) -> None:
    payloads = [_jamf_computer("C02-1"), _jamf_computer("C02-2")]
    payloads[1]["purchasing"] = {"purchase_price": "$1,299.999", "po_date": "2023-10-01"}
    reconciler = AssetReconciler(
        resolver=ReferenceResolver(InMemoryReferenceCache()),
        unit_of_work_factory=seeded,
        source_defaults={SourceSystem.JAMF: _config().jamf},
    )
    normalizer = app_module.build_normalizer()
    records = [
        normalizer.normalize(raw)
        for raw in wrap_payloads(SourceSystem.JAMF, payloads, device_kind=DeviceKind.COMPUTER)
    ]

    first = [reconciler.reconcile(record) for record in records]
    second = [reconciler.reconcile(record) for record in records]

    assert [outcome.status for outcome in first] == [SyncStatus.CREATED] * 2
    assert [outcome.status for outcome in second] == [SyncStatus.UPDATED] * 2
    assert [outcome.changed_fields for outcome in second] == [(), ()]
    assert _assets(seeded)["C02-2"].purchase_cost == Decimal("1300.00")


def test_sync_with_enrichment_and_standalone_pass(seeded: UowFactory) -> None:
    created = app_module.provision_enrichment_columns(
        unit_of_work_factory=seeded, config=EnrichmentConfig()
    )
    assert len(created) == len(ENRICHMENT_SLOTS)
    assert app_module.provision_enrichment_columns(unit_of_work_factory=seeded) == ()

    source = FakeAgentSource(
        snapshots={"SN-1": AgentSnapshot(agent=AgentRecord(agent_id=1, hostname="laptop-a"))}
    )
    summary = app_module.sync_intune_devices(
        [_intune("SN-1", "A"), _intune("SN-2", "B")],
        unit_of_work_factory=seeded,
        config=_config(),
        agent_source=source,
        enrichment_config=EnrichmentConfig(),
        dispatcher=InlineChunkDispatcher(),
    )

    assert summary.chunks[0].enriched == 1
    assets = _assets(seeded)
    assert assets["SN-1"].custom_value("_snipeit_huntress_hostname") == "laptop-a"
    assert assets["SN-2"].custom_value("_snipeit_huntress_hostname") is None

    source.snapshots.clear()
    enrichment = app_module.sync_agent_enrichment(
        source=source, unit_of_work_factory=seeded, config=EnrichmentConfig()
    )

    assert enrichment.as_dict() == {
        "processed": 2,
        "updated": 0,
        "cleared": 1,
        "skipped": 1,
        "failed": 0,
    }
    assert _assets(seeded)["SN-1"].custom_value("_snipeit_huntress_hostname") is None


def test_enrichment_is_skipped_without_api_key(
    seeded: UowFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("HUNTRESS_API_KEY", raising=False)

    summary = app_module.sync_agent_enrichment(unit_of_work_factory=seeded)

    assert summary.as_dict() == {
        "processed": 0,
        "updated": 0,
        "cleared": 0,
        "skipped": 0,
        "failed": 0,
    }
    assert app_module.build_enricher(source=None, unit_of_work_factory=seeded) is None


def test_build_dispatcher_follows_worker_count() -> None:
    assert isinstance(app_module.build_dispatcher(_config()), InlineChunkDispatcher)
    threaded = app_module.build_dispatcher(SyncConfig(max_workers=3, chunk_attempts=5))
    assert isinstance(threaded, ThreadPoolChunkDispatcher)
    assert threaded.max_workers == 3
    assert threaded.retry.attempts == 5


def test_load_environment_reads_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text("ASSETSYNC_TEST_FLAG=loaded\n")
    monkeypatch.delenv("ASSETSYNC_TEST_FLAG", raising=False)

    assert app_module.load_environment(dotenv) is True

    assert os.environ["ASSETSYNC_TEST_FLAG"] == "loaded"
    monkeypatch.delenv("ASSETSYNC_TEST_FLAG")


def test_sync_entry_points_configure_logging(
    seeded: UowFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[str] = []
    monkeypatch.setattr(app_module, "configure_logging", lambda: calls.append("configured"))
    kwargs = {"unit_of_work_factory": seeded, "config": _config(), "enrich": False}

    app_module.sync_intune_devices([], **kwargs)  # type: ignore[arg-type]
    app_module.sync_jamf_devices([], [], **kwargs)  # type: ignore[arg-type]
    app_module.sync_agent_enrichment(
        source=FakeAgentSource(), unit_of_work_factory=seeded, config=EnrichmentConfig()
    )

    assert calls == ["configured"] * 3


def test_run_summary_is_logged_with_lazy_arguments(
    seeded: UowFactory, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="assetsync.app")

    app_module.sync_intune_devices(
        [_intune("SN-1", "A")],
        unit_of_work_factory=seeded,
        config=_config(),
        enrich=False,
        dispatcher=InlineChunkDispatcher(),
    )

    [record] = [r for r in caplog.records if r.getMessage().startswith("Finished sync")]
    assert record.args == (1, 1, 1, 0, 0, 0)
    assert record.getMessage() == (
        "Finished sync: processed=1, synced=1, created=1, updated=0, errors=0, cleared=0"
    )
