"""In-memory fakes of the registry ports for domain-level tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING, Literal, Protocol

from assetsync.domain.errors import DuplicateReferenceError, DuplicateSerialError
from assetsync.domain.model import (
    Asset,
    AssetModel,
    Category,
    CustomField,
    Location,
    Manufacturer,
    ReferenceKind,
    StatusLabel,
    User,
)
from assetsync.domain.ports.unit_of_work import RegistryRepositories
from assetsync.domain.references import normalize_key

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from types import TracebackType

    from assetsync.domain.model import AgentSnapshot


class _Named(Protocol):
    id: int | None
    name: str


class FakeNamedRepository[TEntity: _Named]:
    """Normalized-name lookups over a shared id sequence."""

    def __init__(self, kind: ReferenceKind, ids: Iterator[int]) -> None:
        self.kind = kind
        self._ids = ids
        self.entities: list[TEntity] = []
        self.added: list[TEntity] = []
        self.lookups = 0
        self.race_winner: Callable[[TEntity], TEntity] | None = None

    def seed(self, entity: TEntity) -> TEntity:
        entity.id = next(self._ids)
        self.entities.append(entity)
        return entity

    def get(self, entity_id: int) -> TEntity | None:
        return next((entity for entity in self.entities if entity.id == entity_id), None)

    def find_by_name(self, name: str) -> TEntity | None:
        self.lookups += 1
        key = normalize_key(name)
        return next((entity for entity in self.entities if normalize_key(entity.name) == key), None)

    def add(self, entity: TEntity) -> TEntity:
        if self.race_winner is not None:
            # another worker commits the same natural key first
            winner = self.race_winner(entity)
            self.race_winner = None
            self.seed(winner)
            raise DuplicateReferenceError(self.kind, entity.name)
        if self.find_by_name(entity.name) is not None:
            raise DuplicateReferenceError(self.kind, entity.name)
        self.added.append(entity)
        return self.seed(entity)


class FakeStatusLabelRepository(FakeNamedRepository[StatusLabel]):
    def first_deployable(self) -> StatusLabel | None:
        return next((status for status in self.entities if status.deployable), None)


class FakeAssetModelRepository:
    def __init__(self, ids: Iterator[int]) -> None:
        self._ids = ids
        self.entities: list[AssetModel] = []

    def get(self, entity_id: int) -> AssetModel | None:
        return next((model for model in self.entities if model.id == entity_id), None)

    def find(self, name: str, manufacturer_id: int) -> AssetModel | None:
        key = normalize_key(name)
        return next(
            (
                model
                for model in self.entities
                if normalize_key(model.name) == key and model.manufacturer_id == manufacturer_id
            ),
            None,
        )

    def add(self, entity: AssetModel) -> AssetModel:
        if self.find(entity.name, entity.manufacturer_id) is not None:
            raise DuplicateReferenceError(ReferenceKind.MODEL, entity.name)
        entity.id = next(self._ids)
        self.entities.append(entity)
        return entity


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: list[User] = []

    def find_by_email(self, email: str) -> User | None:
        key = email.casefold()
        return next(
            (user for user in self.users if user.email and user.email.casefold() == key), None
        )

    def find_by_username(self, username: str) -> User | None:
        key = username.casefold()
        return next((user for user in self.users if user.username.casefold() == key), None)


class FakeAssetRepository:
    def __init__(self, ids: Iterator[int]) -> None:
        self._ids = ids
        self.assets: dict[int, Asset] = {}
        self.saved: list[int] = []
        self.fail_on_add: Exception | None = None

    def get(self, asset_id: int) -> Asset | None:
        return self.assets.get(asset_id)

    def get_by_serial(self, serial: str, *, include_deleted: bool = False) -> Asset | None:
        for asset in self.assets.values():
            if asset.serial == serial and (include_deleted or not asset.trashed):
                return asset
        return None

    def add(self, asset: Asset) -> Asset:
        if self.fail_on_add is not None:
            raise self.fail_on_add
        if self.get_by_serial(asset.serial, include_deleted=True) is not None:
            raise DuplicateSerialError(asset.serial)
        asset.id = next(self._ids)
        self.assets[asset.id] = asset
        return asset

    def save(self, asset: Asset) -> None:
        assert asset.id is not None
        self.saved.append(asset.id)
        self.assets[asset.id] = asset

    def ids_with_serial(self, *, after_id: int | None, limit: int) -> list[int]:
        ids = sorted(
            asset_id
            for asset_id, asset in self.assets.items()
            if not asset.trashed and asset.serial.strip()
        )
        if after_id is not None:
            ids = [asset_id for asset_id in ids if asset_id > after_id]
        return ids[:limit]


class FakeCustomFieldRepository:
    def __init__(self, columns: frozenset[str] = frozenset()) -> None:
        self.fields = [CustomField(name=column, db_column=column) for column in columns]

    def provisioned_columns(self) -> frozenset[str]:
        return frozenset(custom_field.db_column for custom_field in self.fields)

    def add(self, custom_field: CustomField) -> CustomField:
        custom_field.id = len(self.fields) + 1
        self.fields.append(custom_field)
        return custom_field


@dataclass
class InMemoryRegistry:
    """Shared backing store handed to every fake unit of work."""

    ids: Iterator[int] = field(default_factory=lambda: count(1))
    manufacturers: FakeNamedRepository[Manufacturer] = field(init=False)
    categories: FakeNamedRepository[Category] = field(init=False)
    locations: FakeNamedRepository[Location] = field(init=False)
    statuses: FakeStatusLabelRepository = field(init=False)
    models: FakeAssetModelRepository = field(init=False)
    users: FakeUserRepository = field(default_factory=FakeUserRepository)
    assets: FakeAssetRepository = field(init=False)
    custom_fields: FakeCustomFieldRepository = field(default_factory=FakeCustomFieldRepository)

    def __post_init__(self) -> None:
        self.manufacturers = FakeNamedRepository(ReferenceKind.MANUFACTURER, self.ids)
        self.categories = FakeNamedRepository(ReferenceKind.CATEGORY, self.ids)
        self.locations = FakeNamedRepository(ReferenceKind.LOCATION, self.ids)
        self.statuses = FakeStatusLabelRepository(ReferenceKind.STATUS, self.ids)
        self.models = FakeAssetModelRepository(self.ids)
        self.assets = FakeAssetRepository(self.ids)

    def repositories(self) -> RegistryRepositories:
        return RegistryRepositories(
            assets=self.assets,
            manufacturers=self.manufacturers,
            models=self.models,
            categories=self.categories,
            statuses=self.statuses,
            locations=self.locations,
            users=self.users,
            custom_fields=self.custom_fields,
        )


class FakeRegistryUnitOfWork:
    def __init__(self, registry: InMemoryRegistry) -> None:
        self._repositories = registry.repositories()
        self.committed = False
        self.rolled_back = False
        self.is_open = False

    @property
    def repositories(self) -> RegistryRepositories:
        return self._repositories

    def __enter__(self) -> FakeRegistryUnitOfWork:
        self.is_open = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.is_open = False
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True


@dataclass
class FakeUnitOfWorkFactory:
    registry: InMemoryRegistry = field(default_factory=InMemoryRegistry)
    opened: list[FakeRegistryUnitOfWork] = field(default_factory=list)

    def __call__(self) -> FakeRegistryUnitOfWork:
        uow = FakeRegistryUnitOfWork(self.registry)
        self.opened.append(uow)
        return uow

    @property
    def commits(self) -> int:
        return sum(1 for uow in self.opened if uow.committed)

    @property
    def open_count(self) -> int:
        return sum(1 for uow in self.opened if uow.is_open)


@dataclass
class FakeAgentSource:
    """Agent source answering from a serial-keyed mapping."""

    snapshots: dict[str, AgentSnapshot] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)
    calls: list[tuple[str, int, int]] = field(default_factory=list)

    def find_agent(
        self,
        serial_number: str,
        *,
        incident_limit: int,
        remediation_limit: int,
    ) -> AgentSnapshot | None:
        self.calls.append((serial_number, incident_limit, remediation_limit))
        error = self.errors.get(serial_number)
        if error is not None:
            raise error
        return self.snapshots.get(serial_number)
