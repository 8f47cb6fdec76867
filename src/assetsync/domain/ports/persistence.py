"""Repository ports for the asset registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from assetsync.domain.model import (
        Asset,
        AssetModel,
        Category,
        CustomField,
        Location,
        Manufacturer,
        StatusLabel,
        User,
    )


class NamedRepository[TEntity](Protocol):
    """Reference entities addressed by a case-insensitive name."""

    def get(self, entity_id: int) -> TEntity | None: ...

    def find_by_name(self, name: str) -> TEntity | None: ...

    def add(self, entity: TEntity) -> TEntity:
        """Persist a new entity and assign its id.

        Raises ``DuplicateReferenceError`` when another writer created the same
        natural key first.
        """
        ...


class ManufacturerRepository(NamedRepository["Manufacturer"], Protocol): ...


class CategoryRepository(NamedRepository["Category"], Protocol): ...


class LocationRepository(NamedRepository["Location"], Protocol): ...


class StatusLabelRepository(NamedRepository["StatusLabel"], Protocol):
    def first_deployable(self) -> StatusLabel | None: ...


class AssetModelRepository(Protocol):
    def get(self, entity_id: int) -> AssetModel | None: ...

    def find(self, name: str, manufacturer_id: int) -> AssetModel | None: ...

    def add(self, entity: AssetModel) -> AssetModel: ...


class UserRepository(Protocol):
    def find_by_email(self, email: str) -> User | None: ...

    def find_by_username(self, username: str) -> User | None: ...


class AssetRepository(Protocol):
    def get(self, asset_id: int) -> Asset | None: ...

    def get_by_serial(self, serial: str, *, include_deleted: bool = False) -> Asset | None: ...

    def add(self, asset: Asset) -> Asset:
        """Persist a new asset; raises ``DuplicateSerialError`` on a lost race."""
        ...

    def save(self, asset: Asset) -> None: ...

    def ids_with_serial(self, *, after_id: int | None, limit: int) -> list[int]:
        """Ids of non-deleted assets with a non-blank serial, ascending."""
        ...


class CustomFieldRepository(Protocol):
    def provisioned_columns(self) -> frozenset[str]: ...

    def add(self, custom_field: CustomField) -> CustomField: ...
