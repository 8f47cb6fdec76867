"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from assetsync.adapters.sqlalchemy.mappings import (
    asset_table,
    category_table,
    custom_field_table,
    location_table,
    manufacturer_table,
    model_table,
    status_label_table,
    user_table,
)
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
from assetsync.domain.references import normalize_key

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.orm import Session


class SqlAlchemyNamedRepository[TEntity: (Manufacturer, Category, StatusLabel, Location)]:
    """Shared lookups for reference entities keyed by their normalized name."""

    entity_cls: ClassVar[type]
    table: ClassVar[Table]
    kind: ClassVar[ReferenceKind]

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: int) -> TEntity | None:
        return self.session.get(self.entity_cls, entity_id)

    def find_by_name(self, name: str) -> TEntity | None:
        stmt = (
            select(self.entity_cls)
            .where(self.table.c.name_key == normalize_key(name))
            .order_by(self.table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def add(self, entity: TEntity) -> TEntity:
        self.session.add(entity)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise DuplicateReferenceError(self.kind, entity.name) from exc
        return entity


class SqlAlchemyManufacturerRepository(SqlAlchemyNamedRepository[Manufacturer]):
    entity_cls = Manufacturer
    table = manufacturer_table
    kind = ReferenceKind.MANUFACTURER


class SqlAlchemyCategoryRepository(SqlAlchemyNamedRepository[Category]):
    entity_cls = Category
    table = category_table
    kind = ReferenceKind.CATEGORY


class SqlAlchemyLocationRepository(SqlAlchemyNamedRepository[Location]):
    entity_cls = Location
    table = location_table
    kind = ReferenceKind.LOCATION


class SqlAlchemyStatusLabelRepository(SqlAlchemyNamedRepository[StatusLabel]):
    entity_cls = StatusLabel
    table = status_label_table
    kind = ReferenceKind.STATUS

    def first_deployable(self) -> StatusLabel | None:
        stmt = (
            select(StatusLabel)
            .where(status_label_table.c.deployable.is_(True))
            .order_by(status_label_table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()


class SqlAlchemyAssetModelRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: int) -> AssetModel | None:
        return self.session.get(AssetModel, entity_id)

    def find(self, name: str, manufacturer_id: int) -> AssetModel | None:
        stmt = (
            select(AssetModel)
            .where(model_table.c.name_key == normalize_key(name))
            .where(model_table.c.manufacturer_id == manufacturer_id)
            .order_by(model_table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def add(self, entity: AssetModel) -> AssetModel:
        self.session.add(entity)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise DuplicateReferenceError(ReferenceKind.MODEL, entity.name) from exc
        return entity


class SqlAlchemyUserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_email(self, email: str) -> User | None:
        stmt = (
            select(User)
            .where(func.lower(user_table.c.email) == email.strip().lower())
            .order_by(user_table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def find_by_username(self, username: str) -> User | None:
        stmt = (
            select(User)
            .where(func.lower(user_table.c.username) == username.strip().lower())
            .order_by(user_table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user


class SqlAlchemyAssetRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, asset_id: int) -> Asset | None:
        return self.session.get(Asset, asset_id)

    def get_by_serial(self, serial: str, *, include_deleted: bool = False) -> Asset | None:
        stmt = select(Asset).where(asset_table.c.serial == serial)
        if not include_deleted:
            stmt = stmt.where(asset_table.c.deleted_at.is_(None))
        return self.session.execute(stmt).scalars().first()

    def add(self, asset: Asset) -> Asset:
        self.session.add(asset)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise DuplicateSerialError(asset.serial) from exc
        return asset

    def save(self, asset: Asset) -> None:
        self.session.add(asset)

    def ids_with_serial(self, *, after_id: int | None, limit: int) -> list[int]:
        stmt = (
            select(asset_table.c.id)
            .where(asset_table.c.deleted_at.is_(None))
            .where(asset_table.c.serial.is_not(None))
            .where(func.trim(asset_table.c.serial) != "")
            .order_by(asset_table.c.id)
            .limit(limit)
        )
        if after_id is not None:
            stmt = stmt.where(asset_table.c.id > after_id)
        return list(self.session.execute(stmt).scalars())

    def count(self, *, include_deleted: bool = False) -> int:
        stmt = select(func.count()).select_from(asset_table)
        if not include_deleted:
            stmt = stmt.where(asset_table.c.deleted_at.is_(None))
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyCustomFieldRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def provisioned_columns(self) -> frozenset[str]:
        return frozenset(self.session.execute(select(custom_field_table.c.db_column)).scalars())

    def add(self, custom_field: CustomField) -> CustomField:
        self.session.add(custom_field)
        self.session.flush()
        return custom_field
