"""SQLAlchemy mapping metadata for the asset registry."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)

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
from assetsync.domain.references import normalize_key

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.engine.default import DefaultExecutionContext

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Reference rows carry the same normalized key the resolver caches by; the unique
# constraints on it settle a creation race between two workers.


def _name_key(context: DefaultExecutionContext) -> str:
    return normalize_key(context.get_current_parameters()["name"])


def _name_key_column() -> Column[str]:
    return Column("name_key", String(255), nullable=False, default=_name_key)

manufacturer_table = Table(
    "manufacturers",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    _name_key_column(),
    UniqueConstraint("name_key"),
)

category_table = Table(
    "categories",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("category_type", String(32), nullable=False, default="asset"),
    _name_key_column(),
    UniqueConstraint("name_key"),
)

model_table = Table(
    "models",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("manufacturer_id", Integer, ForeignKey("manufacturers.id"), nullable=False),
    Column("category_id", Integer, ForeignKey("categories.id"), nullable=True),
    _name_key_column(),
    UniqueConstraint("name_key", "manufacturer_id"),
)

status_label_table = Table(
    "status_labels",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("deployable", Boolean, nullable=False, default=False),
    _name_key_column(),
    UniqueConstraint("name_key"),
)

location_table = Table(
    "locations",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    _name_key_column(),
    UniqueConstraint("name_key"),
)

user_table = Table(
    "users",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False),
    Column("email", String(255), nullable=True),
    UniqueConstraint("username"),
    Index("ix_users_email", "email"),
)

custom_field_table = Table(
    "custom_fields",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("db_column", String(255), nullable=False),
    UniqueConstraint("db_column"),
)

asset_table = Table(
    "assets",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("serial", String(255), nullable=False),
    Column("asset_tag", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("model_id", Integer, ForeignKey("models.id"), nullable=True),
    Column("status_id", Integer, ForeignKey("status_labels.id"), nullable=True),
    Column("location_id", Integer, ForeignKey("locations.id"), nullable=True),
    Column("assigned_to", Integer, nullable=True),
    Column("assigned_type", String(32), nullable=True),
    Column("notes", Text, nullable=True),
    Column("purchase_date", Date, nullable=True),
    Column("purchase_cost", Numeric(12, 2), nullable=True),
    Column("order_number", String(255), nullable=True),
    Column("custom_fields", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("deleted_at", UTCDateTime(), nullable=True),
    # soft-deleted rows keep their serial, so restore instead of insert
    UniqueConstraint("serial"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the registry entities."""

    log.info("Starting SQLAlchemy mappers")

    for entity, table in (
        (Manufacturer, manufacturer_table),
        (Category, category_table),
        (AssetModel, model_table),
        (StatusLabel, status_label_table),
        (Location, location_table),
    ):
        # name_key is filled by the column default and never read back
        mapper_registry.map_imperatively(entity, table, exclude_properties=["name_key"])
    mapper_registry.map_imperatively(User, user_table)
    mapper_registry.map_imperatively(CustomField, custom_field_table)
    mapper_registry.map_imperatively(Asset, asset_table)

    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
