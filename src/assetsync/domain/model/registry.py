"""Entities of the canonical asset registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date, datetime
    from decimal import Decimal

ASSIGNEE_TYPE_USER = "user"

type CustomValue = str | None


@runtime_checkable
class ReferenceEntity(Protocol):
    """Shared lookup row referenced by id from assets."""

    id: int | None
    name: str


@dataclass(eq=False, kw_only=True)
class Manufacturer:
    name: str
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class Category:
    name: str
    category_type: str = "asset"
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class AssetModel:
    """Hardware model; unique per ``(name, manufacturer_id)``."""

    name: str
    manufacturer_id: int
    category_id: int | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class StatusLabel:
    name: str
    deployable: bool = False
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class Location:
    name: str
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class User:
    username: str
    email: str | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class CustomField:
    """A provisioned custom-data column on assets."""

    name: str
    db_column: str
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class Asset:
    """The canonical registry record for one physical device, keyed by serial."""

    serial: str
    asset_tag: str
    name: str
    model_id: int | None = None
    status_id: int | None = None
    location_id: int | None = None
    assigned_to: int | None = None
    assigned_type: str | None = None
    notes: str | None = None
    purchase_date: date | None = None
    purchase_cost: Decimal | None = None
    order_number: str | None = None
    custom_fields: dict[str, CustomValue] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    id: int | None = None

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, when: datetime) -> None:
        self.deleted_at = when

    def restore(self) -> None:
        self.deleted_at = None

    def apply(self, values: Mapping[str, object]) -> tuple[str, ...]:
        """Assign attribute values, returning the names that actually changed."""

        changed: list[str] = []
        for name, value in values.items():
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        return tuple(changed)

    def custom_value(self, column: str) -> CustomValue:
        return self.custom_fields.get(column)

    def set_custom_values(self, values: Mapping[str, CustomValue]) -> None:
        # reassign so change tracking sees a new mapping
        merged = dict(self.custom_fields)
        merged.update(values)
        self.custom_fields = merged
