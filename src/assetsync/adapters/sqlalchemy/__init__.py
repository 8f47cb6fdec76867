"""SQLAlchemy adapter package for the asset registry."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAssetModelRepository,
    SqlAlchemyAssetRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyCustomFieldRepository,
    SqlAlchemyLocationRepository,
    SqlAlchemyManufacturerRepository,
    SqlAlchemyStatusLabelRepository,
    SqlAlchemyUserRepository,
)
from .unit_of_work import (
    SqlAlchemyRegistryUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAssetModelRepository",
    "SqlAlchemyAssetRepository",
    "SqlAlchemyCategoryRepository",
    "SqlAlchemyCustomFieldRepository",
    "SqlAlchemyLocationRepository",
    "SqlAlchemyManufacturerRepository",
    "SqlAlchemyRegistryUnitOfWork",
    "SqlAlchemyStatusLabelRepository",
    "SqlAlchemyUserRepository",
    "StartupError",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
]
