"""Domain ports (interfaces) implemented by adapters."""

from __future__ import annotations

from .cache import ReferenceCache
from .dispatch import ChunkDispatcher, ChunkHandler
from .fetching import AgentSource
from .persistence import (
    AssetModelRepository,
    AssetRepository,
    CategoryRepository,
    CustomFieldRepository,
    LocationRepository,
    ManufacturerRepository,
    NamedRepository,
    StatusLabelRepository,
    UserRepository,
)
from .unit_of_work import (
    RegistryRepositories,
    RegistryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AgentSource",
    "AssetModelRepository",
    "AssetRepository",
    "CategoryRepository",
    "ChunkDispatcher",
    "ChunkHandler",
    "CustomFieldRepository",
    "LocationRepository",
    "ManufacturerRepository",
    "NamedRepository",
    "ReferenceCache",
    "RegistryRepositories",
    "RegistryUnitOfWork",
    "RepositoryCollection",
    "StatusLabelRepository",
    "UnitOfWork",
    "UserRepository",
]
