"""Cache-aside resolution of reference entities.

A :class:`ReferenceResolver` is shared by every chunk worker of a run and owns the
cache contract: cleared when a run starts, kept across chunks, entries expire after
a TTL. Each device resolves through its own :class:`ResolutionScope`, bound to that
device's unit of work. Identities found or created inside the scope are staged and
only reach the shared cache through :meth:`ResolutionScope.publish`, which the
caller invokes after its transaction commits. A rolled-back device therefore never
leaves an identity in the cache that the store does not hold.

Concurrent workers can both miss a brand new natural key and both try to create
it. The store's uniqueness constraint decides; the loser sees a
``DuplicateReferenceError``, its unit of work is rolled back, and the caller
retries the device, at which point the winner's row is found and cached.
"""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from assetsync.domain.errors import AssetSyncError, ReferenceResolutionError
from assetsync.domain.model import (
    AssetModel,
    Category,
    Manufacturer,
    ReferenceKind,
    StatusLabel,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from assetsync.domain.model import DeviceKind, ReferenceEntity, SourceSystem
    from assetsync.domain.ports import ReferenceCache, RegistryRepositories

log = getLogger(__name__)

DEFAULT_REFERENCE_TTL_SECONDS: Final[float] = 3600.0
READY_TO_DEPLOY: Final[str] = "Ready to Deploy"
FALLBACK_STATUS_ID: Final[int] = 1

_SEPARATORS = re.compile(r"[\s_]+")


def normalize_key(value: str) -> str:
    """Case-fold and collapse whitespace/underscore runs into single underscores."""

    return "_".join(part for part in _SEPARATORS.split(value.casefold()) if part)


def cache_key(kind: ReferenceKind, *parts: object) -> str:
    return ":".join([str(kind), *(normalize_key(str(part)) for part in parts)])


class ReferenceResolver:
    def __init__(
        self,
        cache: ReferenceCache,
        *,
        ttl_seconds: float = DEFAULT_REFERENCE_TTL_SECONDS,
    ) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def invalidate(self) -> None:
        """Drop every cached identity; called once at the start of a sync run."""

        log.debug("Clearing reference cache")
        self.cache.clear()

    def scope(self, repositories: RegistryRepositories) -> ResolutionScope:
        return ResolutionScope(self, repositories)


class ResolutionScope:
    """Resolutions made inside one device's unit of work."""

    def __init__(self, resolver: ReferenceResolver, repositories: RegistryRepositories) -> None:
        self._resolver = resolver
        self._repositories = repositories
        self._staged: dict[str, int] = {}

    @property
    def staged(self) -> Mapping[str, int]:
        return dict(self._staged)

    def publish(self) -> None:
        """Write staged identities to the shared cache. Call only after commit."""

        cache = self._resolver.cache
        ttl = self._resolver.ttl_seconds
        for key, entity_id in self._staged.items():
            cache.put(key, entity_id, ttl)
        self._staged.clear()

    def resolve(
        self,
        kind: ReferenceKind,
        natural_key: str,
        creation_defaults: Mapping[str, object] | None = None,
    ) -> int:
        """Find or create the reference entity of ``kind`` named ``natural_key``.

        Models need ``manufacturer_id`` in ``creation_defaults`` since their key is
        compound; ``category_id`` is used when a model has to be created. Locations
        are never created and must go through :meth:`location`.
        """

        defaults = dict(creation_defaults or {})
        match kind:
            case ReferenceKind.MANUFACTURER:
                return self.manufacturer(natural_key)
            case ReferenceKind.CATEGORY:
                return self.category(natural_key)
            case ReferenceKind.STATUS:
                return self.named_status(natural_key, deployable=bool(defaults.get("deployable")))
            case ReferenceKind.MODEL:
                manufacturer_id = defaults.get("manufacturer_id")
                if not isinstance(manufacturer_id, int):
                    raise ValueError("Model resolution requires an integer manufacturer_id")
                category_id = defaults.get("category_id")
                return self.model(
                    natural_key,
                    manufacturer_id,
                    category_id=category_id if isinstance(category_id, int) else None,
                )
            case ReferenceKind.LOCATION:
                raise ValueError("Locations are matched by name only and never created")

    def manufacturer(self, name: str, *, default_id: int | None = None) -> int:
        if default_id is not None and self._exists(
            ReferenceKind.MANUFACTURER, default_id, self._repositories.manufacturers.get
        ):
            return default_id
        repository = self._repositories.manufacturers
        return self._find_or_create(
            ReferenceKind.MANUFACTURER,
            cache_key(ReferenceKind.MANUFACTURER, name),
            name,
            find=lambda: repository.find_by_name(name),
            create=lambda: repository.add(Manufacturer(name=name)),
        )

    def model(
        self,
        name: str,
        manufacturer_id: int,
        *,
        category_id: int | None = None,
        default_id: int | None = None,
    ) -> int:
        repository = self._repositories.models
        if default_id is not None and self._exists(
            ReferenceKind.MODEL, default_id, repository.get
        ):
            return default_id
        return self._find_or_create(
            ReferenceKind.MODEL,
            cache_key(ReferenceKind.MODEL, name, manufacturer_id),
            name,
            find=lambda: repository.find(name, manufacturer_id),
            create=lambda: repository.add(
                AssetModel(name=name, manufacturer_id=manufacturer_id, category_id=category_id)
            ),
        )

    def category(self, name: str) -> int:
        repository = self._repositories.categories
        return self._find_or_create(
            ReferenceKind.CATEGORY,
            cache_key(ReferenceKind.CATEGORY, name),
            name,
            find=lambda: repository.find_by_name(name),
            create=lambda: repository.add(Category(name=name)),
        )

    def device_category(
        self,
        source: SourceSystem,
        kind: DeviceKind,
        *,
        override_id: int | None,
        fallback_name: str,
    ) -> int:
        """Category for synced devices: a configured override if it exists, else by name."""

        key = cache_key(ReferenceKind.CATEGORY, "device", source, kind)
        cached = self._cached(key)
        if cached is not None:
            return cached
        if override_id is not None and self._exists(
            ReferenceKind.CATEGORY, override_id, self._repositories.categories.get
        ):
            category_id = override_id
        else:
            category_id = self.category(fallback_name)
        self._staged[key] = category_id
        return category_id

    def named_status(self, name: str, *, deployable: bool = False) -> int:
        repository = self._repositories.statuses
        return self._find_or_create(
            ReferenceKind.STATUS,
            cache_key(ReferenceKind.STATUS, name),
            name,
            find=lambda: repository.find_by_name(name),
            create=lambda: repository.add(StatusLabel(name=name, deployable=deployable)),
        )

    def status(self, source: SourceSystem, *, override_id: int | None) -> int:
        """Status for synced devices.

        Precedence: the configured override if it still exists, a status named
        "Ready to Deploy", the first deployable status, and finally a hard-coded id.
        """

        key = cache_key(ReferenceKind.STATUS, "device", source)
        cached = self._cached(key)
        if cached is not None:
            return cached

        repository = self._repositories.statuses
        try:
            status_id: int | None = None
            if override_id is not None and repository.get(override_id) is not None:
                status_id = override_id
            if status_id is None:
                status_id = _entity_id(repository.find_by_name(READY_TO_DEPLOY))
            if status_id is None:
                status_id = _entity_id(repository.first_deployable())
        except AssetSyncError:
            raise
        except Exception as exc:
            raise ReferenceResolutionError(ReferenceKind.STATUS, READY_TO_DEPLOY, str(exc)) from exc

        if status_id is None:
            log.warning(
                "No usable status label for %s devices; falling back to status id %s",
                source.label,
                FALLBACK_STATUS_ID,
            )
            status_id = FALLBACK_STATUS_ID
        self._staged[key] = status_id
        return status_id

    def location(self, name: str | None) -> int | None:
        """Match an existing location by name. Unknown names yield ``None``."""

        if not name or not name.strip():
            return None
        key = cache_key(ReferenceKind.LOCATION, name)
        cached = self._cached(key)
        if cached is not None:
            return cached
        try:
            location = self._repositories.locations.find_by_name(name)
        except AssetSyncError:
            raise
        except Exception as exc:
            raise ReferenceResolutionError(ReferenceKind.LOCATION, name, str(exc)) from exc
        location_id = _entity_id(location)
        if location_id is not None:
            self._staged[key] = location_id
        return location_id

    def _cached(self, key: str) -> int | None:
        staged = self._staged.get(key)
        if staged is not None:
            return staged
        return self._resolver.cache.get(key)

    def _exists(
        self,
        kind: ReferenceKind,
        entity_id: int,
        getter: Callable[[int], object | None],
    ) -> bool:
        try:
            return getter(entity_id) is not None
        except AssetSyncError:
            raise
        except Exception as exc:
            raise ReferenceResolutionError(kind, f"#{entity_id}", str(exc)) from exc

    def _find_or_create(
        self,
        kind: ReferenceKind,
        key: str,
        label: str,
        *,
        find: Callable[[], ReferenceEntity | None],
        create: Callable[[], ReferenceEntity],
    ) -> int:
        cached = self._cached(key)
        if cached is not None:
            return cached

        try:
            entity = find()
            if entity is None:
                entity = create()
                log.info("Created %s %r", kind, label)
        except AssetSyncError:
            raise
        except Exception as exc:
            raise ReferenceResolutionError(kind, label, str(exc)) from exc

        entity_id = _entity_id(entity)
        if entity_id is None:
            raise ReferenceResolutionError(kind, label, "the store did not assign an id")
        self._staged[key] = entity_id
        return entity_id


def _entity_id(entity: ReferenceEntity | None) -> int | None:
    return None if entity is None else entity.id
