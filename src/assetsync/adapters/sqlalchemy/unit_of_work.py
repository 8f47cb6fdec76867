"""SQLAlchemy unit of work for the asset registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from assetsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from assetsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyAssetModelRepository,
    SqlAlchemyAssetRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyCustomFieldRepository,
    SqlAlchemyLocationRepository,
    SqlAlchemyManufacturerRepository,
    SqlAlchemyStatusLabelRepository,
    SqlAlchemyUserRepository,
)
from assetsync.config.storage import get_database_config
from assetsync.domain.errors import RegistryUnavailableError
from assetsync.domain.ports.unit_of_work import RegistryRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """The registry adapter was used before ``startup()`` or started twice."""


@dataclass(slots=True)
class _EngineState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


_STATE = _EngineState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the registry to an engine, map the model and create missing tables."""

    if _STATE.engine is not None and not force:
        raise StartupError("Registry adapter already started. Pass force=True to rebind it.")

    resolved = engine or create_engine(database_uri or get_database_config().uri)
    start_mappers()
    create_all_tables(resolved)
    _STATE.engine = resolved
    _STATE.sessions = sessionmaker(bind=resolved, expire_on_commit=False)
    log.info("Registry bound to %s", resolved.url.render_as_string(hide_password=True))
    return resolved


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.sessions = None


def _session_factory() -> sessionmaker[Session]:
    if _STATE.sessions is None:
        raise StartupError(
            "Registry adapter not started. Call assetsync.adapters.sqlalchemy.startup() "
            "before opening a unit of work."
        )
    return _STATE.sessions


class SqlAlchemyRegistryUnitOfWork:
    """One session and one transaction; repositories are bound on ``__enter__``.

    Entering checks out a connection, so an unreachable database raises
    ``RegistryUnavailableError`` before any repository is touched.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _session_factory()
        self._session: Session | None = None
        self._repositories: RegistryRepositories | None = None

    def __enter__(self) -> SqlAlchemyRegistryUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self.session_factory()
        try:
            session.connection()
        except OperationalError as exc:
            session.close()
            raise RegistryUnavailableError(f"Registry database unavailable: {exc}") from exc
        self._session = session
        self._repositories = RegistryRepositories(
            assets=SqlAlchemyAssetRepository(session),
            manufacturers=SqlAlchemyManufacturerRepository(session),
            models=SqlAlchemyAssetModelRepository(session),
            categories=SqlAlchemyCategoryRepository(session),
            statuses=SqlAlchemyStatusLabelRepository(session),
            locations=SqlAlchemyLocationRepository(session),
            users=SqlAlchemyUserRepository(session),
            custom_fields=SqlAlchemyCustomFieldRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._open_session()
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        self._open_session().commit()

    def rollback(self) -> None:
        self._open_session().rollback()

    @property
    def repositories(self) -> RegistryRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def _open_session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session


if TYPE_CHECKING:
    from assetsync.domain.ports.unit_of_work import RegistryUnitOfWork

    _uow_check: RegistryUnitOfWork = SqlAlchemyRegistryUnitOfWork()
