"""Store — the single dependency injected into every service.

The Store owns the database engine, the resolved settings, and the
process-wide :class:`ValidatorCache`. On construction it warms the cache
from every persisted definition, so the first write after startup does
not pay for validator generation.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from entityctl.domain.validation import ValidatorCache
from entityctl.infrastructure.database.engine import init_database
from entityctl.infrastructure.repositories import DefinitionRepository

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from entityctl.config.settings import EntitySettings

logger = logging.getLogger(__name__)


class Store:
    """Database access plus the validator cache.

    Constructed once at CLI startup from :class:`EntitySettings`.
    Services receive the Store via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: EntitySettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.db_path)
        self._validators = ValidatorCache()
        self.warm_validators()

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> EntitySettings:
        return self._settings

    @property
    def validators(self) -> ValidatorCache:
        """Validators keyed by ``(scope_id, entity_name)``."""
        return self._validators

    def warm_validators(self) -> int:
        """Rebuild the validator cache from all persisted definitions."""
        with self._engine.connect() as conn:
            definitions = DefinitionRepository(conn).list_all()
        self._validators.clear()
        count = self._validators.warm(definitions)
        logger.debug("Warmed %d validators", count)
        return count

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside ``engine.begin()``.

        Commits when the block exits normally, rolls back on any exception.

        Usage::

            with store.transaction() as conn:
                RecordRepository(conn).insert(...)
        """
        with self._engine.begin() as conn:
            yield conn

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a read connection (no implicit commit)."""
        with self._engine.connect() as conn:
            yield conn

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()
