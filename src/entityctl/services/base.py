"""BaseService — abstract foundation for all entityctl services.

Every service receives a :class:`Store` at construction time. Services
own their transaction boundaries via ``self._store.transaction()`` and
convert core :class:`EntityError` exceptions into failed results; no
other exception type is turned into a result.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from entityctl.domain.errors import NotFound
from entityctl.infrastructure.repositories import DefinitionRepository

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from entityctl.domain.fields import EntityDefinition
    from entityctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class RecordService(BaseService):
            def create(self, scope_id: str, entity: str, data: dict) -> ServiceResult:
                with self._store.transaction() as conn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def _require_definition(self, conn: Connection, scope_id: str, name: str) -> EntityDefinition:
        """Load a definition or raise :class:`NotFound`."""
        definition = DefinitionRepository(conn).get(scope_id, name)
        if definition is None:
            raise NotFound(
                f"Entity definition '{name}' not found",
                scope_id=scope_id,
                entity=name,
            )
        return definition
