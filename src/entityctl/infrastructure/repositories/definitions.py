"""Repository for entity definitions (one row per scope + entity name)."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Connection, delete, func, insert, or_, select, update

from entityctl.domain.fields import EntityDefinition, FieldDefinition, build_fields
from entityctl.infrastructure.database.schema import entity_definitions, entity_records


def _dump_fields(fields: tuple[FieldDefinition, ...] | list[FieldDefinition]) -> str:
    return json.dumps([f.to_wire() for f in fields])


def _to_definition(row: Any) -> EntityDefinition:
    return EntityDefinition(
        id=row.id,
        scope_id=row.scope_id,
        name=row.name,
        table_name=row.table_name,
        fields=build_fields(json.loads(row.fields)),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DefinitionRepository:
    """Encapsulates SQL for entity definitions on one connection."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def insert(self, definition: EntityDefinition) -> None:
        self._conn.execute(
            insert(entity_definitions).values(
                id=definition.id,
                scope_id=definition.scope_id,
                name=definition.name,
                table_name=definition.table_name,
                fields=_dump_fields(definition.fields),
                created_at=definition.created_at,
                updated_at=definition.updated_at,
            )
        )

    def get(self, scope_id: str, name: str) -> EntityDefinition | None:
        row = self._conn.execute(
            select(entity_definitions).where(
                entity_definitions.c.scope_id == scope_id,
                entity_definitions.c.name == name,
            )
        ).first()
        return _to_definition(row) if row is not None else None

    def find_conflict(self, scope_id: str, name: str, table_name: str) -> str | None:
        """Return the name of a definition clashing on name or table name."""
        row = self._conn.execute(
            select(entity_definitions.c.name).where(
                entity_definitions.c.scope_id == scope_id,
                or_(
                    entity_definitions.c.name == name,
                    entity_definitions.c.table_name == table_name,
                ),
            )
        ).first()
        return str(row.name) if row is not None else None

    def list_in_scope(self, scope_id: str) -> list[EntityDefinition]:
        rows = self._conn.execute(
            select(entity_definitions)
            .where(entity_definitions.c.scope_id == scope_id)
            .order_by(entity_definitions.c.name)
        ).fetchall()
        return [_to_definition(r) for r in rows]

    def list_all(self) -> list[EntityDefinition]:
        """Every definition across all scopes (for validator warm-up)."""
        rows = self._conn.execute(
            select(entity_definitions).order_by(
                entity_definitions.c.scope_id, entity_definitions.c.name
            )
        ).fetchall()
        return [_to_definition(r) for r in rows]

    def update_fields(
        self,
        definition_id: str,
        fields: tuple[FieldDefinition, ...],
        updated_at: str,
    ) -> None:
        self._conn.execute(
            update(entity_definitions)
            .where(entity_definitions.c.id == definition_id)
            .values(fields=_dump_fields(fields), updated_at=updated_at)
        )

    def count_records(self, definition_id: str) -> int:
        stmt = select(func.count(entity_records.c.id)).where(
            entity_records.c.definition_id == definition_id
        )
        return int(self._conn.execute(stmt).scalar_one() or 0)

    def delete(self, definition_id: str) -> int:
        """Delete a definition and all of its records; return records removed."""
        removed = self._conn.execute(
            delete(entity_records).where(entity_records.c.definition_id == definition_id)
        ).rowcount
        self._conn.execute(delete(entity_definitions).where(entity_definitions.c.id == definition_id))
        return int(removed or 0)
