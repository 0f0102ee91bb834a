"""Repository for entity records — JSON payloads queried via ``json_extract``."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Connection, Select, delete, func, insert, select, update

from entityctl.domain.predicates import Predicate
from entityctl.domain.query import PaginationOptions, SortOptions
from entityctl.domain.types import SortDirection
from entityctl.infrastructure.database.schema import entity_records
from entityctl.infrastructure.repositories.sql import field_value, to_sql


def _to_record(row: Any) -> dict[str, Any]:
    return {
        "id": row.id,
        "entity_type": row.entity_type,
        "data": json.loads(row.data),
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


class RecordRepository:
    """Encapsulates SQL for record reads and writes on one connection."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def insert(
        self,
        *,
        record_id: str,
        definition_id: str,
        scope_id: str,
        entity_type: str,
        data: dict[str, Any],
        created_at: str,
    ) -> None:
        self._conn.execute(
            insert(entity_records).values(
                id=record_id,
                definition_id=definition_id,
                scope_id=scope_id,
                entity_type=entity_type,
                data=json.dumps(data),
                created_at=created_at,
                updated_at=created_at,
            )
        )

    def get(self, scope_id: str, entity_type: str, record_id: str) -> dict[str, Any] | None:
        row = self._conn.execute(
            select(entity_records).where(
                entity_records.c.scope_id == scope_id,
                entity_records.c.entity_type == entity_type,
                entity_records.c.id == record_id,
            )
        ).first()
        return _to_record(row) if row is not None else None

    def update_data(self, record_id: str, data: dict[str, Any], updated_at: str) -> None:
        self._conn.execute(
            update(entity_records)
            .where(entity_records.c.id == record_id)
            .values(data=json.dumps(data), updated_at=updated_at)
        )

    def delete(self, record_id: str) -> None:
        self._conn.execute(delete(entity_records).where(entity_records.c.id == record_id))

    def find(
        self,
        scope_id: str,
        entity_type: str,
        *,
        where: Predicate | None = None,
        sort: SortOptions | None = None,
        pagination: PaginationOptions | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch matching records, newest first unless *sort* is given."""
        stmt = self._filtered(select(entity_records), scope_id, entity_type, where)

        if sort is not None:
            key = field_value(sort.field)
            stmt = stmt.order_by(key.desc() if sort.direction == SortDirection.DESC else key.asc())
        stmt = stmt.order_by(entity_records.c.created_at.desc(), entity_records.c.id.desc())

        if pagination is not None:
            stmt = stmt.offset(pagination.offset).limit(pagination.limit)

        rows = self._conn.execute(stmt).fetchall()
        return [_to_record(r) for r in rows]

    def count(
        self,
        scope_id: str,
        entity_type: str,
        *,
        where: Predicate | None = None,
    ) -> int:
        """Count records matching the same filter as :meth:`find`."""
        stmt = self._filtered(
            select(func.count(entity_records.c.id)), scope_id, entity_type, where
        )
        return int(self._conn.execute(stmt).scalar_one() or 0)

    @staticmethod
    def _filtered(
        stmt: Select[Any],
        scope_id: str,
        entity_type: str,
        where: Predicate | None,
    ) -> Select[Any]:
        stmt = stmt.where(
            entity_records.c.scope_id == scope_id,
            entity_records.c.entity_type == entity_type,
        )
        if where is not None:
            stmt = stmt.where(to_sql(where))
        return stmt
