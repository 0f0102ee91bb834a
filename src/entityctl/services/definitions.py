"""DefinitionService — define, inspect, update, and delete entity schemas.

Each successful write is persisted first and only then reflected in the
validator cache, so a failed transaction never leaves a validator for a
schema that does not exist.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.exc import IntegrityError

from entityctl.domain.errors import Conflict, EntityError, InvalidSchema
from entityctl.domain.fields import EntityDefinition, FieldDefinition, build_fields, table_name_for
from entityctl.domain.ids import generate_id
from entityctl.infrastructure.repositories import DefinitionRepository
from entityctl.services._helpers import now_iso
from entityctl.services.base import BaseService
from entityctl.services.contracts import (
    DefinitionData,
    DefinitionListData,
    DeletedDefinitionData,
    dump_validated,
)
from entityctl.services.result import ServiceResult
from entityctl.services.telemetry import traced

logger = logging.getLogger(__name__)

RawFields = Sequence[Mapping[str, Any] | FieldDefinition]


def definition_payload(definition: EntityDefinition) -> dict[str, Any]:
    """Serialize a definition for a result payload."""
    return dump_validated(
        DefinitionData,
        {
            "id": definition.id,
            "scope_id": definition.scope_id,
            "name": definition.name,
            "table_name": definition.table_name,
            "fields": [f.to_wire() for f in definition.fields],
            "created_at": definition.created_at,
            "updated_at": definition.updated_at,
        },
    )


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise InvalidSchema("Entity name must not be empty")
    return cleaned


class DefinitionService(BaseService):
    """Manages entity definitions within a tenant scope."""

    @traced
    def define(self, scope_id: str, name: str, fields: RawFields) -> ServiceResult:
        """Create a new entity definition and cache its validator."""
        op = "define_entity"
        try:
            entity_name = _clean_name(name)
            field_defs = build_fields(fields)
            table_name = table_name_for(entity_name)
            now = now_iso()
            definition = EntityDefinition(
                id=generate_id("definition"),
                scope_id=scope_id,
                name=entity_name,
                table_name=table_name,
                fields=field_defs,
                created_at=now,
                updated_at=now,
            )
            with self._store.transaction() as conn:
                repo = DefinitionRepository(conn)
                existing = repo.find_conflict(scope_id, entity_name, table_name)
                if existing is not None:
                    raise _conflict(existing, entity_name, table_name)
                repo.insert(definition)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)
        except IntegrityError:
            # Lost a race with a concurrent define of the same name.
            return ServiceResult.failure(op, _conflict(entity_name, entity_name, table_name))

        self._store.validators.put(scope_id, entity_name, field_defs)
        logger.info("Defined entity %s in scope %s", entity_name, scope_id)
        return ServiceResult(ok=True, op=op, data=definition_payload(definition))

    @traced
    def list(self, scope_id: str) -> ServiceResult:
        """List all definitions in *scope_id*, ordered by name."""
        with self._store.connect() as conn:
            definitions = DefinitionRepository(conn).list_in_scope(scope_id)
        data = dump_validated(
            DefinitionListData,
            {
                "count": len(definitions),
                "items": [definition_payload(d) for d in definitions],
            },
        )
        return ServiceResult(ok=True, op="list_entities", data=data)

    @traced
    def get(self, scope_id: str, name: str) -> ServiceResult:
        op = "get_entity"
        try:
            with self._store.connect() as conn:
                definition = self._require_definition(conn, scope_id, name)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=definition_payload(definition))

    @traced
    def update(self, scope_id: str, name: str, fields: RawFields) -> ServiceResult:
        """Replace a definition's field list and regenerate its validator.

        Existing records are left as stored; they are not re-validated
        against the new field list.
        """
        op = "update_entity"
        warnings: list[str] = []
        try:
            field_defs = build_fields(fields)
            now = now_iso()
            with self._store.transaction() as conn:
                current = self._require_definition(conn, scope_id, name)
                repo = DefinitionRepository(conn)
                repo.update_fields(current.id, field_defs, now)
                existing_records = repo.count_records(current.id)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)

        self._store.validators.put(scope_id, current.name, field_defs)
        if existing_records:
            warnings.append(
                f"{existing_records} existing record(s) were not re-validated "
                "against the new field list"
            )
        updated = current.model_copy(update={"fields": field_defs, "updated_at": now})
        logger.info("Updated entity %s in scope %s", current.name, scope_id)
        return ServiceResult(ok=True, op=op, data=definition_payload(updated), warnings=warnings)

    @traced
    def delete(self, scope_id: str, name: str) -> ServiceResult:
        """Delete a definition, cascading to all of its records."""
        op = "delete_entity"
        try:
            with self._store.transaction() as conn:
                current = self._require_definition(conn, scope_id, name)
                removed = DefinitionRepository(conn).delete(current.id)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)

        self._store.validators.invalidate(scope_id, current.name)
        logger.info("Deleted entity %s (%d records) in scope %s", current.name, removed, scope_id)
        data = dump_validated(
            DeletedDefinitionData,
            {"name": current.name, "records_deleted": removed},
        )
        return ServiceResult(ok=True, op=op, data=data)


def _conflict(existing: str, name: str, table_name: str) -> Conflict:
    if existing == name:
        return Conflict(f'Entity with name "{name}" already exists', entity=name)
    return Conflict(
        f'Entity "{existing}" already uses table name "{table_name}"',
        entity=name,
        existing=existing,
        table_name=table_name,
    )
