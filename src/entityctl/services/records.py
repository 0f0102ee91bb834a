"""RecordService — create, read, query, update, and delete entity records.

Writes run the entity's cached validator (full mode on create, partial
mode on update). List requests run the query pipeline: parse and
validate the raw query fragments against the definition, fetch from the
store, project, and attach pagination metadata.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from entityctl.domain.errors import EntityError, NotFound
from entityctl.domain.fields import EntityDefinition
from entityctl.domain.ids import generate_id
from entityctl.domain.query import parse_query
from entityctl.domain.results import build_pagination_meta, project
from entityctl.domain.validation import RecordValidator, ValidationMode
from entityctl.infrastructure.repositories import RecordRepository
from entityctl.services._helpers import now_iso
from entityctl.services.base import BaseService
from entityctl.services.contracts import (
    DeletedRecordData,
    RecordData,
    RecordListData,
    dump_validated,
)
from entityctl.services.result import ServiceResult
from entityctl.services.telemetry import get_current_span, trace_span, traced

logger = logging.getLogger(__name__)


def _record_not_found(entity: str, record_id: str) -> NotFound:
    return NotFound(
        f"No {entity} record found with ID '{record_id}'",
        entity=entity,
        id=record_id,
    )


class RecordService(BaseService):
    """Manages records of runtime-defined entities within a tenant scope."""

    def _validator(self, definition: EntityDefinition) -> RecordValidator:
        # Regenerates on a cold or stale entry instead of rejecting the write.
        return self._store.validators.get_or_create(
            definition.scope_id, definition.name, definition.fields
        )

    @traced
    def create(self, scope_id: str, entity: str, data: Mapping[str, Any]) -> ServiceResult:
        """Validate *data* in full mode and store it as a new record."""
        op = "create_record"
        try:
            with self._store.transaction() as conn:
                definition = self._require_definition(conn, scope_id, entity)
                clean = self._validator(definition).apply(data, ValidationMode.FULL)
                record_id = generate_id("record")
                now = now_iso()
                RecordRepository(conn).insert(
                    record_id=record_id,
                    definition_id=definition.id,
                    scope_id=scope_id,
                    entity_type=definition.name,
                    data=clean,
                    created_at=now,
                )
        except EntityError as exc:
            return ServiceResult.failure(op, exc)

        logger.debug("Created %s record %s", definition.name, record_id)
        record = {
            "id": record_id,
            "entity_type": definition.name,
            "data": clean,
            "created_at": now,
            "updated_at": now,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(RecordData, record))

    @traced
    def get(self, scope_id: str, entity: str, record_id: str) -> ServiceResult:
        op = "get_record"
        try:
            with self._store.connect() as conn:
                definition = self._require_definition(conn, scope_id, entity)
                record = RecordRepository(conn).get(scope_id, definition.name, record_id)
                if record is None:
                    raise _record_not_found(definition.name, record_id)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=dump_validated(RecordData, record))

    @traced
    def list(
        self,
        scope_id: str,
        entity: str,
        *,
        search: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        select: str | None = None,
    ) -> ServiceResult:
        """Query records with the filter grammar, sort, pagination, and projection.

        ``meta`` carries ``total``/``page``/``limit``/``totalPages``/
        ``hasNextPage``/``hasPrevPage`` when *page* or *limit* is given,
        otherwise ``total`` and ``hasMore``.
        """
        op = "list_records"
        query_config = self._store.settings.query
        try:
            with self._store.connect() as conn:
                definition = self._require_definition(conn, scope_id, entity)
                root = get_current_span()
                if root is not None:
                    root.annotate("scope", scope_id)
                    root.annotate("entity", definition.name)
                with trace_span("parse_query") as span:
                    options = parse_query(
                        definition.fields,
                        search=search,
                        sort=sort,
                        page=page,
                        limit=limit,
                        select=select,
                        default_limit=query_config.default_limit,
                        max_limit=query_config.max_limit,
                    )
                    if span is not None and options.filters is not None:
                        span.annotate("filters", options.filters.to_dict())

                repo = RecordRepository(conn)
                with trace_span("fetch") as span:
                    rows = repo.find(
                        scope_id,
                        definition.name,
                        where=options.filters,
                        sort=options.sort,
                        pagination=options.pagination,
                    )
                    if options.pagination is not None:
                        total = repo.count(scope_id, definition.name, where=options.filters)
                    else:
                        total = len(rows)
                    if span is not None:
                        span.annotate("rows", len(rows))
        except EntityError as exc:
            return ServiceResult.failure(op, exc)

        items = project(rows, options.select)
        data = dump_validated(RecordListData, {"count": len(items), "items": items})
        meta = build_pagination_meta(total, options.pagination)
        return ServiceResult(ok=True, op=op, data=data, meta=meta)

    @traced
    def update(
        self,
        scope_id: str,
        entity: str,
        record_id: str,
        data: Mapping[str, Any],
    ) -> ServiceResult:
        """Validate *data* in partial mode and merge it into the stored record."""
        op = "update_record"
        try:
            with self._store.transaction() as conn:
                definition = self._require_definition(conn, scope_id, entity)
                repo = RecordRepository(conn)
                record = repo.get(scope_id, definition.name, record_id)
                if record is None:
                    raise _record_not_found(definition.name, record_id)
                changes = self._validator(definition).apply(data, ValidationMode.PARTIAL)
                merged = {**record["data"], **changes}
                now = now_iso()
                repo.update_data(record_id, merged, now)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)

        updated = {**record, "data": merged, "updated_at": now}
        result_data = dump_validated(RecordData, updated)
        result_data["fields_changed"] = sorted(changes)
        return ServiceResult(ok=True, op=op, data=result_data)

    @traced
    def delete(self, scope_id: str, entity: str, record_id: str) -> ServiceResult:
        op = "delete_record"
        try:
            with self._store.transaction() as conn:
                definition = self._require_definition(conn, scope_id, entity)
                repo = RecordRepository(conn)
                if repo.get(scope_id, definition.name, record_id) is None:
                    raise _record_not_found(definition.name, record_id)
                repo.delete(record_id)
        except EntityError as exc:
            return ServiceResult.failure(op, exc)

        data = dump_validated(DeletedRecordData, {"id": record_id, "entity_type": definition.name})
        return ServiceResult(ok=True, op=op, data=data)
