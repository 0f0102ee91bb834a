"""Typed payload contracts for service boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions (for example ``records`` vs ``items``)
fail fast in tests and during development.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class DefinitionData(BaseModel):
    """One entity definition, fields in their camelCase wire form."""

    id: str
    scope_id: str
    name: str
    table_name: str
    fields: list[dict[str, Any]]
    created_at: str
    updated_at: str


class DefinitionListData(BaseModel):
    """Payload contract for ``DefinitionService.list``."""

    count: int
    items: list[DefinitionData]


class DeletedDefinitionData(BaseModel):
    """Payload contract for ``DefinitionService.delete``."""

    name: str
    records_deleted: int


class RecordData(BaseModel):
    """One stored record. ``data`` may be projected to a field subset."""

    model_config = ConfigDict(extra="allow")

    id: str
    entity_type: str
    data: dict[str, Any]
    created_at: str
    updated_at: str


class RecordListData(BaseModel):
    """Payload contract for ``RecordService.list``."""

    count: int
    items: list[RecordData]


class DeletedRecordData(BaseModel):
    """Payload contract for ``RecordService.delete``."""

    id: str
    entity_type: str
