"""Field schema model — FieldDefinition and EntityDefinition.

Field lists arrive as JSON documents (camelCase keys, as stored and as
typed by users) and are normalized into frozen pydantic models. Every
schema-level mistake surfaces as :class:`InvalidSchema`, never as a raw
pydantic error.

INVARIANT: field names are unique within one entity definition.
INVARIANT: length/pattern constraints apply only to string-like types,
min/max only to numbers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from entityctl.domain.errors import InvalidSchema
from entityctl.domain.types import STRING_LIKE_TYPES, FieldType

# Characters reserved by the filter/sort/select grammar and by JSON paths.
_RESERVED_CHARS = frozenset(':;,"')


class FieldDefinition(BaseModel):
    """One field of a runtime-defined entity."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    name: str
    type: FieldType
    required: bool = False
    unique: bool | None = None

    # String constraints
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None

    # Number constraints
    min: float | None = None
    max: float | None = None

    default_value: Any = None

    # Display hints (no effect on validation or querying)
    display_in_data_table: bool = True
    enable_search: bool = True

    @model_validator(mode="after")
    def _check_constraints(self) -> FieldDefinition:
        name = self.name
        if not name or name != name.strip():
            raise ValueError(f"Field name must be non-empty without surrounding spaces: {name!r}")
        if _RESERVED_CHARS & set(name):
            raise ValueError(f"Field name may not contain any of :;,\" characters: {name!r}")

        string_like = self.type in STRING_LIKE_TYPES
        if not string_like and (
            self.min_length is not None or self.max_length is not None or self.pattern is not None
        ):
            raise ValueError(f"minLength/maxLength/pattern only apply to string fields: {name}")
        if self.type != FieldType.NUMBER and (self.min is not None or self.max is not None):
            raise ValueError(f"min/max only apply to number fields: {name}")

        for attr in ("min_length", "max_length"):
            value = getattr(self, attr)
            if value is not None and value < 0:
                raise ValueError(f"{to_camel(attr)} must be >= 0: {name}")
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.min_length > self.max_length
        ):
            raise ValueError(f"minLength exceeds maxLength: {name}")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min exceeds max: {name}")

        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise ValueError(f"Invalid pattern for {name}: {exc}") from exc
        return self

    @property
    def has_default(self) -> bool:
        """True when a default value was declared (``None`` included)."""
        return "default_value" in self.model_fields_set

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting undeclared options."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class EntityDefinition(BaseModel):
    """A named entity schema owned by one tenant scope."""

    model_config = ConfigDict(frozen=True)

    id: str
    scope_id: str
    name: str
    table_name: str
    fields: tuple[FieldDefinition, ...] = Field(default_factory=tuple)
    created_at: str
    updated_at: str

    def field_map(self) -> dict[str, FieldDefinition]:
        return {f.name: f for f in self.fields}


def table_name_for(entity_name: str) -> str:
    """Derive the storage identifier: lower-cased, whitespace runs to ``_``.

    Examples:
        >>> table_name_for("Blog Post")
        'blog_post'
        >>> table_name_for("  Order   Line ")
        'order_line'
    """
    return re.sub(r"\s+", "_", entity_name.strip().lower())


def build_fields(raw: Iterable[Mapping[str, Any] | FieldDefinition]) -> tuple[FieldDefinition, ...]:
    """Normalize a raw field list into validated :class:`FieldDefinition` objects.

    Raises:
        InvalidSchema: On any malformed field or duplicate field name.
    """
    fields: list[FieldDefinition] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        if isinstance(item, FieldDefinition):
            field = item
        else:
            try:
                field = FieldDefinition.model_validate(item)
            except ValidationError as exc:
                problems = "; ".join(_describe(err) for err in exc.errors())
                raise InvalidSchema(
                    f"Invalid field definition at position {index}: {problems}",
                    position=index,
                ) from exc
        if field.name in seen:
            raise InvalidSchema(f"Duplicate field name: {field.name}", field=field.name)
        seen.add(field.name)
        fields.append(field)
    return tuple(fields)


def _describe(err: Mapping[str, Any]) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = str(err.get("msg", "invalid"))
    return f"{loc}: {msg}" if loc else msg
