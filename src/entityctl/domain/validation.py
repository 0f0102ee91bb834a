"""Schema-driven value validation for record payloads.

A :class:`RecordValidator` is generated from an entity's field list as a
pair of pydantic ``TypeAdapter`` objects over dynamically built
``TypedDict`` shapes: one honoring ``required`` (create), one with every
key optional (update). Errors are aggregated per field and raised as
:class:`ValidationFailed`.

:class:`ValidatorCache` is the only shared mutable state in the query
core. Writers build a validator completely and then swap it in under a
lock with a single dict assignment; readers never lock and always see
either the old or the new validator, never a mix.
"""

from __future__ import annotations

import logging
import math
import re
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Annotated, Any, NotRequired, TypedDict

from pydantic import AfterValidator, AnyUrl, BeforeValidator, EmailStr, Field, PlainValidator
from pydantic import StrictBool, StrictStr, TypeAdapter, ValidationError
from pydantic_core import PydanticCustomError

from entityctl.domain.errors import InvalidSchema, ValidationFailed
from entityctl.domain.fields import EntityDefinition, FieldDefinition
from entityctl.domain.types import FieldType
from entityctl.domain.values import canonical_datetime

logger = logging.getLogger(__name__)

ROOT_FIELD = "_root"

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


class ValidationMode(StrEnum):
    """``full`` on create; ``partial`` on update (every field optional)."""

    FULL = "full"
    PARTIAL = "partial"


# ---------------------------------------------------------------------------
# Per-type value checks
# ---------------------------------------------------------------------------


def _check_number(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PydanticCustomError("number_type", "Input should be a valid number")
    if isinstance(value, float) and not math.isfinite(value):
        raise PydanticCustomError("finite_number", "Input should be a finite number")
    return value


def _number_range(minimum: float | None, maximum: float | None) -> Callable[[Any], Any]:
    def check(value: int | float) -> int | float:
        if minimum is not None and value < minimum:
            raise PydanticCustomError(
                "greater_than_equal",
                "Input should be greater than or equal to {ge}",
                {"ge": minimum},
            )
        if maximum is not None and value > maximum:
            raise PydanticCustomError(
                "less_than_equal",
                "Input should be less than or equal to {le}",
                {"le": maximum},
            )
        return value

    return check


def _length_range(minimum: int | None, maximum: int | None) -> Callable[[str], str]:
    # For email and url, whose base schemas are validator-wrapped.
    def check(value: str) -> str:
        if minimum is not None and len(value) < minimum:
            raise PydanticCustomError(
                "string_too_short",
                "String should have at least {min_length} characters",
                {"min_length": minimum},
            )
        if maximum is not None and len(value) > maximum:
            raise PydanticCustomError(
                "string_too_long",
                "String should have at most {max_length} characters",
                {"max_length": maximum},
            )
        return value

    return check


def _pattern_match(pattern: str) -> Callable[[str], str]:
    compiled = re.compile(pattern)

    def check(value: str) -> str:
        if compiled.search(value) is None:
            raise PydanticCustomError(
                "string_pattern_mismatch",
                "String should match pattern '{pattern}'",
                {"pattern": pattern},
            )
        return value

    return check


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        raise PydanticCustomError("url_parsing", "Input should be a valid URL") from None
    return value


def _date_input(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and _ISO_DATE_PREFIX.match(value):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    raise PydanticCustomError("date_format", "Input should be an ISO 8601 date or datetime")


def _field_annotation(field_def: FieldDefinition) -> Any:
    """Build the pydantic annotation for one field definition."""
    ftype = field_def.type
    metadata: list[Any] = []

    if ftype == FieldType.STRING:
        base: Any = StrictStr
        if field_def.min_length is not None or field_def.max_length is not None:
            metadata.append(Field(min_length=field_def.min_length, max_length=field_def.max_length))
        if field_def.pattern is not None:
            metadata.append(AfterValidator(_pattern_match(field_def.pattern)))
    elif ftype == FieldType.NUMBER:
        base = Any
        metadata.append(PlainValidator(_check_number))
        if field_def.min is not None or field_def.max is not None:
            metadata.append(AfterValidator(_number_range(field_def.min, field_def.max)))
    elif ftype == FieldType.BOOLEAN:
        base = StrictBool
    elif ftype == FieldType.EMAIL:
        base = EmailStr
    elif ftype == FieldType.URL:
        base = StrictStr
        metadata.append(AfterValidator(_check_url))
    elif ftype == FieldType.DATE:
        base = datetime
        metadata.extend([BeforeValidator(_date_input), AfterValidator(canonical_datetime)])
    else:
        raise InvalidSchema(
            f"Unknown field type: {ftype} for field: {field_def.name}",
            field=field_def.name,
        )

    # Length/pattern constraints also narrow email and url values.
    if ftype in (FieldType.EMAIL, FieldType.URL):
        if field_def.min_length is not None or field_def.max_length is not None:
            length = _length_range(field_def.min_length, field_def.max_length)
            metadata.append(AfterValidator(length))
        if field_def.pattern is not None:
            metadata.append(AfterValidator(_pattern_match(field_def.pattern)))

    if not metadata:
        return base
    return Annotated[base, *metadata]


# ---------------------------------------------------------------------------
# RecordValidator
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class RecordValidator:
    """Validates record payloads for one entity's field list."""

    fields: tuple[FieldDefinition, ...]
    _full: TypeAdapter[Any] = field(repr=False)
    _partial: TypeAdapter[Any] = field(repr=False)

    def apply(
        self,
        data: Any,
        mode: ValidationMode = ValidationMode.FULL,
    ) -> dict[str, Any]:
        """Validate *data* and return the sanitized payload.

        Unknown keys are dropped. Optional fields accept ``None``;
        required ones never do. In full mode, declared defaults fill
        absent keys; partial mode never injects defaults.

        Raises:
            ValidationFailed: With one ``{field, message}`` entry per failing field.
        """
        if not isinstance(data, Mapping):
            raise ValidationFailed([{"field": ROOT_FIELD, "message": "Input should be an object"}])

        payload = dict(data)
        if mode == ValidationMode.FULL:
            for f in self.fields:
                if f.has_default and f.name not in payload:
                    payload[f.name] = f.default_value
            adapter = self._full
        else:
            adapter = self._partial

        try:
            validated = adapter.validate_python(payload)
        except ValidationError as exc:
            raise ValidationFailed(_collect_errors(exc)) from None
        return dict(validated)


def generate_validator(fields: Sequence[FieldDefinition]) -> RecordValidator:
    """Generate a :class:`RecordValidator` from field definitions.

    Raises:
        InvalidSchema: When a field carries an unrecognized type.
    """
    full_shape: dict[str, Any] = {}
    partial_shape: dict[str, Any] = {}
    for f in fields:
        annotation = _field_annotation(f)
        if f.required:
            full_shape[f.name] = annotation
        else:
            # Optional fields may be cleared with an explicit null.
            annotation = annotation | None
            full_shape[f.name] = NotRequired[annotation]
        partial_shape[f.name] = NotRequired[annotation]

    full = TypedDict("RecordPayload", full_shape)  # type: ignore[misc]
    partial = TypedDict("PartialRecordPayload", partial_shape)  # type: ignore[misc]
    return RecordValidator(
        fields=tuple(fields),
        _full=TypeAdapter(full),
        _partial=TypeAdapter(partial),
    )


def _collect_errors(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into one ``{field, message}`` per field."""
    errors: list[dict[str, str]] = []
    seen: set[str] = set()
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = str(loc[0]) if loc else ROOT_FIELD
        if name in seen:
            continue
        seen.add(name)
        errors.append({"field": name, "message": err["msg"]})
    return errors


# ---------------------------------------------------------------------------
# ValidatorCache
# ---------------------------------------------------------------------------


class ValidatorCache:
    """Validators keyed by ``(scope_id, entity_name)``.

    Each entry remembers the field list it was generated from; a lookup
    with a different field list regenerates the entry, so a cold or stale
    cache never rejects a valid write.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], RecordValidator] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, scope_id: str, entity_name: str) -> RecordValidator | None:
        return self._entries.get((scope_id, entity_name))

    def put(
        self,
        scope_id: str,
        entity_name: str,
        fields: Sequence[FieldDefinition],
    ) -> RecordValidator:
        """Generate a validator and swap it in for the key."""
        validator = generate_validator(fields)
        with self._lock:
            self._entries[(scope_id, entity_name)] = validator
        logger.debug("Cached validator for %s:%s", scope_id, entity_name)
        return validator

    def get_or_create(
        self,
        scope_id: str,
        entity_name: str,
        fields: Sequence[FieldDefinition],
    ) -> RecordValidator:
        validator = self.get(scope_id, entity_name)
        if validator is None or validator.fields != tuple(fields):
            validator = self.put(scope_id, entity_name, fields)
        return validator

    def invalidate(self, scope_id: str, entity_name: str) -> None:
        with self._lock:
            self._entries.pop((scope_id, entity_name), None)
        logger.debug("Invalidated validator for %s:%s", scope_id, entity_name)

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def warm(self, definitions: Iterable[EntityDefinition]) -> int:
        """Eagerly (re)build validators for persisted definitions.

        Returns the number of validators cached.
        """
        count = 0
        for definition in definitions:
            self.put(definition.scope_id, definition.name, definition.fields)
            count += 1
        return count
