"""Error taxonomy for the query core.

Every failure is a well-formed rejection of a single request. Each error
carries a stable ``code`` and a ``detail`` dict so the service layer can
surface it as a :class:`~entityctl.services.result.ServiceError` without
inspecting messages.
"""

from __future__ import annotations

from typing import Any


class EntityError(Exception):
    """Base class for client-input errors raised by the core."""

    code: str = "ENTITY_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail


class MalformedFilter(EntityError):
    """A filter fragment does not follow ``field:operatorValue``."""

    code = "MALFORMED_FILTER"

    def __init__(self, fragment: str, reason: str = "Expected format: field:operatorValue") -> None:
        super().__init__(f"Invalid filter format: {fragment!r}. {reason}", fragment=fragment)
        self.fragment = fragment


class MalformedSort(EntityError):
    """A sort directive does not split into exactly ``field:direction``."""

    code = "MALFORMED_SORT"

    def __init__(self, directive: str) -> None:
        super().__init__(
            f"Invalid sort format: {directive!r}. Expected: field:direction (e.g. name:asc)",
            directive=directive,
        )


class UnknownField(EntityError):
    """A filter, sort, or select references a field absent from the schema."""

    code = "UNKNOWN_FIELD"

    def __init__(self, field: str, *, context: str = "filter") -> None:
        super().__init__(f"Unknown {context} field: {field}", field=field, context=context)
        self.field = field


class IncompatibleOperator(EntityError):
    """The operator is not valid for the field's declared type."""

    code = "INCOMPATIBLE_OPERATOR"

    def __init__(self, field: str, operator: str, field_type: str) -> None:
        super().__init__(
            f"Operator {operator} not supported for {field_type} field: {field}",
            field=field,
            operator=operator,
            field_type=field_type,
        )
        self.field = field
        self.operator = operator
        self.field_type = field_type


class InvalidSortDirection(EntityError):
    """Sort direction is neither ``asc`` nor ``desc``."""

    code = "INVALID_SORT_DIRECTION"

    def __init__(self, direction: str) -> None:
        super().__init__(
            f'Invalid sort direction: {direction!r}. Use "asc" or "desc"',
            direction=direction,
        )
        self.direction = direction


class InvalidSchema(EntityError):
    """A field definition itself is malformed."""

    code = "INVALID_SCHEMA"


class ValidationFailed(EntityError):
    """Aggregated per-field value errors from create/update validation."""

    code = "VALIDATION_FAILED"

    def __init__(self, errors: list[dict[str, str]]) -> None:
        fields = ", ".join(sorted({e["field"] for e in errors}))
        super().__init__(f"Validation failed: {fields}", errors=errors)
        self.errors = errors


class NotFound(EntityError):
    """A definition or record does not exist in the given scope."""

    code = "NOT_FOUND"


class Conflict(EntityError):
    """A definition name (or its derived table name) is already taken in the scope."""

    code = "CONFLICT"
