"""Field types, filter operators, and the operator compatibility table.

The compatibility table decides which operators a filter may apply to a
field of a given declared type. It is checked on the operator only, never
on the runtime type of the coerced filter value.
"""

from __future__ import annotations

from enum import StrEnum


class FieldType(StrEnum):
    """Declared type of an entity field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMAIL = "email"
    DATE = "date"
    URL = "url"


class FilterOperator(StrEnum):
    """Operator tokens of the compact filter grammar."""

    EQUALS = "eq"
    NOT_EQUALS = "ne"
    LIKE = "lk"
    STARTS_WITH = "sw"
    ENDS_WITH = "ew"
    LESS_THAN = "lt"
    LESS_THAN_EQUAL = "lte"
    GREATER_THAN = "gt"
    GREATER_THAN_EQUAL = "gte"
    IN = "in"
    NOT_IN = "nin"
    IS_TRUE = "true"
    IS_FALSE = "false"
    IS_NULL = "null"
    IS_NOT_NULL = "notnull"


class SortDirection(StrEnum):
    """Sort direction for a ``field:direction`` directive."""

    ASC = "asc"
    DESC = "desc"


STRING_LIKE_TYPES: frozenset[FieldType] = frozenset(
    {FieldType.STRING, FieldType.EMAIL, FieldType.URL}
)

_STRING_OPS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.LIKE,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
        FilterOperator.IS_NULL,
        FilterOperator.IS_NOT_NULL,
    }
)

_ORDERED_OPS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.LESS_THAN,
        FilterOperator.LESS_THAN_EQUAL,
        FilterOperator.GREATER_THAN,
        FilterOperator.GREATER_THAN_EQUAL,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
        FilterOperator.IS_NULL,
        FilterOperator.IS_NOT_NULL,
    }
)

_BOOLEAN_OPS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.IS_TRUE,
        FilterOperator.IS_FALSE,
        FilterOperator.IS_NULL,
        FilterOperator.IS_NOT_NULL,
    }
)

ALLOWED_OPERATORS: dict[FieldType, frozenset[FilterOperator]] = {
    FieldType.STRING: _STRING_OPS,
    FieldType.EMAIL: _STRING_OPS,
    FieldType.URL: _STRING_OPS,
    FieldType.NUMBER: _ORDERED_OPS,
    FieldType.DATE: _ORDERED_OPS,
    FieldType.BOOLEAN: _BOOLEAN_OPS,
}
