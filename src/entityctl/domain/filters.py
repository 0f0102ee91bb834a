"""Filter grammar parser — ``field:opValue;field2:opValue2`` into conditions.

Grammar::

    search    = condition (";" condition)*
    condition = field ":" operator-token value
    operator  = gte | lte | sw | ew | ne | lk | gt | lt | eq
              | in[...] | nin[...] | true | false | null | notnull
              | ""        (empty operator means eq)

Operator resolution walks :data:`_PREFIX_OPERATORS` in order and the
first match wins. Longer tokens precede the shorter tokens they start
with (``gte`` before ``gt``), so the table order is load-bearing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from entityctl.domain.errors import MalformedFilter
from entityctl.domain.types import FilterOperator
from entityctl.domain.values import coerce_value

# Whole-segment literals: checked before any prefix.
_LITERAL_OPERATORS: dict[str, tuple[FilterOperator, Any]] = {
    "true": (FilterOperator.IS_TRUE, True),
    "false": (FilterOperator.IS_FALSE, False),
    "null": (FilterOperator.IS_NULL, None),
    "notnull": (FilterOperator.IS_NOT_NULL, None),
}

# Bracketed list operators: token prefix including the opening bracket.
_LIST_OPERATORS: tuple[tuple[str, FilterOperator], ...] = (
    ("in[", FilterOperator.IN),
    ("nin[", FilterOperator.NOT_IN),
)

_PREFIX_OPERATORS: tuple[FilterOperator, ...] = (
    FilterOperator.GREATER_THAN_EQUAL,
    FilterOperator.LESS_THAN_EQUAL,
    FilterOperator.STARTS_WITH,
    FilterOperator.ENDS_WITH,
    FilterOperator.NOT_EQUALS,
    FilterOperator.LIKE,
    FilterOperator.GREATER_THAN,
    FilterOperator.LESS_THAN,
    FilterOperator.EQUALS,
)


@dataclass(frozen=True)
class FilterCondition:
    """One parsed ``field:opValue`` condition.

    ``value`` is the shape-coerced value; ``raw`` keeps the text exactly as
    typed (a tuple of tokens for list operators) so later stages can
    re-type it from the field's declared type.
    """

    field: str
    operator: FilterOperator
    value: Any
    raw: str | tuple[str, ...] | None = None


def parse_filters(search: str | None) -> list[FilterCondition]:
    """Parse a filter string into an ordered list of conditions.

    Empty or blank input yields an empty list.

    Raises:
        MalformedFilter: On a fragment without ``:`` (an empty fragment,
            such as the one after a trailing ``;``, included), with an
            empty field name, or with an empty operator-value segment.

    Examples:
        >>> [c.operator.value for c in parse_filters("price:gte10;name:lkbob")]
        ['gte', 'lk']
        >>> parse_filters("")
        []
    """
    if not search or not search.strip():
        return []

    return [parse_condition(fragment.strip()) for fragment in search.split(";")]


def parse_condition(fragment: str) -> FilterCondition:
    """Parse a single ``field:operatorValue`` fragment."""
    field, sep, operator_value = fragment.partition(":")
    if not sep:
        raise MalformedFilter(fragment)
    if not field:
        raise MalformedFilter(fragment, "Field name is empty")
    if not operator_value:
        raise MalformedFilter(fragment, "Operator and value are empty")

    operator, value, raw = _parse_operator_value(operator_value)
    return FilterCondition(field=field, operator=operator, value=value, raw=raw)


def _parse_operator_value(
    operator_value: str,
) -> tuple[FilterOperator, Any, str | tuple[str, ...] | None]:
    literal = _LITERAL_OPERATORS.get(operator_value)
    if literal is not None:
        return literal[0], literal[1], None

    if operator_value.endswith("]"):
        for token, operator in _LIST_OPERATORS:
            if operator_value.startswith(token):
                tokens = tuple(v.strip() for v in operator_value[len(token) : -1].split(","))
                return operator, [coerce_value(t) for t in tokens], tokens

    for operator in _PREFIX_OPERATORS:
        if operator_value.startswith(operator.value):
            rest = operator_value[len(operator.value) :]
            return operator, coerce_value(rest), rest

    return FilterOperator.EQUALS, coerce_value(operator_value), operator_value
