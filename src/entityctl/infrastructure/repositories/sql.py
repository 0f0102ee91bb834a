"""Predicate tree to SQLAlchemy translation for JSON record payloads.

Every leaf addresses ``json_extract(data, '$."<field>"')``. Comparisons
are guarded by ``json_type`` so that SQLite's loose cross-type
comparisons agree with :meth:`Predicate.matches`: numbers only compare
with numbers, text with text, and JSON booleans are matched by type
rather than as the integers 0/1.

Text matching uses ``lower(...) LIKE ... ESCAPE '\\'``; SQLite's
``lower`` folds ASCII letters only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from sqlalchemy import ColumnElement, and_, false, func, literal, not_, or_, true

from entityctl.domain.predicates import (
    And,
    AnyOf,
    Contains,
    EndsWith,
    Equals,
    FieldAbsentOrNull,
    FieldPresent,
    GreaterOrEqual,
    GreaterThan,
    LessOrEqual,
    LessThan,
    MatchAll,
    NoneOf,
    NotEquals,
    Or,
    Predicate,
    StartsWith,
)
from entityctl.infrastructure.database.schema import entity_records

_LIKE_ESCAPE = "\\"


def json_path(field: str) -> str:
    """SQLite JSON path for a top-level key (names never contain ``"``)."""
    return f'$."{field}"'


def field_value(field: str) -> ColumnElement[Any]:
    return func.json_extract(entity_records.c.data, json_path(field))


def field_type(field: str) -> ColumnElement[Any]:
    return func.json_type(entity_records.c.data, json_path(field))


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def _type_guard(field: str, value: Any) -> ColumnElement[bool]:
    if isinstance(value, bool):
        return field_type(field) == ("true" if value else "false")
    if isinstance(value, (int, float)):
        return field_type(field).in_(("integer", "real"))
    return field_type(field) == "text"


def _present(field: str) -> ColumnElement[bool]:
    return field_value(field).is_not(None)


def _same(field: str, value: Any) -> ColumnElement[bool]:
    if isinstance(value, bool):
        return _type_guard(field, value)
    return and_(_type_guard(field, value), field_value(field) == literal(value))


def _like(field: str, pattern: str) -> ColumnElement[bool]:
    return and_(
        field_type(field) == "text",
        func.lower(field_value(field)).like(pattern.lower(), escape=_LIKE_ESCAPE),
    )


def _ordered(
    compare: Callable[[ColumnElement[Any], Any], ColumnElement[bool]],
) -> Callable[[Any], ColumnElement[bool]]:
    def translate(pred: Any) -> ColumnElement[bool]:
        if isinstance(pred.value, bool):
            return false()
        return and_(_type_guard(pred.path, pred.value), compare(field_value(pred.path), pred.value))

    return translate


def _any_of(pred: AnyOf) -> ColumnElement[bool]:
    if not pred.values:
        return false()
    return or_(*(_same(pred.path, v) for v in pred.values))


def _none_of(pred: NoneOf) -> ColumnElement[bool]:
    return and_(_present(pred.path), *(not_(_same(pred.path, v)) for v in pred.values))


_TRANSLATORS: dict[type[Predicate], Callable[[Any], ColumnElement[bool]]] = {
    MatchAll: lambda pred: true(),
    And: lambda pred: and_(true(), *(to_sql(c) for c in pred.children)),
    Or: lambda pred: or_(false(), *(to_sql(c) for c in pred.children)),
    Equals: lambda pred: _same(pred.path, pred.value),
    NotEquals: lambda pred: and_(_present(pred.path), not_(_same(pred.path, pred.value))),
    Contains: lambda pred: _like(pred.path, f"%{escape_like(str(pred.value))}%"),
    StartsWith: lambda pred: _like(pred.path, f"{escape_like(str(pred.value))}%"),
    EndsWith: lambda pred: _like(pred.path, f"%{escape_like(str(pred.value))}"),
    LessThan: _ordered(lambda col, v: col < v),
    LessOrEqual: _ordered(lambda col, v: col <= v),
    GreaterThan: _ordered(lambda col, v: col > v),
    GreaterOrEqual: _ordered(lambda col, v: col >= v),
    AnyOf: _any_of,
    NoneOf: _none_of,
    FieldAbsentOrNull: lambda pred: field_value(pred.path).is_(None),
    FieldPresent: lambda pred: _present(pred.path),
}


def to_sql(predicate: Predicate) -> ColumnElement[bool]:
    """Translate a predicate tree into a SQLAlchemy boolean expression.

    Raises:
        TypeError: For a predicate node with no translation.
    """
    translate = _TRANSLATORS.get(type(predicate))
    if translate is None:
        msg = f"No SQL translation for predicate {type(predicate).__name__}"
        raise TypeError(msg)
    return translate(predicate)
