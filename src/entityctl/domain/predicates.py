"""Condition compiler — validated conditions into a backend-neutral predicate tree.

Records are schemaless JSON documents, so every leaf predicate addresses
a *path* into the document (the field name) rather than a relational
column. Each storage backend translates the tree on its own terms: the
SQLite store renders ``json_extract`` conditions, and :meth:`Predicate.matches`
evaluates the same tree in memory.

Missing-value semantics follow SQL three-valued logic so all backends
agree: every comparison (``NotEquals`` and ``NoneOf`` included) is false
for a record whose field is absent or null. Only ``FieldAbsentOrNull``
selects such records.
"""

from __future__ import annotations

import operator as op
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar

from entityctl.domain.fields import FieldDefinition
from entityctl.domain.filters import FilterCondition
from entityctl.domain.types import STRING_LIKE_TYPES, FieldType, FilterOperator
from entityctl.domain.values import canonical_datetime

# ---------------------------------------------------------------------------
# Predicate tree
# ---------------------------------------------------------------------------


class Predicate(ABC):
    """Base class for all predicate nodes."""

    @abstractmethod
    def matches(self, data: Mapping[str, Any]) -> bool:
        """Evaluate against one record's ``data`` document."""
        ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Plain nested-dict form, for logging and foreign backends."""
        ...


@dataclass(frozen=True)
class MatchAll(Predicate):
    """Identity predicate: no filtering."""

    def matches(self, data: Mapping[str, Any]) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"op": "match_all"}


@dataclass(frozen=True)
class And(Predicate):
    children: tuple[Predicate, ...]

    def matches(self, data: Mapping[str, Any]) -> bool:
        return all(child.matches(data) for child in self.children)

    def to_dict(self) -> dict[str, Any]:
        return {"op": "and", "children": [c.to_dict() for c in self.children]}


@dataclass(frozen=True)
class Or(Predicate):
    children: tuple[Predicate, ...]

    def matches(self, data: Mapping[str, Any]) -> bool:
        return any(child.matches(data) for child in self.children)

    def to_dict(self) -> dict[str, Any]:
        return {"op": "or", "children": [c.to_dict() for c in self.children]}


@dataclass(frozen=True)
class FieldPredicate(Predicate):
    """A test on the value found at ``path`` in the record document."""

    path: str

    op_name: ClassVar[str] = "field"

    def matches(self, data: Mapping[str, Any]) -> bool:
        actual = data.get(self.path)
        if actual is None:
            return False
        return self._test(actual)

    def _test(self, actual: Any) -> bool:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op_name, "path": self.path}


@dataclass(frozen=True)
class _ValuePredicate(FieldPredicate):
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op_name, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class Equals(_ValuePredicate):
    op_name: ClassVar[str] = "equals"

    def _test(self, actual: Any) -> bool:
        return _same(actual, self.value)


@dataclass(frozen=True)
class NotEquals(_ValuePredicate):
    op_name: ClassVar[str] = "not_equals"

    def _test(self, actual: Any) -> bool:
        return not _same(actual, self.value)


@dataclass(frozen=True)
class Contains(_ValuePredicate):
    """Case-insensitive substring test."""

    op_name: ClassVar[str] = "contains"

    def _test(self, actual: Any) -> bool:
        return isinstance(actual, str) and str(self.value).lower() in actual.lower()


@dataclass(frozen=True)
class StartsWith(_ValuePredicate):
    op_name: ClassVar[str] = "starts_with"

    def _test(self, actual: Any) -> bool:
        return isinstance(actual, str) and actual.lower().startswith(str(self.value).lower())


@dataclass(frozen=True)
class EndsWith(_ValuePredicate):
    op_name: ClassVar[str] = "ends_with"

    def _test(self, actual: Any) -> bool:
        return isinstance(actual, str) and actual.lower().endswith(str(self.value).lower())


@dataclass(frozen=True)
class _Ordered(_ValuePredicate):
    compare: ClassVar[Callable[[Any, Any], bool]] = staticmethod(op.lt)

    def _test(self, actual: Any) -> bool:
        return _comparable(actual, self.value) and self.compare(actual, self.value)


@dataclass(frozen=True)
class LessThan(_Ordered):
    op_name: ClassVar[str] = "less_than"
    compare: ClassVar[Callable[[Any, Any], bool]] = staticmethod(op.lt)


@dataclass(frozen=True)
class LessOrEqual(_Ordered):
    op_name: ClassVar[str] = "less_or_equal"
    compare: ClassVar[Callable[[Any, Any], bool]] = staticmethod(op.le)


@dataclass(frozen=True)
class GreaterThan(_Ordered):
    op_name: ClassVar[str] = "greater_than"
    compare: ClassVar[Callable[[Any, Any], bool]] = staticmethod(op.gt)


@dataclass(frozen=True)
class GreaterOrEqual(_Ordered):
    op_name: ClassVar[str] = "greater_or_equal"
    compare: ClassVar[Callable[[Any, Any], bool]] = staticmethod(op.ge)


@dataclass(frozen=True)
class AnyOf(FieldPredicate):
    """``in[...]``: OR of equals."""

    values: tuple[Any, ...] = ()

    op_name: ClassVar[str] = "any_of"

    def _test(self, actual: Any) -> bool:
        return any(_same(actual, v) for v in self.values)

    def expand(self) -> Or:
        return Or(tuple(Equals(self.path, v) for v in self.values))

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op_name, "path": self.path, "values": list(self.values)}


@dataclass(frozen=True)
class NoneOf(FieldPredicate):
    """``nin[...]``: AND of not-equals."""

    values: tuple[Any, ...] = ()

    op_name: ClassVar[str] = "none_of"

    def _test(self, actual: Any) -> bool:
        return not any(_same(actual, v) for v in self.values)

    def expand(self) -> And:
        return And(tuple(NotEquals(self.path, v) for v in self.values))

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op_name, "path": self.path, "values": list(self.values)}


@dataclass(frozen=True)
class FieldAbsentOrNull(FieldPredicate):
    """True when the key is missing or holds null."""

    op_name: ClassVar[str] = "absent_or_null"

    def matches(self, data: Mapping[str, Any]) -> bool:
        return data.get(self.path) is None


@dataclass(frozen=True)
class FieldPresent(FieldPredicate):
    """Logical complement of :class:`FieldAbsentOrNull`."""

    op_name: ClassVar[str] = "present"

    def matches(self, data: Mapping[str, Any]) -> bool:
        return data.get(self.path) is not None


def _same(actual: Any, expected: Any) -> bool:
    # JSON keeps booleans distinct from numbers; Python does not.
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return bool(actual == expected)


def _comparable(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return False
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return True
    return isinstance(actual, str) and isinstance(expected, str)


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------

_VALUE_PREDICATES: dict[FilterOperator, type[_ValuePredicate]] = {
    FilterOperator.EQUALS: Equals,
    FilterOperator.NOT_EQUALS: NotEquals,
    FilterOperator.LIKE: Contains,
    FilterOperator.STARTS_WITH: StartsWith,
    FilterOperator.ENDS_WITH: EndsWith,
    FilterOperator.LESS_THAN: LessThan,
    FilterOperator.LESS_THAN_EQUAL: LessOrEqual,
    FilterOperator.GREATER_THAN: GreaterThan,
    FilterOperator.GREATER_THAN_EQUAL: GreaterOrEqual,
}


def compile_conditions(
    conditions: Sequence[FilterCondition],
    fields: Sequence[FieldDefinition],
) -> Predicate:
    """Compile validated conditions into an AND of per-field predicates.

    Values are re-typed from the field's declared type: string-like fields
    compare against the text exactly as typed (``title:eq123`` means the
    string ``"123"``), date fields against canonical ISO strings.

    An empty condition list compiles to :class:`MatchAll`.
    """
    if not conditions:
        return MatchAll()

    by_name = {f.name: f for f in fields}
    clauses = tuple(
        compile_condition(c, by_name[c.field].type if c.field in by_name else FieldType.STRING)
        for c in conditions
    )
    return And(clauses)


def compile_condition(condition: FilterCondition, field_type: FieldType) -> Predicate:
    """Compile one condition for a field of *field_type*."""
    path = condition.field
    operator = condition.operator

    if operator == FilterOperator.IS_NULL:
        return FieldAbsentOrNull(path)
    if operator == FilterOperator.IS_NOT_NULL:
        return FieldPresent(path)
    if operator == FilterOperator.IS_TRUE:
        return Equals(path, True)
    if operator == FilterOperator.IS_FALSE:
        return Equals(path, False)

    if operator in (FilterOperator.IN, FilterOperator.NOT_IN):
        raw_tokens = condition.raw if isinstance(condition.raw, tuple) else ()
        values = tuple(
            _typed_value(value, raw_tokens[i] if i < len(raw_tokens) else None, field_type)
            for i, value in enumerate(condition.value)
        )
        if operator == FilterOperator.IN:
            return AnyOf(path, values)
        return NoneOf(path, values)

    raw = condition.raw if isinstance(condition.raw, str) else None
    predicate_cls = _VALUE_PREDICATES[operator]
    return predicate_cls(path, _typed_value(condition.value, raw, field_type))


def _typed_value(value: Any, raw: str | None, field_type: FieldType) -> Any:
    if field_type in STRING_LIKE_TYPES:
        return raw if raw is not None else value
    # Dates only ever compare as canonical ISO text, whatever the field type.
    if isinstance(value, date):
        return canonical_datetime(value)
    return value
