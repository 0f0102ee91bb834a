"""Query options parser — search, sort, pagination, and field selection.

Turns the raw query-string fragments of a list request into a
:class:`QueryOptions` ready to hand to a record store. For a single query
the filter pipeline always runs parse -> validate -> compile, in that order.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from entityctl.domain.errors import InvalidSortDirection, MalformedSort, UnknownField
from entityctl.domain.fields import FieldDefinition
from entityctl.domain.filter_validation import validate_filters
from entityctl.domain.filters import parse_filters
from entityctl.domain.predicates import Predicate, compile_conditions
from entityctl.domain.types import SortDirection

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100


@dataclass(frozen=True)
class SortOptions:
    field: str
    direction: SortDirection


@dataclass(frozen=True)
class PaginationOptions:
    page: int
    limit: int
    offset: int


@dataclass(frozen=True)
class QueryOptions:
    """Parsed, validated query plan.

    Absent ``sort`` means the store's default order (newest first).
    Empty ``select`` means no projection.
    """

    filters: Predicate | None = None
    sort: SortOptions | None = None
    pagination: PaginationOptions | None = None
    select: list[str] = field(default_factory=list)


def parse_query(
    fields: Sequence[FieldDefinition],
    *,
    search: str | None = None,
    sort: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    select: str | None = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> QueryOptions:
    """Parse raw query fragments against an entity's field definitions.

    Raises:
        MalformedFilter, UnknownField, IncompatibleOperator, InvalidSchema:
            From the filter pipeline.
        MalformedSort, InvalidSortDirection: For a bad ``sort`` directive.
    """
    filters: Predicate | None = None
    if search:
        conditions = parse_filters(search)
        validate_filters(conditions, fields)
        filters = compile_conditions(conditions, fields)

    return QueryOptions(
        filters=filters,
        sort=parse_sort(sort, fields) if sort else None,
        pagination=(
            parse_pagination(page, limit, default_limit=default_limit, max_limit=max_limit)
            if page is not None or limit is not None
            else None
        ),
        select=parse_select(select, fields) if select and select.strip() else [],
    )


def parse_sort(directive: str, fields: Sequence[FieldDefinition]) -> SortOptions:
    """Parse ``field:direction`` (direction is case-insensitive).

    Examples:
        >>> from entityctl.domain.fields import FieldDefinition
        >>> parse_sort("price:DESC", [FieldDefinition(name="price", type="number")])
        SortOptions(field='price', direction=<SortDirection.DESC: 'desc'>)
    """
    parts = directive.split(":")
    if len(parts) != 2:
        raise MalformedSort(directive)

    name, raw_direction = parts
    try:
        direction = SortDirection(raw_direction.lower())
    except ValueError:
        raise InvalidSortDirection(raw_direction) from None

    if name not in {f.name for f in fields}:
        raise UnknownField(name, context="sort")
    return SortOptions(field=name, direction=direction)


def parse_pagination(
    page: int | None,
    limit: int | None,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> PaginationOptions:
    """Clamp page/limit into range; out-of-range values are never rejected.

    Examples:
        >>> parse_pagination(2, 500)
        PaginationOptions(page=2, limit=100, offset=100)
        >>> parse_pagination(None, 0)
        PaginationOptions(page=1, limit=1, offset=0)
    """
    page_num = max(DEFAULT_PAGE, page if page is not None else DEFAULT_PAGE)
    limit_num = min(max(1, limit if limit is not None else default_limit), max_limit)
    return PaginationOptions(page=page_num, limit=limit_num, offset=(page_num - 1) * limit_num)


def parse_select(select: str, fields: Sequence[FieldDefinition]) -> list[str]:
    """Parse a comma-separated field list; every entry must exist."""
    known = {f.name for f in fields}
    selected: list[str] = []
    for name in (part.strip() for part in select.split(",")):
        if name not in known:
            raise UnknownField(name, context="select")
        if name not in selected:
            selected.append(name)
    return selected
