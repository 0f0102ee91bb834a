"""Result shaper — field projection and pagination metadata."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from entityctl.domain.query import PaginationOptions


def project(
    records: Sequence[Mapping[str, Any]],
    select: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    """Trim each record's ``data`` to the selected keys.

    Keys missing from a record are omitted, never defaulted. With no
    selection the records are returned unchanged.

    Examples:
        >>> project([{"id": "r1", "data": {"title": "X", "price": 10}}], ["price"])
        [{'id': 'r1', 'data': {'price': 10}}]
    """
    if not select:
        return [dict(r) for r in records]

    shaped: list[dict[str, Any]] = []
    for record in records:
        data = record.get("data") or {}
        shaped.append({**record, "data": {k: data[k] for k in select if k in data}})
    return shaped


def build_pagination_meta(
    total: int,
    pagination: PaginationOptions | None = None,
) -> dict[str, Any]:
    """Build the ``meta`` block of a list response.

    Examples:
        >>> build_pagination_meta(0)
        {'total': 0, 'hasMore': False}
        >>> build_pagination_meta(25, PaginationOptions(page=2, limit=10, offset=10))["totalPages"]
        3
    """
    if pagination is None:
        return {"total": total, "hasMore": False}

    total_pages = math.ceil(total / pagination.limit)
    return {
        "total": total,
        "page": pagination.page,
        "limit": pagination.limit,
        "totalPages": total_pages,
        "hasNextPage": pagination.page < total_pages,
        # An empty result set has no pages to step back into.
        "hasPrevPage": total_pages > 0 and pagination.page > 1,
    }
