"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as ISO 8601 with microseconds.

    Fixed-width so that lexicographic order of ``created_at`` matches
    chronological order.
    """
    return datetime.now(UTC).isoformat(timespec="microseconds")
