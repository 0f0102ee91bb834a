"""ID patterns and generation for definitions and records.

Both kinds use a short type prefix followed by 16 random hex chars.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import secrets

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    "definition": re.compile(r"^def_[0-9a-f]{16}$"),
    "record": re.compile(r"^rec_[0-9a-f]{16}$"),
}

TYPE_PREFIXES: dict[str, str] = {
    "definition": "def_",
    "record": "rec_",
}


def generate_id(kind: str) -> str:
    """Generate a new random ID for *kind* (``definition`` or ``record``)."""
    return f"{TYPE_PREFIXES[kind]}{secrets.token_hex(8)}"


def validate_id(value: str, kind: str) -> bool:
    """Check whether *value* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(value) is not None
