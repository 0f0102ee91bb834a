"""SQLAlchemy Core table definitions for the entityctl database.

Records are schemaless: each row stores its validated payload as a JSON
text document in ``data``, addressed by ``json_extract`` at query time.
Field lists are stored the same way on the definition row.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, MetaData, Table, Text, UniqueConstraint

metadata = MetaData()

entity_definitions = Table(
    "entity_definitions",
    metadata,
    Column("id", Text, primary_key=True),
    Column("scope_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("table_name", Text, nullable=False),
    Column("fields", Text, nullable=False),  # JSON array of field definitions
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    UniqueConstraint("scope_id", "name"),
    UniqueConstraint("scope_id", "table_name"),
)

entity_records = Table(
    "entity_records",
    metadata,
    Column("id", Text, primary_key=True),
    Column("definition_id", Text, ForeignKey("entity_definitions.id"), nullable=False),
    Column("scope_id", Text, nullable=False),
    Column("entity_type", Text, nullable=False),
    Column("data", Text, nullable=False),  # JSON object
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_entity_records_scope_type", entity_records.c.scope_id, entity_records.c.entity_type)
Index("ix_entity_records_created", entity_records.c.created_at)
