"""SQLite database engine and schema via SQLAlchemy Core."""

from entityctl.infrastructure.database.engine import create_db_engine, init_database
from entityctl.infrastructure.database.schema import entity_definitions, entity_records, metadata

__all__ = [
    "create_db_engine",
    "entity_definitions",
    "entity_records",
    "init_database",
    "metadata",
]
