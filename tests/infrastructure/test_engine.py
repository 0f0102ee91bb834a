"""Tests for database engine setup and schema creation."""

from pathlib import Path

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from entityctl.infrastructure.database.engine import init_database


class TestInitDatabase:
    def test_creates_tables(self, db_engine: Engine) -> None:
        tables = set(inspect(db_engine).get_table_names())
        assert {"entity_definitions", "entity_records"} <= tables

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "entityctl.db"
        engine = init_database(db_path)
        try:
            assert db_path.parent.is_dir()
        finally:
            engine.dispose()

    def test_idempotent(self, tmp_path: Path) -> None:
        db_path = tmp_path / "entityctl.db"
        init_database(db_path).dispose()
        engine = init_database(db_path)
        try:
            assert "entity_records" in inspect(engine).get_table_names()
        finally:
            engine.dispose()

    def test_wal_mode(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def test_foreign_keys_enabled(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_record_indexes(self, db_engine: Engine) -> None:
        names = {ix["name"] for ix in inspect(db_engine).get_indexes("entity_records")}
        assert {"ix_entity_records_scope_type", "ix_entity_records_created"} <= names
