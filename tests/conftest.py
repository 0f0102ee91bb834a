"""Shared pytest fixtures and test helpers for entityctl tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from entityctl.config.settings import EntitySettings
from entityctl.domain.fields import FieldDefinition, build_fields
from entityctl.infrastructure.database.engine import init_database
from entityctl.infrastructure.store import Store

PRODUCT_FIELDS: list[dict[str, Any]] = [
    {"name": "title", "type": "string", "required": True, "minLength": 1, "maxLength": 80},
    {"name": "price", "type": "number", "required": True, "min": 0},
    {"name": "active", "type": "boolean", "defaultValue": True},
    {"name": "status", "type": "string"},
    {"name": "contact", "type": "email"},
    {"name": "homepage", "type": "url"},
    {"name": "released", "type": "date"},
]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Engine:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "test.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def product_fields() -> tuple[FieldDefinition, ...]:
    """The field list used by most query and validation tests."""
    return build_fields(PRODUCT_FIELDS)


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary project directory with no config file and no ENTITYCTL_* env."""
    for name in ("ENTITYCTL_CONFIG", "ENTITYCTL_DEFAULT_SCOPE", "ENTITYCTL_PROJECT_ROOT"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def store(project_root: Path) -> Store:
    """Fully initialized store on a temp database."""
    settings = EntitySettings.from_cli(project_root=project_root)
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    monkeypatch.chdir(project_root)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def define_entity(
    store: Store,
    name: str = "Product",
    fields: list[dict[str, Any]] | None = None,
    *,
    scope: str = "acme",
) -> dict[str, Any]:
    """Define an entity via DefinitionService, asserting success."""
    from entityctl.services.definitions import DefinitionService

    result = DefinitionService(store).define(scope, name, fields or PRODUCT_FIELDS)
    assert result.ok, result.error
    return result.data


def create_record(
    store: Store,
    data: dict[str, Any],
    *,
    entity: str = "Product",
    scope: str = "acme",
) -> dict[str, Any]:
    """Create a record via RecordService, asserting success."""
    from entityctl.services.records import RecordService

    result = RecordService(store).create(scope, entity, data)
    assert result.ok, result.error
    return result.data
