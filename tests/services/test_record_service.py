"""Tests for RecordService — create, get, list, update, delete."""

import json
from collections.abc import Generator
from pathlib import Path

import pytest

from entityctl.config.settings import EntitySettings
from entityctl.domain.ids import validate_id
from entityctl.infrastructure.store import Store
from entityctl.output.renderers import render_result
from entityctl.services.records import RecordService
from entityctl.services.telemetry import disable_telemetry, enable_telemetry
from tests.conftest import create_record, define_entity


@pytest.fixture
def catalog(store: Store) -> Store:
    """Store with a Product entity and five records."""
    define_entity(store)
    for title, price, status in [
        ("Standing Desk", 450, "active"),
        ("Desk Lamp", 35, "archived"),
        ("Chair", 120, "active"),
        ("Monitor", 200, "draft"),
        ("Rug", 80, "active"),
    ]:
        create_record(store, {"title": title, "price": price, "status": status})
    return store


class TestCreate:
    def test_create(self, store: Store) -> None:
        define_entity(store)
        data = create_record(store, {"title": "Desk", "price": 10})
        assert validate_id(data["id"], "record")
        assert data["entity_type"] == "Product"
        assert data["data"] == {"title": "Desk", "price": 10, "active": True}
        assert data["created_at"] == data["updated_at"]

    def test_validation_errors_aggregated(self, store: Store) -> None:
        define_entity(store)
        result = RecordService(store).create("acme", "Product", {"price": "free"})
        assert not result.ok
        assert result.op == "create_record"
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        fields = {e["field"] for e in result.error.detail["errors"]}
        assert fields == {"title", "price"}

    def test_unknown_entity(self, store: Store) -> None:
        result = RecordService(store).create("acme", "Nope", {"title": "x"})
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_scope_isolation(self, store: Store) -> None:
        define_entity(store, scope="acme")
        result = RecordService(store).create("globex", "Product", {"title": "x", "price": 1})
        assert not result.ok

    def test_cold_cache_regenerates(self, store: Store) -> None:
        define_entity(store)
        store.validators.clear()
        create_record(store, {"title": "Desk", "price": 10})
        assert ("acme", "Product") in store.validators

    def test_date_stored_canonically(self, store: Store) -> None:
        define_entity(store)
        data = create_record(store, {"title": "Desk", "price": 1, "released": "2024-02-03"})
        assert data["data"]["released"] == "2024-02-03T00:00:00"


class TestGet:
    def test_get(self, store: Store) -> None:
        define_entity(store)
        created = create_record(store, {"title": "Desk", "price": 10})
        result = RecordService(store).get("acme", "Product", created["id"])
        assert result.ok
        assert result.data == created

    def test_get_missing(self, store: Store) -> None:
        define_entity(store)
        result = RecordService(store).get("acme", "Product", "rec_0000000000000000")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.detail["id"] == "rec_0000000000000000"


class TestList:
    def test_unfiltered(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product")
        assert result.ok
        assert result.op == "list_records"
        assert result.data["count"] == 5
        assert result.meta == {"total": 5, "hasMore": False}

    def test_newest_first(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product")
        assert result.data["items"][0]["data"]["title"] == "Rug"

    def test_filter(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", search="price:gte100;title:lkdesk")
        assert [r["data"]["title"] for r in result.data["items"]] == ["Standing Desk"]

    def test_in_filter(self, catalog: Store) -> None:
        result = RecordService(catalog).list(
            "acme", "Product", search="status:in[archived,draft]", sort="title:asc"
        )
        assert [r["data"]["title"] for r in result.data["items"]] == ["Desk Lamp", "Monitor"]

    def test_sort(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", sort="price:desc")
        prices = [r["data"]["price"] for r in result.data["items"]]
        assert prices == [450, 200, 120, 80, 35]

    def test_pagination_meta(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", sort="price:asc", page=2, limit=2)
        assert [r["data"]["price"] for r in result.data["items"]] == [120, 200]
        assert result.meta == {
            "total": 5,
            "page": 2,
            "limit": 2,
            "totalPages": 3,
            "hasNextPage": True,
            "hasPrevPage": True,
        }

    def test_pagination_counts_filtered_total(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", search="status:eqactive", limit=1)
        assert result.data["count"] == 1
        assert result.meta is not None
        assert result.meta["total"] == 3
        assert result.meta["totalPages"] == 3

    def test_limit_clamped_to_config(self, project_root: Path) -> None:
        settings = EntitySettings.from_cli(
            project_root=project_root, query={"default_limit": 2, "max_limit": 3}
        )
        store = Store(settings)
        try:
            define_entity(store)
            for i in range(5):
                create_record(store, {"title": f"t{i}", "price": i})
            result = RecordService(store).list("acme", "Product", limit=50)
            assert result.meta is not None
            assert result.meta["limit"] == 3
            result = RecordService(store).list("acme", "Product", page=1)
            assert result.meta is not None
            assert result.meta["limit"] == 2
        finally:
            store.close()

    def test_select(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", select="price")
        for item in result.data["items"]:
            assert set(item["data"]) == {"price"}
            assert "id" in item

    def test_empty_result(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", search="price:gt10000", page=1)
        assert result.data["items"] == []
        assert result.meta is not None
        assert result.meta["totalPages"] == 0
        assert result.meta["hasPrevPage"] is False

    @pytest.mark.parametrize(
        ("kwargs", "code"),
        [
            ({"search": "price"}, "MALFORMED_FILTER"),
            ({"search": "colour:eqred"}, "UNKNOWN_FIELD"),
            ({"search": "price:lkx"}, "INCOMPATIBLE_OPERATOR"),
            ({"sort": "price:up"}, "INVALID_SORT_DIRECTION"),
            ({"sort": "price"}, "MALFORMED_SORT"),
            ({"sort": "colour:asc"}, "UNKNOWN_FIELD"),
            ({"select": "title,colour"}, "UNKNOWN_FIELD"),
            ({"search": "price:gt1;"}, "MALFORMED_FILTER"),
            ({"select": "price,"}, "UNKNOWN_FIELD"),
        ],
    )
    def test_query_errors(self, catalog: Store, kwargs: dict, code: str) -> None:
        result = RecordService(catalog).list("acme", "Product", **kwargs)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == code

    def test_unknown_entity(self, store: Store) -> None:
        result = RecordService(store).list("acme", "Nope")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestListTelemetry:
    @pytest.fixture(autouse=True)
    def _telemetry(self) -> Generator[None]:
        enable_telemetry()
        yield
        disable_telemetry()

    def test_spans_annotated(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", search="price:gt100")
        assert result.meta is not None
        root = result.meta["telemetry"]
        assert root["annotations"] == {"scope": "acme", "entity": "Product"}
        assert [c["name"] for c in root["children"]] == ["parse_query", "fetch"]
        assert root["children"][1]["annotations"] == {"rows": 3}

    def test_date_filter_on_number_field_renders(self, catalog: Store) -> None:
        result = RecordService(catalog).list("acme", "Product", search="price:eq2024-01-01")
        assert result.ok
        assert result.data["items"] == []
        output = render_result(result, verbose=True)
        # Long annotation lines fold at the console width.
        assert "2024-01-01T00:00:00" in "".join(output.split())
        json.loads(result.model_dump_json())


class TestUpdate:
    def test_partial_update_merges(self, store: Store) -> None:
        define_entity(store)
        created = create_record(store, {"title": "Desk", "price": 10, "status": "draft"})
        result = RecordService(store).update("acme", "Product", created["id"], {"price": 12})
        assert result.ok
        assert result.data["data"] == {
            "title": "Desk",
            "price": 12,
            "active": True,
            "status": "draft",
        }
        assert result.data["fields_changed"] == ["price"]

    def test_update_does_not_reset_defaults(self, store: Store) -> None:
        define_entity(store)
        created = create_record(store, {"title": "Desk", "price": 10, "active": False})
        result = RecordService(store).update("acme", "Product", created["id"], {"price": 11})
        assert result.data["data"]["active"] is False

    def test_update_validates_present_fields(self, store: Store) -> None:
        define_entity(store)
        created = create_record(store, {"title": "Desk", "price": 10})
        result = RecordService(store).update("acme", "Product", created["id"], {"price": -1})
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        fetched = RecordService(store).get("acme", "Product", created["id"])
        assert fetched.data["data"]["price"] == 10

    def test_clear_optional_field(self, store: Store) -> None:
        define_entity(store)
        created = create_record(store, {"title": "Desk", "price": 10, "status": "draft"})
        result = RecordService(store).update("acme", "Product", created["id"], {"status": None})
        assert result.ok
        listed = RecordService(store).list("acme", "Product", search="status:null")
        assert listed.data["count"] == 1

    def test_update_missing(self, store: Store) -> None:
        define_entity(store)
        result = RecordService(store).update("acme", "Product", "rec_0000000000000000", {})
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestDelete:
    def test_delete(self, store: Store) -> None:
        define_entity(store)
        created = create_record(store, {"title": "Desk", "price": 10})
        result = RecordService(store).delete("acme", "Product", created["id"])
        assert result.ok
        assert result.data == {"id": created["id"], "entity_type": "Product"}
        assert not RecordService(store).get("acme", "Product", created["id"]).ok

    def test_delete_missing(self, store: Store) -> None:
        define_entity(store)
        result = RecordService(store).delete("acme", "Product", "rec_0000000000000000")
        assert not result.ok
        assert result.op == "delete_record"
