import asyncio

import pytest

from conftest import FakeStore
from notion_importer.errors import SchemaEmpty, SchemaUnavailable, StoreError
from notion_store.schema_fetcher import (
    SchemaFetcher,
    database_title,
    describe_field,
    extract_sample,
)


def test_fetch_reads_fields_and_options(fake_store) -> None:
    schema = asyncio.run(SchemaFetcher(fake_store).fetch("db-1"))

    assert schema.title == "Work Tasks"
    assert [f.name for f in schema.fields] == [
        "Name", "Status", "Priority", "Tags", "Due", "Rank", "Notes",
    ]
    status = schema.field_named("Status")
    assert status.type == "select"
    assert status.options == ["Not Started", "In Progress", "Done"]
    assert status.description == "Single selection field with options: Not Started, In Progress, Done"
    assert schema.field_named("Name").description == "Main title/name of the task"
    assert schema.field_named("Due").options is None


def test_fetch_keeps_first_three_samples(fake_store) -> None:
    schema = asyncio.run(SchemaFetcher(fake_store).fetch("db-1"))

    assert schema.sample_record_count == 4
    assert len(schema.sample_records) == 3
    first = schema.sample_records[0]
    assert first["Name"] == "Write report"
    assert first["Tags"] == ["blocker"]
    assert first["Due"] == "2024-05-01"
    assert first["Rank"] == 70
    assert "Notes" not in first
    assert fake_store.queries == [("db-1", 10)]


def test_fetch_without_samples_does_not_query(fake_store) -> None:
    schema = asyncio.run(SchemaFetcher(fake_store).fetch("db-1", include_samples=False))

    assert schema.sample_records == []
    assert schema.sample_record_count == 0
    assert fake_store.queries == []


def test_records_without_values_are_dropped(raw_database) -> None:
    blank = {"properties": {"Name": {"type": "title", "title": []}}}
    store = FakeStore(raw_database, [blank, blank])

    schema = asyncio.run(SchemaFetcher(store).fetch("db-1"))

    assert schema.sample_record_count == 2
    assert schema.sample_records == []


def test_store_failure_is_schema_unavailable() -> None:
    store = FakeStore(database=None)
    with pytest.raises(SchemaUnavailable) as exc:
        asyncio.run(SchemaFetcher(store).fetch("missing"))
    assert "Could not find database" in exc.value.message


def test_query_failure_is_schema_unavailable(raw_database) -> None:
    class BrokenQueryStore(FakeStore):
        async def query_records(self, database_id, limit):
            raise StoreError("rate limited", code="rate_limited")

    with pytest.raises(SchemaUnavailable):
        asyncio.run(SchemaFetcher(BrokenQueryStore(raw_database)).fetch("db-1"))


def test_database_without_properties_is_schema_empty() -> None:
    store = FakeStore({"title": [], "properties": {}})
    with pytest.raises(SchemaEmpty):
        asyncio.run(SchemaFetcher(store).fetch("db-1"))


def test_describe_field_templates() -> None:
    assert describe_field("select", None) == "Single selection field with options: none"
    assert describe_field("multi_select", ["a", "b"]) == "Multiple selection field with options: a, b"
    assert describe_field("number", None) == "Numeric field for rankings, scores, etc."
    assert describe_field("checkbox", None) == "checkbox field"


def test_extract_sample_keeps_zero_and_skips_unknown_types() -> None:
    page = {
        "properties": {
            "Score": {"type": "number", "number": 0},
            "Done": {"type": "checkbox", "checkbox": True},
            "Owner": {"type": "select", "select": None},
        }
    }
    assert extract_sample(page) == {"Score": 0}


def test_database_title_fallback() -> None:
    assert database_title({"title": []}) == "Notion Database"
