import copy
from typing import Any, Dict, List, Optional

import pytest

from notion_importer.errors import StoreError
from notion_importer.models import DatabaseSchema, FieldSchema


def completion(content: Optional[str], finish_reason: str = "stop", model: str = "gpt-5-mini") -> dict:
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": finish_reason}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20},
    }


class FakeProvider:
    """Replays queued responses (dicts or exceptions) and records request bodies."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.bodies: List[Dict[str, Any]] = []

    async def create_completion(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.bodies.append(body)
        if not self._responses:
            raise AssertionError("FakeProvider ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return completion(response)
        return response


class FakeStore:
    def __init__(self, database: Optional[dict] = None, pages: Optional[list] = None):
        self.database = database
        self.pages = pages or []
        self.created: List[tuple] = []
        self.updated: List[tuple] = []
        self.queries: List[tuple] = []
        # record ids (or "create") whose next write should fail
        self.fail_on: Dict[str, StoreError] = {}
        self._next_id = 0

    async def retrieve_database(self, database_id: str) -> dict:
        if self.database is None:
            raise StoreError("Could not find database", code="object_not_found")
        return copy.deepcopy(self.database)

    async def query_records(self, database_id: str, limit: int) -> list:
        self.queries.append((database_id, limit))
        return copy.deepcopy(self.pages[:limit])

    async def create_record(self, database_id: str, properties: dict) -> dict:
        if "create" in self.fail_on:
            raise self.fail_on["create"]
        self._next_id += 1
        self.created.append((database_id, properties))
        return {"id": f"page-{self._next_id}"}

    async def update_record(self, record_id: str, properties: dict) -> dict:
        if record_id in self.fail_on:
            raise self.fail_on[record_id]
        self.updated.append((record_id, properties))
        return {"id": record_id}


def _options(*names):
    return {"options": [{"id": f"opt-{n}", "name": n, "color": "default"} for n in names]}


def _page(name, status=None, priority=None, tags=None, due=None, rank=None):
    props = {
        "Name": {"type": "title", "title": [{"plain_text": name}] if name else []},
        "Status": {"type": "select", "select": {"name": status} if status else None},
        "Priority": {"type": "select", "select": {"name": priority} if priority else None},
        "Tags": {"type": "multi_select", "multi_select": [{"name": t} for t in (tags or [])]},
        "Due": {"type": "date", "date": {"start": due} if due else None},
        "Rank": {"type": "number", "number": rank},
        "Notes": {"type": "rich_text", "rich_text": []},
    }
    return {"object": "page", "id": f"id-{name or 'blank'}", "properties": props}


@pytest.fixture
def raw_database() -> dict:
    return {
        "object": "database",
        "id": "db-1",
        "title": [{"plain_text": "Work Tasks"}],
        "properties": {
            "Name": {"id": "title", "type": "title", "title": {}},
            "Status": {"id": "s", "type": "select", "select": _options("Not Started", "In Progress", "Done")},
            "Priority": {"id": "p", "type": "select", "select": _options("High", "Medium", "Low")},
            "Tags": {"id": "t", "type": "multi_select", "multi_select": _options("quick-win", "blocker", "errand")},
            "Due": {"id": "d", "type": "date", "date": {}},
            "Rank": {"id": "r", "type": "number", "number": {"format": "number"}},
            "Notes": {"id": "n", "type": "rich_text", "rich_text": {}},
        },
    }


@pytest.fixture
def raw_pages() -> list:
    return [
        _page("Write report", status="In Progress", priority="High", tags=["blocker"], due="2024-05-01", rank=70),
        _page("Buy stamps", status="Not Started", priority="Low", tags=["errand", "quick-win"]),
        _page("Plan offsite", status="Done", priority="High"),
        _page("Fix printer", status="Not Started", priority="Medium", rank=0),
    ]


@pytest.fixture
def fake_store(raw_database, raw_pages) -> FakeStore:
    return FakeStore(raw_database, raw_pages)


@pytest.fixture
def sample_schema() -> DatabaseSchema:
    return DatabaseSchema(
        title="Work Tasks",
        fields=[
            FieldSchema(name="Name", type="title", description="Main title/name of the task"),
            FieldSchema(name="Status", type="select", options=["Not Started", "In Progress", "Done"]),
            FieldSchema(name="Priority", type="select", options=["High", "Medium", "Low"]),
            FieldSchema(name="Tags", type="multi_select", options=["quick-win", "blocker", "errand"]),
            FieldSchema(name="Due", type="date"),
            FieldSchema(name="Rank", type="number"),
            FieldSchema(name="Notes", type="rich_text"),
        ],
        sample_record_count=4,
        sample_records=[
            {"Name": "Write report", "Status": "In Progress", "Priority": "High", "Tags": ["blocker"]},
            {"Name": "Buy stamps", "Status": "Not Started", "Priority": "Low", "Tags": ["errand", "quick-win"]},
            {"Name": "Plan offsite", "Status": "Done", "Priority": "High"},
        ],
    )


@pytest.fixture
def schema_without_rank(sample_schema) -> DatabaseSchema:
    return sample_schema.model_copy(
        update={"fields": [f for f in sample_schema.fields if f.name != "Rank"]}
    )


@pytest.fixture
def fake_provider_factory():
    def _make(*responses):
        return FakeProvider(*responses)
    return _make
