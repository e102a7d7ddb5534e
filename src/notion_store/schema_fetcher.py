from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from notion_importer.errors import SchemaEmpty, SchemaUnavailable, StoreError
from notion_importer.models import DatabaseSchema, FieldSchema
from notion_store.store import RecordStore

logger = logging.getLogger(__name__)

SAMPLE_QUERY_LIMIT = 10
SAMPLE_KEEP = 3


def describe_field(field_type: str, options: Optional[List[str]]) -> str:
    option_text = ", ".join(options) if options else "none"
    if field_type == "title":
        return "Main title/name of the task"
    if field_type == "select":
        return f"Single selection field with options: {option_text}"
    if field_type == "multi_select":
        return f"Multiple selection field with options: {option_text}"
    if field_type == "date":
        return "Date field (YYYY-MM-DD format)"
    if field_type == "number":
        return "Numeric field for rankings, scores, etc."
    if field_type == "rich_text":
        return "Text field for notes, descriptions, etc."
    return f"{field_type} field"


def parse_field(name: str, prop: Dict[str, Any]) -> FieldSchema:
    field_type = prop.get("type") or "unknown"
    options = None
    if field_type in ("select", "multi_select"):
        config = prop.get(field_type) or {}
        options = [o["name"] for o in config.get("options") or [] if o.get("name")]
    return FieldSchema(
        name=name,
        type=field_type,
        options=options,
        description=describe_field(field_type, options),
    )


def _first_plain_text(runs: Any) -> Optional[str]:
    if isinstance(runs, list) and runs:
        text = runs[0].get("plain_text")
        if isinstance(text, str):
            return text
    return None


def extract_sample_value(prop: Dict[str, Any]) -> Any:
    """Scalar/list value of an encoded page property, or None if not recognised."""
    prop_type = prop.get("type")
    value = prop.get(prop_type) if prop_type else None
    if prop_type in ("title", "rich_text"):
        return _first_plain_text(value)
    if prop_type == "select":
        return value.get("name") if isinstance(value, dict) else None
    if prop_type == "multi_select":
        if isinstance(value, list):
            return [v.get("name") for v in value if v.get("name")]
        return None
    if prop_type == "date":
        return value.get("start") if isinstance(value, dict) else None
    if prop_type == "number":
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else None
    return None


def extract_sample(page: Dict[str, Any]) -> Dict[str, Any]:
    sample: Dict[str, Any] = {}
    for name, prop in (page.get("properties") or {}).items():
        value = extract_sample_value(prop)
        if value is not None:
            sample[name] = value
    return sample


def database_title(database: Dict[str, Any]) -> str:
    return _first_plain_text(database.get("title")) or "Notion Database"


class SchemaFetcher:
    """Reads the live field definitions (and a few sample rows) of a database."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def fetch(self, database_id: str, include_samples: bool = True) -> DatabaseSchema:
        try:
            database = await self.store.retrieve_database(database_id)
        except StoreError as e:
            raise SchemaUnavailable(f"Failed to retrieve Notion database schema: {e.message}") from e

        properties = database.get("properties") or {}
        if not properties:
            raise SchemaEmpty(f"Notion database {database_id} has no properties")

        fields = [parse_field(name, prop) for name, prop in properties.items()]

        samples: List[Dict[str, Any]] = []
        record_count = 0
        if include_samples:
            try:
                pages = await self.store.query_records(database_id, SAMPLE_QUERY_LIMIT)
            except StoreError as e:
                raise SchemaUnavailable(f"Failed to query Notion database: {e.message}") from e
            record_count = len(pages)
            samples = [s for s in (extract_sample(p) for p in pages) if s][:SAMPLE_KEEP]

        schema = DatabaseSchema(
            title=database_title(database),
            fields=fields,
            sample_record_count=record_count,
            sample_records=samples,
        )
        logger.info(
            f"Fetched schema for '{schema.title}': {len(fields)} fields, "
            f"{len(samples)} sample records"
        )
        return schema
