"""
Convert loosely named operation fields into Notion property payloads.

Field keys from the model are resolved against the live schema (alias table,
then case-insensitive name, then exact name) and each value is encoded by the
declared type of the field it resolved to. Nothing here raises: unknown fields
and unencodable values are dropped with a log warning.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Optional

from notion_importer.models import DatabaseSchema, FieldSchema
from planning.rank import find_rank_field

logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    "name": "Name",
    "title": "Name",
    "status": "Status",
    "priority": "Priority",
    "due": "Due",
    "tags": "Tags",
    "type": "Type",
    "notes": "Notes",
}

_TITLE_KEYS = ("name", "title")


def _find_field(schema: DatabaseSchema, name: str) -> Optional[FieldSchema]:
    lowered = name.lower()
    for field in schema.fields:
        if field.name.lower() == lowered:
            return field
    return schema.field_named(name)


def resolve_field(key: str, schema: DatabaseSchema) -> Optional[FieldSchema]:
    lowered = key.lower()
    aliases = dict(FIELD_ALIASES)
    rank_field = find_rank_field(schema)
    if rank_field is not None:
        aliases["rank"] = rank_field.name

    field = _find_field(schema, aliases.get(lowered, key))
    if field is None and lowered in _TITLE_KEYS:
        titles = schema.fields_of_type("title")
        field = titles[0] if titles else None
    return field


def match_option(value: str, options: List[str]) -> Optional[str]:
    if value in options:
        return value
    lowered = value.lower()
    for option in options:
        if option.lower() == lowered:
            return option
    return None


def _text_run(value: Any) -> List[Dict[str, Any]]:
    return [{"text": {"content": str(value)}}]


def _encode_title(field: FieldSchema, value: Any) -> Optional[Dict[str, Any]]:
    return {"title": _text_run(value)}


def _encode_rich_text(field: FieldSchema, value: Any) -> Optional[Dict[str, Any]]:
    return {"rich_text": _text_run(value)}


def _encode_select(field: FieldSchema, value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, str):
        return None
    options = field.options or []
    chosen = match_option(value, options)
    if chosen is None and options:
        logger.warning(
            f"Value {value!r} is not an option of {field.name}, using {options[0]!r}"
        )
        chosen = options[0]
    if chosen is None:
        return None
    return {"select": {"name": chosen}}


def _encode_multi_select(field: FieldSchema, value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return None
    options = field.options or []
    chosen = []
    for item in value:
        if not isinstance(item, str):
            continue
        match = match_option(item, options)
        if match is None:
            logger.warning(f"Dropping unknown option {item!r} for {field.name}")
        elif match not in chosen:
            chosen.append(match)
    if not chosen:
        return None
    return {"multi_select": [{"name": name} for name in chosen]}


def _encode_date(field: FieldSchema, value: Any) -> Optional[Dict[str, Any]]:
    if not value:
        return None
    return {"date": {"start": str(value)}}


def _encode_number(field: FieldSchema, value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return {"number": number}


Encoder = Callable[[FieldSchema, Any], Optional[Dict[str, Any]]]

_ENCODERS: Dict[str, Encoder] = {
    "title": _encode_title,
    "rich_text": _encode_rich_text,
    "select": _encode_select,
    "multi_select": _encode_multi_select,
    "date": _encode_date,
    "number": _encode_number,
}


def build_notion_properties(fields: Dict[str, Any], schema: DatabaseSchema) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}

    for key, value in fields.items():
        if value is None:
            continue

        field = resolve_field(key, schema)
        if field is None:
            logger.warning(f"Field {key} not found in schema, skipping")
            continue

        encoder = _ENCODERS.get(field.type)
        if encoder is None:
            logger.warning(f"Unsupported field type {field.type} for field {field.name}")
            continue

        encoded = encoder(field, value)
        if encoded is None:
            logger.warning(f"Could not encode value for {field.name} ({field.type}), skipping")
            continue
        properties[field.name] = encoded

    return properties


def validate_operation_fields(fields: Dict[str, Any], schema: DatabaseSchema) -> List[str]:
    """Human-readable problems with an operation's fields, for review screens."""
    problems: List[str] = []
    resolved: Dict[str, FieldSchema] = {}

    for key, value in fields.items():
        field = resolve_field(key, schema)
        if field is None:
            problems.append(f"Field '{key}' does not exist in the database and will be ignored")
            continue
        resolved[field.name] = field

        if field.type == "select" and isinstance(value, str) and field.options:
            if match_option(value, field.options) is None:
                problems.append(
                    f"'{value}' is not a valid option for '{field.name}'; "
                    f"'{field.options[0]}' will be used"
                )
        elif field.type == "multi_select" and field.options:
            values = [value] if isinstance(value, str) else value
            if isinstance(values, (list, tuple)):
                for item in values:
                    if isinstance(item, str) and match_option(item, field.options) is None:
                        problems.append(
                            f"'{item}' is not a valid option for '{field.name}' and will be dropped"
                        )

    for title in schema.fields_of_type("title"):
        if title.name not in resolved:
            problems.append(f"Missing required title field '{title.name}'")

    return problems
