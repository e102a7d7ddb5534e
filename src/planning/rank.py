"""
Deterministic rank scoring for records written to a database with a rank-like field.

The score starts from the rank the model proposed (50 when absent) and is
nudged by priority, due date proximity and tags, then clamped to [0, 1000].
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional

from notion_importer.models import DatabaseSchema, FieldSchema

RANK_FIELD_NAMES = ("rank", "ranking", "priority_score")
BASE_RANK = 50
MIN_RANK = 0
MAX_RANK = 1000

PRIORITY_BONUS = {
    "Urgent": 40,
    "High": 20,
    "Important": 20,
    "Medium": 0,
    "Low": -20,
    "Low priority": -20,
}

QUICK_WIN_TAGS = {"quick-win", "easy", "small", "minor"}
IMPORTANT_TAGS = {"critical", "important", "urgent", "blocker"}
QUICK_WIN_BONUS = 10
IMPORTANT_BONUS = 25


def find_rank_field(schema: DatabaseSchema) -> Optional[FieldSchema]:
    for field in schema.fields:
        if field.name.lower() in RANK_FIELD_NAMES:
            return field
    return None


def has_rank_field(schema: DatabaseSchema) -> bool:
    return find_rank_field(schema) is not None


def _lookup(fields: Dict[str, Any], key: str) -> Any:
    if key in fields:
        return fields[key]
    for name, value in fields.items():
        if name.lower() == key:
            return value
    return None


def _base_rank(value: Any) -> float:
    if isinstance(value, bool):
        return BASE_RANK
    try:
        number = float(value)
    except (TypeError, ValueError):
        return BASE_RANK
    if not math.isfinite(number) or number == 0:
        return BASE_RANK
    return number


def _parse_due(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        due = value
    elif isinstance(value, date):
        return datetime.combine(value, time())
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            due = datetime.fromisoformat(text)
        except ValueError:
            try:
                return datetime.combine(date.fromisoformat(text[:10]), time())
            except ValueError:
                return None
    else:
        return None
    # wall-clock comparison against a naive midnight
    return due.replace(tzinfo=None)


def days_until(due: datetime, today: date) -> int:
    delta = due - datetime.combine(today, time())
    return math.ceil(delta.total_seconds() / 86400)


def due_bonus(days: int) -> int:
    if days <= 0:
        return 50
    if days <= 3:
        return 30
    if days <= 7:
        return 15
    return 0


def _tag_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return []


def tag_bonus(tags: Iterable[str]) -> int:
    lowered = {t.lower() for t in tags}
    bonus = 0
    if lowered & QUICK_WIN_TAGS:
        bonus += QUICK_WIN_BONUS
    if lowered & IMPORTANT_TAGS:
        bonus += IMPORTANT_BONUS
    return bonus


def calculate_rank(fields: Dict[str, Any], today: Optional[date] = None) -> int:
    today = today or date.today()
    rank = _base_rank(_lookup(fields, "rank"))

    priority = _lookup(fields, "priority")
    if isinstance(priority, str):
        rank += PRIORITY_BONUS.get(priority, 0)

    due = _parse_due(_lookup(fields, "due"))
    if due is not None:
        rank += due_bonus(days_until(due, today))

    rank += tag_bonus(_tag_list(_lookup(fields, "tags")))

    # half-up rounding, not banker's
    return int(max(MIN_RANK, min(MAX_RANK, math.floor(rank + 0.5))))


def with_rank(fields: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Copy of fields whose rank entries are replaced by a single computed "rank"."""
    ranked = {k: v for k, v in fields.items() if k.lower() not in RANK_FIELD_NAMES}
    ranked["rank"] = calculate_rank(fields, today)
    return ranked
