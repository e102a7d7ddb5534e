"""
Turn raw model output into a validated operation plan.

The model is asked for a bare JSON object but often wraps it in a markdown
fence or surrounds it with prose, so extraction degrades in steps:
direct parse, fence strip, first-to-last brace span.
"""

from __future__ import annotations

import json
import logging
import math
import re
import time
from typing import Any, Dict, List, Optional, Tuple

from notion_importer.errors import InvalidPlanShape, MalformedPlan
from notion_importer.models import OperationPlanItem, PlanResponse

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")

VALID_KINDS = ("create", "update", "status_change")
DEFAULT_CONFIDENCE = 80


def _loads_object(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


def extract_json_object(content: str) -> Any:
    text = (content or "").strip()

    parsed = _loads_object(text)
    if parsed is not None:
        return parsed

    if text.startswith("```"):
        parsed = _loads_object(_FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text)))
        if parsed is not None:
            return parsed

    match = _OBJECT_SPAN.search(text)
    if match is None:
        raise MalformedPlan("No valid JSON found in LLM response")

    parsed = _loads_object(match.group(0))
    if parsed is None:
        raise MalformedPlan("Failed to parse LLM response as JSON")
    return parsed


def clamp_confidence(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE
    return int(round(min(100.0, max(0.0, number))))


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def normalize_operation(
    raw: Dict[str, Any],
    index: int,
    id_prefix: str,
    stamp_ms: int,
    default_reason: str,
    from_update: bool = False,
) -> OperationPlanItem:
    kind = str(raw.get("kind") or "create")
    if kind not in VALID_KINDS:
        # unknown kinds are kept so execution reports them per item
        logger.warning(f"Operation {index} has unknown kind {kind!r}")

    fields = raw.get("fields")
    task_id = raw.get("taskId")

    values = {
        "id": str(raw.get("id") or f"{id_prefix}-{stamp_ms}-{index}"),
        "kind": kind,
        "taskId": str(task_id) if task_id not in (None, "") else None,
        "fields": fields if isinstance(fields, dict) else {},
        "reason": str(raw.get("reason") or default_reason),
        "confidence": clamp_confidence(raw.get("confidence", DEFAULT_CONFIDENCE)),
        "warnings": _string_list(raw.get("warnings")),
        "approved": bool(raw.get("approved")) if from_update else False,
        "edited": True if from_update else False,
    }
    return OperationPlanItem.model_validate(values)


def _normalize_all(
    parsed: Any,
    key: str,
    id_prefix: str,
    default_reason: str,
    from_update: bool,
) -> Tuple[List[OperationPlanItem], str, List[str]]:
    items = parsed.get(key) if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        label = "plan" if key == "plan" else "operations"
        raise InvalidPlanShape(f"Invalid {label} format from LLM")

    stamp_ms = int(time.time() * 1000)
    operations = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object entry {index} in LLM {key}")
            continue
        operations.append(
            normalize_operation(raw, index, id_prefix, stamp_ms, default_reason, from_update)
        )

    reasoning = parsed.get("reasoning")
    warnings = _string_list(parsed.get("warnings"))
    return operations, reasoning if isinstance(reasoning, str) and reasoning else "", warnings


def parse_plan(content: str) -> PlanResponse:
    """Parse a freshly generated plan; every item starts unapproved and unedited."""
    parsed = extract_json_object(content)
    operations, reasoning, warnings = _normalize_all(
        parsed, "plan", "op", "Generated from user request", from_update=False
    )
    return PlanResponse(
        plan=operations,
        reasoning=reasoning or "Plan generated successfully",
        warnings=warnings,
    )


def parse_operation_update(content: str) -> PlanResponse:
    """Parse a modified plan returned under the "operations" key."""
    parsed = extract_json_object(content)
    operations, reasoning, warnings = _normalize_all(
        parsed, "operations", "updated", "Modified by user request", from_update=True
    )
    return PlanResponse(
        plan=operations,
        reasoning=reasoning or "Operations updated successfully",
        warnings=warnings,
    )


def plan_to_wire(plan: PlanResponse, key: str = "plan") -> Dict[str, Any]:
    return {
        key: [op.to_wire() for op in plan.plan],
        "reasoning": plan.reasoning,
        "warnings": list(plan.warnings),
    }
