from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from notion_importer.models import OperationPlanItem, ProcessedFile
from prompts.generator import build_database_structure_section
from prompts.templates import (
    ATTACHED_FILES_FOOTER,
    ATTACHED_FILES_HEADER,
    IMAGE_ANALYSIS_DIRECTIVE,
    OPERATION_UPDATE_SYSTEM_PROMPT,
    PLAN_GENERATION_SYSTEM_PROMPT,
)

Message = Dict[str, Any]


def build_plan_generation_prompt(system_prompts: Sequence) -> str:
    return PLAN_GENERATION_SYSTEM_PROMPT + build_database_structure_section(system_prompts)


def build_operation_update_prompt(system_prompts: Sequence) -> str:
    return OPERATION_UPDATE_SYSTEM_PROMPT + build_database_structure_section(system_prompts)


def build_user_prompt_with_files(prompt: str, files: Optional[Sequence[ProcessedFile]] = None) -> str:
    user_prompt = prompt
    if not files:
        return user_prompt

    user_prompt += ATTACHED_FILES_HEADER
    for file in files:
        user_prompt += file.content + "\n\n"
        if file.data_url:
            user_prompt += IMAGE_ANALYSIS_DIRECTIVE
    user_prompt += ATTACHED_FILES_FOOTER
    return user_prompt


def build_user_content(prompt: str, files: Optional[Sequence[ProcessedFile]] = None):
    """Plain text, or text + inline image parts when any attachment is an image."""
    text = build_user_prompt_with_files(prompt, files)
    files = list(files or [])
    if not any(f.is_image for f in files):
        return text

    parts: List[Dict[str, Any]] = [{"type": "text", "text": text}]
    for file in files:
        if file.is_image and file.data_url:
            parts.append({"type": "image_url", "image_url": {"url": file.data_url}})
    return parts


def build_plan_messages(
    prompt: str,
    system_prompts: Sequence,
    files: Optional[Sequence[ProcessedFile]] = None,
) -> List[Message]:
    return [
        {"role": "system", "content": build_plan_generation_prompt(system_prompts)},
        {"role": "user", "content": build_user_content(prompt, files)},
    ]


def build_operation_update_user_prompt(user_prompt: str, operations: Sequence[OperationPlanItem]) -> str:
    context = [
        {
            "index": index + 1,
            "id": op.id,
            "kind": op.kind,
            "taskId": op.task_id,
            "fields": op.fields,
            "reason": op.reason,
            "confidence": op.confidence,
            "warnings": op.warnings,
            "approved": op.approved,
            "edited": op.edited,
        }
        for index, op in enumerate(operations)
    ]

    return f"""Here are the current operations to modify:

{json.dumps(context, indent=2, ensure_ascii=False)}

User Request: {user_prompt}

Please modify the operations according to the user's request while following the database structure rules provided in the system prompts. Return the updated operations array with any necessary changes applied."""


def build_update_messages(
    user_prompt: str,
    operations: Sequence[OperationPlanItem],
    system_prompts: Sequence,
) -> List[Message]:
    return [
        {"role": "system", "content": build_operation_update_prompt(system_prompts)},
        {"role": "user", "content": build_operation_update_user_prompt(user_prompt, operations)},
    ]
