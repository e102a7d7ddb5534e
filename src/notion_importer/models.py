from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Schema snapshots older than this should be re-fetched by callers.
SCHEMA_STALE_AFTER_S = 300

PromptCategory = Literal[
    "database-structure", "field-guidance", "data-patterns", "validation-rules"
]


class WireModel(BaseModel):
    """Serialized with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class FieldSchema(BaseModel):
    name: str
    type: str
    options: Optional[List[str]] = None
    description: Optional[str] = None

    @property
    def is_select(self) -> bool:
        return self.type in ("select", "multi_select")


class DatabaseSchema(WireModel):
    title: str = "Notion Database"
    fields: List[FieldSchema] = Field(default_factory=list)
    sample_record_count: int = 0
    sample_records: List[Dict[str, Any]] = Field(default_factory=list)
    fetched_at_unix_s: float = Field(default_factory=time.time)

    def field_named(self, name: str) -> Optional[FieldSchema]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def fields_of_type(self, *types: str) -> List[FieldSchema]:
        return [f for f in self.fields if f.type in types]

    def is_stale(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - self.fetched_at_unix_s > SCHEMA_STALE_AFTER_S


class GeneratedInstructionBlock(BaseModel):
    name: str
    content: str
    category: PromptCategory


class SystemPrompt(WireModel):
    """An instruction block as stored and edited by the user."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    content: str
    active: bool = True
    order: int = 0
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def to_system_prompts(blocks: List[GeneratedInstructionBlock]) -> List[SystemPrompt]:
    now = datetime.now(timezone.utc).isoformat()
    return [
        SystemPrompt(
            name=block.name,
            content=block.content,
            active=True,
            order=index,
            created_at=now,
            updated_at=now,
        )
        for index, block in enumerate(blocks)
    ]


class OperationPlanItem(WireModel):
    id: str
    # unknown kinds are accepted here and rejected per item at execution
    kind: str = "create"
    task_id: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    reason: str = ""
    confidence: int = Field(80, ge=0, le=100)
    warnings: List[str] = Field(default_factory=list)
    approved: bool = False
    edited: bool = False

    @field_validator("task_id")
    @classmethod
    def blank_task_id_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v2 = str(v).strip()
        return v2 or None


class PlanResponse(BaseModel):
    plan: List[OperationPlanItem] = Field(default_factory=list)
    reasoning: str = ""
    warnings: List[str] = Field(default_factory=list)


class ExecutionResult(WireModel):
    success: bool
    operation: OperationPlanItem
    notion_page_id: Optional[str] = None
    error: Optional[str] = None


class ExecutionSummary(BaseModel):
    total: int
    successful: int
    failed: int


class ExecutionReport(WireModel):
    success: bool
    results: List[ExecutionResult]
    summary: ExecutionSummary
    executed_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_results(cls, results: List[ExecutionResult]) -> "ExecutionReport":
        successful = sum(1 for r in results if r.success)
        failed = len(results) - successful
        return cls(
            success=failed == 0,
            results=results,
            summary=ExecutionSummary(total=len(results), successful=successful, failed=failed),
        )


class ProcessedFile(BaseModel):
    """
    An attachment already rendered to prompt text.
    Images carry the optimized data URL in metadata["dataUrl"].
    """
    name: str
    type: str
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image/")

    @property
    def data_url(self) -> Optional[str]:
        value = self.metadata.get("dataUrl")
        if isinstance(value, str) and value.startswith("data:image/"):
            return value
        if self.content.startswith("data:image/"):
            return self.content
        return None
