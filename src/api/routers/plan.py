import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from api.backend import BackendAPI
from api.dependencies import get_backend, to_http_error
from api.metrics import record_request
from notion_importer.errors import ImporterError
from notion_importer.models import OperationPlanItem, ProcessedFile, SystemPrompt, WireModel

router = APIRouter()
logger = logging.getLogger(__name__)


class GeneratePlanIn(WireModel):
    prompt: str = ""
    files: List[ProcessedFile] = Field(default_factory=list)
    system_prompts: Optional[List[SystemPrompt]] = None


class UpdateOperationsIn(WireModel):
    operations: List[OperationPlanItem] = Field(default_factory=list)
    user_prompt: str = ""
    system_prompts: Optional[List[SystemPrompt]] = None


class ExecutePlanIn(WireModel):
    operations: List[OperationPlanItem] = Field(default_factory=list)


@router.post("/generate-plan")
async def generate_plan(payload: GeneratePlanIn, backend: BackendAPI = Depends(get_backend)) -> dict:
    start = time.time()
    if not payload.prompt.strip():
        record_request("/generate-plan", "rejected", start)
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        result = await backend.generate_plan(payload.prompt, payload.files, payload.system_prompts)
    except ImporterError as e:
        record_request("/generate-plan", "error", start)
        raise to_http_error(e, "Plan generation")

    record_request("/generate-plan", "ok", start)
    return result


@router.post("/update-operations")
async def update_operations(
    payload: UpdateOperationsIn, backend: BackendAPI = Depends(get_backend)
) -> dict:
    start = time.time()
    if not payload.user_prompt.strip():
        record_request("/update-operations", "rejected", start)
        raise HTTPException(status_code=400, detail="User prompt is required")
    if not payload.operations:
        record_request("/update-operations", "rejected", start)
        raise HTTPException(status_code=400, detail="Operations array is required")

    try:
        result = await backend.update_operations(
            payload.operations, payload.user_prompt, payload.system_prompts
        )
    except ImporterError as e:
        record_request("/update-operations", "error", start)
        raise to_http_error(e, "Operation update")

    record_request("/update-operations", "ok", start)
    return result


@router.post("/execute-plan")
async def execute_plan(payload: ExecutePlanIn, backend: BackendAPI = Depends(get_backend)) -> dict:
    start = time.time()
    if not payload.operations:
        record_request("/execute-plan", "rejected", start)
        raise HTTPException(status_code=400, detail="No operations provided")

    try:
        report = await backend.execute_plan(payload.operations)
    except ImporterError as e:
        record_request("/execute-plan", "error", start)
        raise to_http_error(e, "Plan execution")

    record_request("/execute-plan", "ok" if report.success else "partial", start)
    return report.to_wire()
