import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.backend import BackendAPI
from api.dependencies import get_backend, to_http_error
from api.metrics import record_request
from notion_importer.errors import ImporterError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/notion-schema")
async def notion_schema(backend: BackendAPI = Depends(get_backend)) -> dict:
    start = time.time()
    try:
        schema = await backend.fetch_schema()
    except ImporterError as e:
        record_request("/notion-schema", "error", start)
        raise to_http_error(e, "Schema retrieval")

    record_request("/notion-schema", "ok", start)
    return {
        "success": True,
        "schema": schema.to_wire(),
        "retrievedAt": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/system-prompts/generate")
async def generate_prompts(backend: BackendAPI = Depends(get_backend)) -> dict:
    """Instruction blocks synthesized from the live schema, ready to be edited and saved."""
    start = time.time()
    try:
        prompts = await backend.generate_system_prompts()
    except ImporterError as e:
        record_request("/system-prompts/generate", "error", start)
        raise to_http_error(e, "System prompt generation")

    record_request("/system-prompts/generate", "ok", start)
    return {
        "success": True,
        "systemPrompts": [p.to_wire() for p in prompts],
    }
