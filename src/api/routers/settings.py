import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import BackendFactory, get_backend_factory
from notion_importer.config import env_defaults, get_merged_config, validate_required_settings

router = APIRouter(prefix="/settings")
logger = logging.getLogger(__name__)

# clients send this in place of a value to mean "use the server environment"
ENV_SENTINEL = "env"


class ConnectionTestIn(BaseModel):
    OPENAI_API_KEY: Optional[str] = None
    NOTION_API_KEY: Optional[str] = None
    NOTION_DATABASE_ID: Optional[str] = None
    LLM_MODEL: Optional[str] = None


@router.get("/env-defaults")
async def get_env_defaults() -> dict:
    return env_defaults()


@router.post("/test-connection")
async def test_connection(
    payload: ConnectionTestIn,
    factory: BackendFactory = Depends(get_backend_factory),
) -> dict:
    supplied = {
        key: value
        for key, value in payload.model_dump().items()
        if value and value != ENV_SENTINEL
    }
    settings = get_merged_config(json.dumps(supplied))

    is_valid, missing = validate_required_settings(settings)
    if not is_valid:
        logger.info(f"Connection test rejected, missing: {', '.join(missing)}")
        raise HTTPException(
            status_code=400, detail="All API keys and database ID are required for testing"
        )

    result = await factory(settings).check_connections()
    logger.info(f"Connection test: {result['message']}")
    return result
