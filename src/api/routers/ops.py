import logging

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from notion_importer.config import LLM_PROVIDER, env_defaults

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint for container orchestration."""
    configured = env_defaults()
    return {
        "status": "healthy",
        "llm_provider": LLM_PROVIDER,
        "env_configured": {
            key: bool(configured[key])
            for key in ("OPENAI_API_KEY", "NOTION_API_KEY", "NOTION_DATABASE_ID")
        },
    }


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus scrape endpoint.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
