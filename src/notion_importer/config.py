import json
import logging
import os
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from notion_importer.errors import MissingConfiguration

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = ("OPENAI_API_KEY", "NOTION_API_KEY", "NOTION_DATABASE_ID")
SETTINGS_HEADER = "x-localStorage-settings"

DEFAULT_LLM_MODEL = "gpt-5-mini"
DEFAULT_MAX_COMPLETION_TOKENS = 6000

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai").strip().lower()
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip()
OPENAI_TIMEOUT_S = float(os.getenv("OPENAI_TIMEOUT_S", "120"))
NOTION_TIMEOUT_S = float(os.getenv("NOTION_TIMEOUT_S", "30"))


class Settings(BaseModel):
    OPENAI_API_KEY: Optional[str] = None
    NOTION_API_KEY: Optional[str] = None
    NOTION_DATABASE_ID: Optional[str] = None
    LLM_MODEL: str = DEFAULT_LLM_MODEL
    OPENAI_MAX_COMPLETION_TOKENS: int = DEFAULT_MAX_COMPLETION_TOKENS


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def parse_settings_header(header_value: Optional[str]) -> Dict[str, object]:
    """Settings a browser client keeps locally and sends along as JSON."""
    if not header_value:
        return {}
    try:
        data = json.loads(header_value)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse settings header: {e}")
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _as_int(value: object) -> Optional[int]:
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def get_merged_config(header_value: Optional[str] = None) -> Settings:
    """
    Merge environment variables with header-supplied settings.

    Environment variables take precedence over header values.
    """
    local = parse_settings_header(header_value)

    def pick(key: str) -> Optional[str]:
        env_value = _env(key)
        if env_value:
            return env_value
        value = local.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    max_tokens = (
        _as_int(_env("OPENAI_MAX_COMPLETION_TOKENS"))
        or _as_int(local.get("OPENAI_MAX_COMPLETION_TOKENS"))
        or DEFAULT_MAX_COMPLETION_TOKENS
    )

    return Settings(
        OPENAI_API_KEY=pick("OPENAI_API_KEY"),
        NOTION_API_KEY=pick("NOTION_API_KEY"),
        NOTION_DATABASE_ID=pick("NOTION_DATABASE_ID"),
        LLM_MODEL=pick("LLM_MODEL") or DEFAULT_LLM_MODEL,
        OPENAI_MAX_COMPLETION_TOKENS=max_tokens,
    )


def validate_required_settings(settings: Settings) -> Tuple[bool, List[str]]:
    missing = [key for key in REQUIRED_SETTINGS if not getattr(settings, key)]
    return not missing, missing


def require_settings(settings: Settings) -> Settings:
    is_valid, missing = validate_required_settings(settings)
    if not is_valid:
        raise MissingConfiguration(missing)
    return settings


def env_defaults() -> Dict[str, object]:
    """Which settings the environment provides, without exposing secrets."""
    return {
        "OPENAI_API_KEY": True if _env("OPENAI_API_KEY") else None,
        "NOTION_API_KEY": True if _env("NOTION_API_KEY") else None,
        "NOTION_DATABASE_ID": True if _env("NOTION_DATABASE_ID") else None,
        "LLM_MODEL": _env("LLM_MODEL"),
        "OPENAI_MAX_COMPLETION_TOKENS": _as_int(_env("OPENAI_MAX_COMPLETION_TOKENS")),
    }
