from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import httpx

from notion_importer.config import OPENAI_BASE_URL, OPENAI_TIMEOUT_S
from notion_importer.errors import ProviderError
from llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)


def _error_details(response: httpx.Response) -> tuple[str, Optional[str]]:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}", None
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {response.status_code}", error.get("code")
    return f"HTTP {response.status_code}", None


class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_BASE_URL,
        timeout_s: float = OPENAI_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

        if not self.api_key:
            raise ProviderError("OpenAI API key is required")

    async def create_completion(self, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI API error: failed to reach provider ({e})") from e

        if r.status_code >= 400:
            message, code = _error_details(r)
            logger.warning(f"OpenAI returned HTTP {r.status_code} (code={code}) for model {body.get('model')}")
            raise ProviderError(f"OpenAI API error: {message}", code=code, status_code=r.status_code)

        try:
            payload = r.json()
        except ValueError as e:
            logger.warning(f"OpenAI returned a non-JSON body (HTTP {r.status_code}) for model {body.get('model')}")
            raise ProviderError("OpenAI API error: invalid JSON response", status_code=r.status_code) from e
        if not isinstance(payload, dict):
            raise ProviderError("OpenAI API error: unexpected response shape", status_code=r.status_code)
        return payload
