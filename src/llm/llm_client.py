import logging
from typing import Any, Dict, List, Optional

from llm.providers.base import LLMProvider
from notion_importer.errors import EmptyCompletion, ProviderError

logger = logging.getLogger(__name__)

NEW_GENERATION_PREFIX = "gpt-5"
FALLBACK_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 6000

SUPPORTED_MODELS = [
    "gpt-5",
    "gpt-5-mini",
    "gpt-5-nano",
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4",
    "gpt-4-turbo",
    "gpt-4-turbo-preview",
    "gpt-3.5-turbo",
]


def is_new_generation(model: str) -> bool:
    return model.startswith(NEW_GENERATION_PREFIX)


def is_valid_model(model: str) -> bool:
    return model in SUPPORTED_MODELS or is_new_generation(model)


def model_info(model: str) -> Dict[str, Any]:
    if is_new_generation(model):
        return {
            "new_generation": True,
            "token_parameter": "max_completion_tokens",
            "fixed_temperature": 1,
            "supports_reasoning_effort": True,
            "supports_verbosity": True,
        }
    return {
        "new_generation": False,
        "token_parameter": "max_tokens",
        "fixed_temperature": None,
        "supports_reasoning_effort": False,
        "supports_verbosity": False,
    }


def build_request_body(
    model: str,
    messages: List[Dict[str, Any]],
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: Optional[float] = None,
    reasoning_effort: Optional[str] = None,
    verbosity: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Chat completion body with the parameters the model family accepts.

    gpt-5 models take max_completion_tokens and reject any temperature but 1;
    older models take max_tokens and the requested temperature.
    """
    body: Dict[str, Any] = {"model": model, "messages": messages}

    if is_new_generation(model):
        body["temperature"] = 1
        body["max_completion_tokens"] = max_tokens
        if reasoning_effort:
            body["reasoning_effort"] = reasoning_effort
        if verbosity:
            body["verbosity"] = verbosity
    else:
        body["temperature"] = DEFAULT_TEMPERATURE if temperature is None else temperature
        body["max_tokens"] = max_tokens

    return body


def extract_content(response: Dict[str, Any], label: str = "OpenAI") -> str:
    choices = response.get("choices") or []
    if not choices:
        raise EmptyCompletion(f"{label} API returned no choices in response")

    choice = choices[0] or {}
    content = (choice.get("message") or {}).get("content")
    if isinstance(content, str) and content.strip():
        return content

    finish_reason = choice.get("finish_reason")
    logger.error(f"Empty content from {label}: finish_reason={finish_reason}")
    if finish_reason == "length":
        used = (response.get("usage") or {}).get("completion_tokens", "unknown")
        raise EmptyCompletion(
            f"{label} response was cut off due to token limit. Consider increasing "
            f"OPENAI_MAX_COMPLETION_TOKENS. Current usage: {used} tokens",
            finish_reason=finish_reason,
        )
    raise EmptyCompletion(
        f"{label} returned empty content. Finish reason: {finish_reason or 'unknown'}",
        finish_reason=finish_reason,
    )


class LLMClient:
    """Chat completion client with a one-shot fallback for unavailable gpt-5 models."""

    def __init__(self, provider: LLMProvider, model: str = "gpt-5-mini"):
        self.provider = provider
        self.model = model
        self.last_model_used: Optional[str] = None
        self.fell_back = False

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> str:
        model_to_use = model or self.model
        self.fell_back = False
        body = build_request_body(model_to_use, messages, max_tokens, temperature)

        try:
            response = await self.provider.create_completion(body)
        except ProviderError as e:
            if e.code == "model_not_found" and is_new_generation(model_to_use):
                logger.warning(
                    f"Model {model_to_use} not available, falling back to {FALLBACK_MODEL}"
                )
                return await self._complete_fallback(messages, max_tokens)
            raise

        logger.info(
            f"OpenAI response: model={response.get('model', model_to_use)} "
            f"usage={response.get('usage')} choices={len(response.get('choices') or [])}"
        )
        self.last_model_used = model_to_use
        return extract_content(response)

    async def _complete_fallback(self, messages: List[Dict[str, Any]], max_tokens: int) -> str:
        self.fell_back = True
        body = build_request_body(FALLBACK_MODEL, messages, max_tokens, DEFAULT_TEMPERATURE)
        response = await self.provider.create_completion(body)
        logger.info(
            f"Fallback OpenAI response: model={response.get('model', FALLBACK_MODEL)} "
            f"usage={response.get('usage')}"
        )
        self.last_model_used = FALLBACK_MODEL
        return extract_content(response, label="OpenAI fallback")
