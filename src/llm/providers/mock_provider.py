from __future__ import annotations
import json
from typing import Any, Dict

from llm.providers.base import LLMProvider


def _text_of(message: Dict[str, Any]) -> str:
    content = message.get("content")
    if isinstance(content, list):
        return " ".join(p.get("text", "") for p in content if isinstance(p, dict))
    return content or ""


class MockProvider(LLMProvider):
    """Offline provider returning dummy JSON responses based on the prompt content."""

    async def create_completion(self, body: Dict[str, Any]) -> Dict[str, Any]:
        messages = body.get("messages", [])
        system = _text_of(messages[0]) if messages else ""
        user = _text_of(messages[-1]) if messages else ""

        if "modifies existing Notion database operations" in system:
            content = json.dumps({
                "operations": [],
                "reasoning": "Mock provider does not modify operations",
                "warnings": ["Generated by the mock LLM provider"],
            })
        elif '"OK"' in user:
            content = "OK"
        else:
            content = json.dumps({
                "plan": [
                    {
                        "id": "mock-1",
                        "kind": "create",
                        "fields": {"Name": user.splitlines()[0][:80] if user else "New task"},
                        "reason": "Mock plan for offline development",
                        "confidence": 50,
                        "warnings": ["Generated by the mock LLM provider"],
                    }
                ],
                "reasoning": "Mock plan",
                "warnings": [],
            })

        return {
            "model": body.get("model", "mock"),
            "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 0, "completion_tokens": 0},
        }
