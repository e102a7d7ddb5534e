from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict


class LLMProvider(ABC):
    @abstractmethod
    async def create_completion(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a chat completion request body and return the raw response
        ({"model", "choices", "usage"}). Failures raise ProviderError.
        """
        raise NotImplementedError
