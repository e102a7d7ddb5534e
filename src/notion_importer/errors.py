from __future__ import annotations

from typing import List, Optional


class ImporterError(Exception):
    """Base error. The message is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreError(ImporterError):
    """A Notion API call failed."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class SchemaUnavailable(ImporterError):
    pass


class SchemaEmpty(ImporterError):
    pass


class ProviderError(ImporterError):
    """The LLM provider rejected the request or could not be reached."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.http_status = status_code


class EmptyCompletion(ImporterError):
    def __init__(self, message: str, finish_reason: Optional[str] = None):
        super().__init__(message)
        self.finish_reason = finish_reason


class MalformedPlan(ImporterError):
    pass


class InvalidPlanShape(ImporterError):
    pass


class MissingConfiguration(ImporterError):
    def __init__(self, missing: List[str]):
        super().__init__(f"Missing required configuration: {', '.join(missing)}")
        self.missing = list(missing)
