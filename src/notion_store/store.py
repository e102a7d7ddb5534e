"""
Notion store adapter.

Thin async wrapper over notion_client.AsyncClient. Every client error is
converted to StoreError so callers only deal with one exception type.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from notion_client import AsyncClient
from notion_client.errors import APIResponseError, HTTPResponseError, RequestTimeoutError

from notion_importer.config import NOTION_TIMEOUT_S
from notion_importer.errors import StoreError

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def retrieve_database(self, database_id: str) -> Dict[str, Any]: ...

    async def query_records(self, database_id: str, limit: int) -> List[Dict[str, Any]]: ...

    async def create_record(self, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_record(self, record_id: str, properties: Dict[str, Any]) -> Dict[str, Any]: ...


def _error_code(error: Exception) -> Optional[str]:
    code = getattr(error, "code", None)
    if code is None:
        return None
    return str(getattr(code, "value", code))


class NotionStore:
    def __init__(self, api_key: str, client: Optional[AsyncClient] = None):
        if not api_key and client is None:
            raise StoreError("NOTION_API_KEY is missing")
        self.client = client or AsyncClient(
            auth=api_key, timeout_ms=int(NOTION_TIMEOUT_S * 1000)
        )

    async def _call(self, what: str, coro) -> Any:
        try:
            return await coro
        except APIResponseError as e:
            logger.warning(f"Notion API error during {what}: {e}")
            raise StoreError(str(e), code=_error_code(e)) from e
        except RequestTimeoutError as e:
            logger.warning(f"Notion request timed out during {what}")
            raise StoreError("Notion request timed out", code="timeout") from e
        except (HTTPResponseError, httpx.HTTPError) as e:
            logger.warning(f"Notion transport error during {what}: {e}")
            raise StoreError(f"Failed to reach Notion: {e}") from e

    async def retrieve_database(self, database_id: str) -> Dict[str, Any]:
        return await self._call(
            "retrieve_database",
            self.client.databases.retrieve(database_id=database_id),
        )

    async def query_records(self, database_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        response = await self._call(
            "query_records",
            self.client.databases.query(database_id=database_id, page_size=limit),
        )
        return list(response.get("results", []))

    async def create_record(self, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call(
            "create_record",
            self.client.pages.create(
                parent={"database_id": database_id},
                properties=properties,
            ),
        )

    async def update_record(self, record_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call(
            "update_record",
            self.client.pages.update(page_id=record_id, properties=properties),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
