import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from api.metrics import LLM_COMPLETIONS_TOTAL, LLM_FALLBACKS_TOTAL, OPERATIONS_EXECUTED_TOTAL
from llm.llm_client import LLMClient
from llm.plan_parser import parse_operation_update, parse_plan, plan_to_wire
from llm.providers.base import LLMProvider
from llm.providers.mock_provider import MockProvider
from llm.providers.openai_provider import OpenAIProvider
from llm.request_builder import build_plan_messages, build_update_messages
from notion_importer.config import LLM_PROVIDER, Settings
from notion_importer.errors import ImporterError, StoreError
from notion_importer.models import (
    DatabaseSchema,
    ExecutionReport,
    OperationPlanItem,
    ProcessedFile,
    SystemPrompt,
    to_system_prompts,
)
from notion_store.schema_fetcher import SchemaFetcher, database_title
from notion_store.store import NotionStore, RecordStore
from planning.executor import PlanExecutor
from prompts.generator import generate_system_prompts
from prompts.templates import CONNECTION_TEST_MESSAGE

logger = logging.getLogger(__name__)

NOTION_ERROR_MESSAGES = {
    "object_not_found": (
        "Database not found. Please check the database ID and ensure the integration has access."
    ),
    "unauthorized": "Unauthorized. Please check the API key and integration permissions.",
}


def make_provider(settings: Settings) -> LLMProvider:
    if LLM_PROVIDER == "mock":
        return MockProvider()
    return OpenAIProvider(settings.OPENAI_API_KEY or "")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BackendAPI:
    """Central orchestration of the import pipeline for one request's settings."""

    def __init__(
        self,
        settings: Settings,
        store: Optional[RecordStore] = None,
        provider: Optional[LLMProvider] = None,
    ):
        self.settings = settings
        self._store = store
        self._provider = provider

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            self._store = NotionStore(self.settings.NOTION_API_KEY or "")
        return self._store

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = make_provider(self.settings)
        return self._provider

    @property
    def database_id(self) -> str:
        return self.settings.NOTION_DATABASE_ID or ""

    async def fetch_schema(self, include_samples: bool = True) -> DatabaseSchema:
        return await SchemaFetcher(self.store).fetch(self.database_id, include_samples)

    async def generate_system_prompts(self) -> List[SystemPrompt]:
        schema = await self.fetch_schema()
        return to_system_prompts(generate_system_prompts(schema))

    async def _active_prompts(self, system_prompts: Optional[Sequence[SystemPrompt]]) -> List[Any]:
        if system_prompts:
            active = sorted((p for p in system_prompts if p.active), key=lambda p: p.order)
            return list(active)
        # nothing supplied by the client: synthesize from the live schema
        schema = await self.fetch_schema()
        return list(generate_system_prompts(schema))

    async def _complete(self, messages: List[Dict[str, Any]]) -> str:
        client = LLMClient(self.provider, model=self.settings.LLM_MODEL)
        try:
            content = await client.complete(
                messages, max_tokens=self.settings.OPENAI_MAX_COMPLETION_TOKENS
            )
        except ImporterError:
            if client.fell_back:
                LLM_FALLBACKS_TOTAL.inc()
            LLM_COMPLETIONS_TOTAL.labels(model=self.settings.LLM_MODEL, outcome="error").inc()
            raise

        if client.fell_back:
            LLM_FALLBACKS_TOTAL.inc()
        LLM_COMPLETIONS_TOTAL.labels(model=client.last_model_used, outcome="ok").inc()
        return content

    async def generate_plan(
        self,
        prompt: str,
        files: Optional[Sequence[ProcessedFile]] = None,
        system_prompts: Optional[Sequence[SystemPrompt]] = None,
    ) -> Dict[str, Any]:
        files = list(files or [])
        prompts = await self._active_prompts(system_prompts)
        logger.info(
            f"Generate plan request: prompt_length={len(prompt)} files={len(files)} "
            f"system_prompts={len(prompts)} model={self.settings.LLM_MODEL}"
        )

        content = await self._complete(build_plan_messages(prompt, prompts, files))
        plan = parse_plan(content)
        logger.info(f"Generated plan with {len(plan.plan)} operations")

        return {
            "success": True,
            **plan_to_wire(plan),
            "metadata": {
                "model": self.settings.LLM_MODEL,
                "generatedAt": _now(),
                "fileCount": len(files),
                "systemPromptCount": len(prompts),
            },
        }

    async def update_operations(
        self,
        operations: Sequence[OperationPlanItem],
        user_prompt: str,
        system_prompts: Optional[Sequence[SystemPrompt]] = None,
    ) -> Dict[str, Any]:
        prompts = await self._active_prompts(system_prompts)
        logger.info(
            f"Update operations request: prompt_length={len(user_prompt)} "
            f"operations={len(operations)} system_prompts={len(prompts)}"
        )

        content = await self._complete(build_update_messages(user_prompt, operations, prompts))
        updated = parse_operation_update(content)

        return {
            "success": True,
            **plan_to_wire(updated, key="operations"),
            "metadata": {
                "model": self.settings.LLM_MODEL,
                "updatedAt": _now(),
                "originalCount": len(operations),
                "updatedCount": len(updated.plan),
            },
        }

    async def execute_plan(self, operations: Sequence[OperationPlanItem]) -> ExecutionReport:
        schema = await self.fetch_schema(include_samples=False)
        report = await PlanExecutor(self.store, self.database_id).execute(list(operations), schema)
        for result in report.results:
            OPERATIONS_EXECUTED_TOTAL.labels(
                kind=result.operation.kind,
                outcome="ok" if result.success else "failed",
            ).inc()
        return report

    async def check_connections(self) -> Dict[str, Any]:
        """Probe the LLM provider and the database with the current settings."""
        results = []

        try:
            client = LLMClient(self.provider, model=self.settings.LLM_MODEL)
            await client.complete(
                [{"role": "user", "content": CONNECTION_TEST_MESSAGE}], max_tokens=200
            )
            results.append({
                "service": "OpenAI",
                "success": True,
                "message": f"Connected successfully with model {self.settings.LLM_MODEL}",
            })
        except ImporterError as e:
            results.append({
                "service": "OpenAI",
                "success": False,
                "message": f"Connection failed: {e.message}",
            })

        try:
            database = await self.store.retrieve_database(self.database_id)
            results.append({
                "service": "Notion",
                "success": True,
                "message": f'Connected to database "{database_title(database)}" successfully',
            })
        except StoreError as e:
            results.append({
                "service": "Notion",
                "success": False,
                "message": f"Connection failed: {NOTION_ERROR_MESSAGES.get(e.code, e.message)}",
            })

        failed = [r["service"] for r in results if not r["success"]]
        return {
            "success": not failed,
            "message": (
                "All connections verified successfully"
                if not failed
                else f"Connection failed for: {', '.join(failed)}"
            ),
            "results": results,
        }
