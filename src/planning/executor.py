from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from notion_importer.errors import StoreError
from notion_importer.models import (
    DatabaseSchema,
    ExecutionReport,
    ExecutionResult,
    OperationPlanItem,
)
from notion_store.store import RecordStore
from planning.property_mapper import build_notion_properties
from planning.rank import has_rank_field, with_rank

logger = logging.getLogger(__name__)


def _status_value(fields: Dict[str, Any]) -> Any:
    if "status" in fields:
        return fields["status"]
    for key, value in fields.items():
        if key.lower() == "status":
            return value
    return None


class PlanExecutor:
    """
    Applies approved operations to one database, one at a time.

    A failing operation is recorded and the rest still run; the report
    carries one result per input operation in input order.
    """

    def __init__(self, store: RecordStore, database_id: str, today: Optional[date] = None):
        self.store = store
        self.database_id = database_id
        self.today = today

    async def execute(
        self, operations: List[OperationPlanItem], schema: DatabaseSchema
    ) -> ExecutionReport:
        results: List[ExecutionResult] = []
        for op in operations:
            try:
                result = await self._execute_one(op, schema)
            except StoreError as e:
                logger.warning(f"Operation {op.id} ({op.kind}) failed: {e.message}")
                result = ExecutionResult(success=False, operation=op, error=e.message)
            except Exception as e:
                logger.exception(f"Error executing operation {op.id}")
                result = ExecutionResult(
                    success=False, operation=op, error=str(e) or "Unknown error occurred"
                )
            results.append(result)

        report = ExecutionReport.from_results(results)
        logger.info(
            f"Executed {report.summary.total} operations: "
            f"{report.summary.successful} ok, {report.summary.failed} failed"
        )
        return report

    async def _execute_one(self, op: OperationPlanItem, schema: DatabaseSchema) -> ExecutionResult:
        if op.kind == "create":
            return await self._create(op, schema)
        if op.kind == "update":
            return await self._update(op, schema)
        if op.kind == "status_change":
            return await self._change_status(op, schema)
        return ExecutionResult(
            success=False, operation=op, error=f"Unsupported operation kind: {op.kind}"
        )

    def _ranked(self, fields: Dict[str, Any], schema: DatabaseSchema) -> Dict[str, Any]:
        if has_rank_field(schema):
            return with_rank(fields, self.today)
        return fields

    async def _create(self, op: OperationPlanItem, schema: DatabaseSchema) -> ExecutionResult:
        properties = build_notion_properties(self._ranked(op.fields, schema), schema)
        page = await self.store.create_record(self.database_id, properties)
        return ExecutionResult(success=True, operation=op, notion_page_id=page.get("id"))

    async def _update(self, op: OperationPlanItem, schema: DatabaseSchema) -> ExecutionResult:
        if not op.task_id:
            return ExecutionResult(
                success=False, operation=op, error="Task ID is required for update operations"
            )
        properties = build_notion_properties(self._ranked(op.fields, schema), schema)
        page = await self.store.update_record(op.task_id, properties)
        return ExecutionResult(success=True, operation=op, notion_page_id=page.get("id"))

    async def _change_status(self, op: OperationPlanItem, schema: DatabaseSchema) -> ExecutionResult:
        if not op.task_id:
            return ExecutionResult(
                success=False,
                operation=op,
                error="Task ID is required for status change operations",
            )
        properties = build_notion_properties({"status": _status_value(op.fields)}, schema)
        page = await self.store.update_record(op.task_id, properties)
        return ExecutionResult(success=True, operation=op, notion_page_id=page.get("id"))
