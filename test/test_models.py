import pytest

from notion_importer.models import (
    SCHEMA_STALE_AFTER_S,
    DatabaseSchema,
    ExecutionReport,
    ExecutionResult,
    OperationPlanItem,
    ProcessedFile,
)


def test_operation_defaults():
    op = OperationPlanItem(id="op-1")
    assert op.kind == "create"
    assert op.confidence == 80
    assert op.fields == {}
    assert op.approved is False and op.edited is False


def test_task_id_alias_and_wire_shape():
    op = OperationPlanItem(id="op-1", taskId="page-1")
    assert op.task_id == "page-1"
    assert OperationPlanItem(id="op-2", task_id="page-2").task_id == "page-2"
    assert op.to_wire()["taskId"] == "page-1"
    assert "task_id" not in op.to_wire()


def test_confidence_out_of_range_rejected():
    with pytest.raises(Exception):
        OperationPlanItem(id="op-1", confidence=101)


def test_schema_staleness():
    schema = DatabaseSchema(fetched_at_unix_s=1000.0)
    assert not schema.is_stale(now=1000.0 + SCHEMA_STALE_AFTER_S)
    assert schema.is_stale(now=1001.0 + SCHEMA_STALE_AFTER_S)


def test_report_summary():
    op = OperationPlanItem(id="op-1")
    report = ExecutionReport.from_results([
        ExecutionResult(success=True, operation=op, notion_page_id="p"),
        ExecutionResult(success=False, operation=op, error="boom"),
    ])
    assert report.success is False
    assert (report.summary.total, report.summary.successful, report.summary.failed) == (2, 1, 1)
    assert ExecutionReport.from_results([]).success is True


def test_processed_file_data_url():
    image = ProcessedFile(name="a.png", type="image/png", content="[Image]", metadata={"dataUrl": "data:image/jpeg;base64,AA"})
    assert image.is_image
    assert image.data_url == "data:image/jpeg;base64,AA"

    broken = ProcessedFile(name="b.png", type="image/png", content="Error processing file: x", metadata={"error": True})
    assert broken.is_image and broken.data_url is None

    csv_file = ProcessedFile(name="c.csv", type="text/csv", content="rows")
    assert not csv_file.is_image


def test_report_wire_keys_are_camel_case():
    op = OperationPlanItem(id="op-1", kind="update", task_id="page-1")
    wire = ExecutionReport.from_results([
        ExecutionResult(success=True, operation=op, notion_page_id="page-1"),
    ]).to_wire()

    assert "executedAt" in wire and "executed_at" not in wire
    assert wire["results"][0]["notionPageId"] == "page-1"
    assert wire["results"][0]["operation"]["taskId"] == "page-1"


def test_schema_wire_keys_are_camel_case():
    wire = DatabaseSchema(title="T", sample_record_count=2, sample_records=[{"Name": "a"}]).to_wire()
    assert wire["sampleRecordCount"] == 2
    assert wire["sampleRecords"] == [{"Name": "a"}]
    assert DatabaseSchema.model_validate(wire).sample_record_count == 2
