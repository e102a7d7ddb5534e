from notion_importer.models import DatabaseSchema, FieldSchema
from planning.property_mapper import (
    build_notion_properties,
    resolve_field,
    validate_operation_fields,
)


def test_unknown_status_falls_back_to_first_option(sample_schema) -> None:
    props = build_notion_properties({"status": "completed"}, sample_schema)
    assert props == {"Status": {"select": {"name": "Not Started"}}}


def test_select_prefers_exact_then_case_insensitive(sample_schema) -> None:
    assert build_notion_properties({"Status": "Done"}, sample_schema) == {
        "Status": {"select": {"name": "Done"}}
    }
    assert build_notion_properties({"priority": "high"}, sample_schema) == {
        "Priority": {"select": {"name": "High"}}
    }


def test_title_and_text_are_encoded_as_runs(sample_schema) -> None:
    props = build_notion_properties({"title": "Call Bob", "notes": 42}, sample_schema)
    assert props == {
        "Name": {"title": [{"text": {"content": "Call Bob"}}]},
        "Notes": {"rich_text": [{"text": {"content": "42"}}]},
    }


def test_multi_select_drops_unknown_options(sample_schema) -> None:
    props = build_notion_properties({"tags": ["Quick-Win", "someday", "blocker"]}, sample_schema)
    assert props == {"Tags": {"multi_select": [{"name": "quick-win"}, {"name": "blocker"}]}}

    assert build_notion_properties({"tags": ["nope"]}, sample_schema) == {}
    assert build_notion_properties({"tags": "errand"}, sample_schema) == {
        "Tags": {"multi_select": [{"name": "errand"}]}
    }


def test_select_values_always_come_from_options(sample_schema) -> None:
    inputs = {"Status": "whatever", "Priority": "HIGH", "Tags": ["x", "ERRAND", "blocker"]}
    props = build_notion_properties(inputs, sample_schema)
    for name, prop in props.items():
        options = sample_schema.field_named(name).options
        if "select" in prop:
            assert prop["select"]["name"] in options
        else:
            assert all(item["name"] in options for item in prop["multi_select"])


def test_dates_and_numbers(sample_schema) -> None:
    props = build_notion_properties({"due": "2024-07-01", "Rank": "12.5"}, sample_schema)
    assert props == {"Due": {"date": {"start": "2024-07-01"}}, "Rank": {"number": 12.5}}

    assert build_notion_properties({"Rank": "lots"}, sample_schema) == {}
    assert build_notion_properties({"Rank": float("inf")}, sample_schema) == {}
    assert build_notion_properties({"Rank": True}, sample_schema) == {}
    assert build_notion_properties({"due": ""}, sample_schema) == {}


def test_unknown_fields_and_types_are_skipped(sample_schema) -> None:
    schema = sample_schema.model_copy(
        update={"fields": sample_schema.fields + [FieldSchema(name="Done", type="checkbox")]}
    )
    props = build_notion_properties({"Owner": "Ann", "Done": True, "Name": None}, schema)
    assert props == {}


def test_rank_goes_to_discovered_rank_field() -> None:
    schema = DatabaseSchema(fields=[
        FieldSchema(name="Title", type="title"),
        FieldSchema(name="ranking", type="number"),
    ])
    props = build_notion_properties({"rank": 70, "name": "x"}, schema)
    assert props == {"ranking": {"number": 70.0}, "Title": {"title": [{"text": {"content": "x"}}]}}


def test_rank_is_dropped_without_rank_field(schema_without_rank) -> None:
    props = build_notion_properties({"rank": 70, "Name": "x"}, schema_without_rank)
    assert list(props) == ["Name"]


def test_resolve_field_order(sample_schema) -> None:
    assert resolve_field("PRIORITY", sample_schema).name == "Priority"
    assert resolve_field("notes", sample_schema).name == "Notes"
    assert resolve_field("Missing", sample_schema) is None


def test_validate_operation_fields_reports_problems(sample_schema) -> None:
    problems = validate_operation_fields(
        {"Status": "completed", "Tags": ["blocker", "later"], "Owner": "Ann"}, sample_schema
    )
    assert "'completed' is not a valid option for 'Status'; 'Not Started' will be used" in problems
    assert "'later' is not a valid option for 'Tags' and will be dropped" in problems
    assert "Field 'Owner' does not exist in the database and will be ignored" in problems
    assert "Missing required title field 'Name'" in problems

    assert validate_operation_fields({"Name": "ok", "Status": "done"}, sample_schema) == []
