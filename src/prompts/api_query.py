import json
from typing import Any, Dict, List, Optional

from notion_importer.models import DatabaseSchema, FieldSchema, GeneratedInstructionBlock

RESPONSE_FORMAT = """## Response Format Requirements
All operations must return valid JSON with this structure:
```json
{
  "plan": [
    {
      "id": "generated-uuid",
      "kind": "create|update|status_change",
      "taskId": "existing-record-id-or-null",
      "fields": {
        // Field values following exact schema requirements
      },
      "reason": "Clear explanation of why this operation is needed",
      "confidence": 85,
      "warnings": ["Any concerns or assumptions"]
    }
  ],
  "reasoning": "Overall explanation of the generated plan",
  "warnings": ["Any general warnings about the plan"]
}
```"""

OPERATION_GUIDELINES = """## Operation Guidelines

### CREATE Operations
- Always generate unique ID for each operation
- Include reason explaining why this operation is needed
- Set confidence based on information clarity (60-95%)
- Add warnings for any assumptions or unclear mappings

### UPDATE Operations
- Must include valid taskId from existing database
- Only specify fields that need to be changed
- Higher confidence for updates with known record IDs

### STATUS_CHANGE Operations
- Simplified update focusing on status transitions
- Should include taskId and status-related fields only
- Use for workflow state changes"""


def _first(fields: List[FieldSchema], field_type: str) -> Optional[FieldSchema]:
    return next((f for f in fields if f.type == field_type), None)


def example_operations(fields: List[FieldSchema]) -> Dict[str, Dict[str, Any]]:
    title_field = _first(fields, "title")
    select_field = _first(fields, "select")
    date_field = _first(fields, "date")
    select_options = select_field.options if select_field and select_field.options else []

    create_fields: Dict[str, Any] = {}
    if title_field:
        create_fields[title_field.name] = "Example Task Name"
    if select_options:
        create_fields[select_field.name] = select_options[0]
    if date_field:
        create_fields[date_field.name] = "2024-12-31"

    update_fields: Dict[str, Any] = {}
    if select_options:
        update_fields[select_field.name] = select_options[1] if len(select_options) > 1 else select_options[0]

    return {
        "create": {
            "id": "create-example-1",
            "kind": "create",
            "taskId": None,
            "fields": create_fields,
            "reason": "Creating new task based on user request",
            "confidence": 85,
            "warnings": [],
        },
        "update": {
            "id": "update-example-1",
            "kind": "update",
            "taskId": "existing-record-id",
            "fields": update_fields,
            "reason": "Updating task status based on progress",
            "confidence": 90,
            "warnings": [],
        },
    }


def render_example_operations(fields: List[FieldSchema]) -> str:
    examples = example_operations(fields)
    return (
        "### CREATE Operation Example:\n"
        f"```json\n{json.dumps(examples['create'], indent=2, ensure_ascii=False)}\n```\n\n"
        "### UPDATE Operation Example:\n"
        f"```json\n{json.dumps(examples['update'], indent=2, ensure_ascii=False)}\n```"
    )


def _select_api_note(field: FieldSchema) -> str:
    options = field.options or []
    valid = ", ".join(f'"{o}"' for o in options) if options else "No options defined"
    expects = "String value" if field.type == "select" else "Array of strings"
    if not options:
        example = "leave this field out"
    elif field.type == "select":
        example = f'"{options[0]}"'
    else:
        example = json.dumps(options[:2], ensure_ascii=False)
    return f"**{field.name}** ({field.type}):\n- API expects: {expects}\n- Valid values: {valid}\n- Example: {example}"


def generate_api_query_prompt(schema: DatabaseSchema) -> GeneratedInstructionBlock:
    select_notes = "\n\n".join(
        _select_api_note(f) for f in schema.fields_of_type("select", "multi_select")
    )
    date_notes = "\n".join(
        f'**{f.name}**: Use "YYYY-MM-DD" format (e.g., "2024-12-31")'
        for f in schema.fields_of_type("date")
    )

    content = f"""# API Operation Examples for "{schema.title}"

## Example Operations Structure

{render_example_operations(schema.fields)}

## Field-Specific API Notes

### Select Field API Mapping
{select_notes}

### Date Field API Mapping
{date_notes}

{OPERATION_GUIDELINES}

{RESPONSE_FORMAT}"""

    return GeneratedInstructionBlock(
        name="API Query Guide",
        content=content,
        category="validation-rules",
    )
