from typing import List

from notion_importer.models import DatabaseSchema, GeneratedInstructionBlock

# (substrings of the option, free-text phrases that should map onto it)
PRIORITY_SYNONYMS = [
    (("high", "urgent"), '"urgent", "high priority", "important"'),
    (("medium", "normal"), '"normal", "medium priority", "regular"'),
    (("low",), '"low priority", "nice to have", "minor"'),
]

STATUS_SYNONYMS = [
    (("not", "todo", "new"), '"new", "todo", "pending", "not started"'),
    (("progress", "doing", "active"), '"in progress", "working", "active", "doing"'),
    (("done", "complete", "finished"), '"done", "completed", "finished", "closed"'),
    (("hold", "blocked", "waiting"), '"blocked", "on hold", "waiting", "paused"'),
]


def _mapping_lines(options: List[str], table) -> str:
    lines = ""
    for option in options:
        lower = option.lower()
        for needles, phrases in table:
            if any(n in lower for n in needles):
                lines += f'- {phrases} → "{option}"\n'
                break
    return lines


def generate_common_mappings(field_name: str, options: List[str]) -> str:
    lower_name = field_name.lower()
    mappings = ""

    if "priority" in lower_name:
        mappings += f"Common priority mappings for {field_name}:\n"
        mappings += _mapping_lines(options, PRIORITY_SYNONYMS)

    if "status" in lower_name:
        mappings += f"Common status mappings for {field_name}:\n"
        mappings += _mapping_lines(options, STATUS_SYNONYMS)

    return mappings


def generate_field_guidance_prompts(schema: DatabaseSchema) -> List[GeneratedInstructionBlock]:
    """Select/multi-select guidance; empty when the database has no such fields."""
    select_fields = [f for f in schema.fields_of_type("select") if f.options]
    multi_select_fields = [f for f in schema.fields_of_type("multi_select") if f.options]

    if not schema.fields_of_type("select", "multi_select"):
        return []

    content = "# Select Field Usage Guide\n\n"

    if select_fields:
        content += "## Single-Select Fields\nThese fields accept exactly ONE value from the specified options:\n\n"
        for field in select_fields:
            content += f"**{field.name}**: {', '.join(field.options)}\n"
            content += generate_common_mappings(field.name, field.options) + "\n\n"

    if multi_select_fields:
        content += "## Multi-Select Fields\nThese fields accept ARRAYS of values from the specified options:\n\n"
        for field in multi_select_fields:
            quoted = ", ".join(f'"{o}"' for o in field.options)
            content += f"**{field.name}**: [{quoted}]\n"
            content += generate_common_mappings(field.name, field.options) + "\n\n"

    content += """
**IMPORTANT:**
- Only use the EXACT option values listed above
- Never create new select options or use similar/synonymous terms
- For multi-select fields, always use arrays even for single values
- Case-sensitive matching is required"""

    return [
        GeneratedInstructionBlock(
            name="Select Field Guidelines",
            content=content,
            category="field-guidance",
        )
    ]
