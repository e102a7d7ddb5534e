from notion_importer.models import DatabaseSchema, GeneratedInstructionBlock

CONFIDENCE_GUIDELINES = """## Confidence Level Guidelines
- **90-95%**: Clear, unambiguous requirements with exact field matches
- **75-89%**: Good requirements but some field mapping assumptions
- **60-74%**: Reasonable interpretation but may need user verification
- **40-59%**: Uncertain mappings or missing key information
- **Below 40%**: High uncertainty, significant user review needed"""

WARNING_TRIGGERS = """## Warning Triggers
Always add warnings for:
- Unknown or non-standard field values
- Date format ambiguity
- Missing required information
- Assumptions made about user intent
- Operations that might affect multiple records"""

OPERATION_RULES = """## Operation-Specific Rules

### CREATE Operations
- Must include all required fields
- Leave taskId empty/null
- Use appropriate confidence levels (60-95%)
- Include warnings for any uncertain mappings

### UPDATE Operations
- Must include valid taskId from existing database records
- Only modify fields that need updating
- Preserve existing field values not being changed
- Use higher confidence for known records (70-95%)

### STATUS_CHANGE Operations
- Must include valid taskId
- Focus on status-related fields only
- Validate status transitions are logical
- High confidence for simple status updates (80-95%)"""


def generate_validation_rules_prompt(schema: DatabaseSchema) -> GeneratedInstructionBlock:
    title_fields = schema.fields_of_type("title")
    select_fields = schema.fields_of_type("select", "multi_select")
    date_fields = schema.fields_of_type("date")

    if title_fields:
        names = ", ".join(f.name for f in title_fields)
        required = f"- **Title/Name Fields**: {names} - REQUIRED for all operations"
    else:
        required = "- No title fields identified"

    select_lines = []
    for field in select_fields:
        kind = "Single value" if field.type == "select" else "Array of values"
        options = '", "'.join(field.options) if field.options else "No options defined"
        select_lines.append(f'- **{field.name}** ({field.type}): {kind} from ["{options}"]')
    select_rules = "\n".join(select_lines) or "- No select fields identified"

    if date_fields:
        date_rules = "\n".join(f"- **{f.name}**: Use YYYY-MM-DD format only" for f in date_fields)
    else:
        date_rules = "- No date fields identified"

    content = f"""# Data Validation Rules for "{schema.title}"

## Required Field Validation
{required}

## Field Type Validation
### Select Field Restrictions
{select_rules}

### Date Field Format
{date_rules}

{OPERATION_RULES}

{CONFIDENCE_GUIDELINES}

{WARNING_TRIGGERS}"""

    return GeneratedInstructionBlock(
        name="Validation Rules",
        content=content,
        category="validation-rules",
    )
