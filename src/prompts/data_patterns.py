"""
Data patterns block built from the sample records of a schema snapshot.
"""

import math
import re
from collections import Counter
from typing import Any, Dict, List

from notion_importer.models import DatabaseSchema, FieldSchema, GeneratedInstructionBlock

_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile(r"[^\w\s]")

RECOMMENDATIONS = """Based on the patterns above:
- Focus on commonly used fields (>70% usage rate) for required operations
- Follow established naming conventions when creating new records
- Use the most frequent select values as defaults where appropriate
- Consider field usage patterns when setting confidence levels"""


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _is_used(value: Any) -> bool:
    return value is not None and value != ""


def field_usage(samples: List[Dict[str, Any]], fields: List[FieldSchema]) -> str:
    total = len(samples)
    lines = []
    for field in fields:
        used = sum(1 for record in samples if _is_used(record.get(field.name)))
        percentage = _round_half_up(used / total * 100)
        lines.append(f"- **{field.name}**: Used in {used}/{total} records ({percentage}%)")
    return "\n".join(lines)


def value_distribution(samples: List[Dict[str, Any]], fields: List[FieldSchema]) -> str:
    sections = []
    for field in fields:
        if not field.is_select:
            continue
        known = set(field.options or [])
        counts: Counter = Counter()
        for record in samples:
            value = record.get(field.name)
            if not value:
                continue
            values = value if isinstance(value, list) else [value]
            # options deleted since the sample was written are not advertised
            counts.update(str(v) for v in values if str(v) in known)
        # most_common keeps first-seen order for ties
        lines = "\n".join(f'  - "{value}": {count} times' for value, count in counts.most_common())
        sections.append(f"**{field.name}** distribution:\n{lines}")
    return "\n\n".join(sections) or "No select fields to analyze."


def naming_conventions(samples: List[Dict[str, Any]], fields: List[FieldSchema]) -> str:
    title_field = next((f for f in fields if f.type == "title"), None)
    if title_field is None:
        return "No clear naming patterns identified."

    titles = [
        record[title_field.name]
        for record in samples
        if isinstance(record.get(title_field.name), str) and record.get(title_field.name)
    ]
    if not titles:
        return "No clear naming patterns identified."

    avg_length = _round_half_up(sum(len(t) for t in titles) / len(titles))
    has_numbers = any(_DIGIT.search(t) for t in titles)
    has_special = any(_SPECIAL.search(t) for t in titles)
    examples = ", ".join(f'"{t}"' for t in titles[:3])

    return f"""Observed naming patterns for {title_field.name}:
- Average length: {avg_length} characters
- Contains numbers: {'Yes' if has_numbers else 'No'}
- Contains special characters: {'Yes' if has_special else 'No'}
- Sample titles: {examples}"""


def generate_data_patterns_prompt(schema: DatabaseSchema) -> GeneratedInstructionBlock:
    samples = schema.sample_records
    if not samples:
        raise ValueError("No sample data available for pattern generation")

    content = f"""# Data Patterns Analysis for "{schema.title}"

Based on analysis of {len(samples)} existing records, here are the observed patterns:

## Field Usage Patterns
{field_usage(samples, schema.fields)}

## Value Distribution Patterns
{value_distribution(samples, schema.fields)}

## Naming Conventions
{naming_conventions(samples, schema.fields)}

## Recommendations for New Operations
{RECOMMENDATIONS}

**Important:** These patterns are based on existing data and should inform but not restrict your operations. Always follow the explicit field rules and validation requirements over inferred patterns."""

    return GeneratedInstructionBlock(
        name="Data Patterns Analysis",
        content=content,
        category="data-patterns",
    )
