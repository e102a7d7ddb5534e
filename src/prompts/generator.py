import logging
from typing import List, Sequence

from notion_importer.models import DatabaseSchema, GeneratedInstructionBlock
from prompts.api_query import generate_api_query_prompt
from prompts.data_patterns import generate_data_patterns_prompt
from prompts.database_structure import generate_database_structure_prompt
from prompts.field_guidance import generate_field_guidance_prompts
from prompts.validation_rules import generate_validation_rules_prompt

logger = logging.getLogger(__name__)

DATABASE_STRUCTURE_HEADER = """

=== DATABASE STRUCTURE AND RULES ===
The following system prompts contain the exact database structure, field definitions, and rules you MUST follow:

"""

DATABASE_STRUCTURE_FOOTER = """=== END DATABASE STRUCTURE ===

"""


def generate_system_prompts(schema: DatabaseSchema) -> List[GeneratedInstructionBlock]:
    """
    Build every instruction block for a schema, in the order they are sent:
    structure, field guidance, data patterns, validation rules, API examples.
    """
    prompts = [generate_database_structure_prompt(schema)]
    prompts.extend(generate_field_guidance_prompts(schema))
    if schema.sample_records:
        prompts.append(generate_data_patterns_prompt(schema))
    prompts.append(generate_validation_rules_prompt(schema))
    prompts.append(generate_api_query_prompt(schema))

    logger.debug(f"Generated {len(prompts)} system prompts for '{schema.title}'")
    return prompts


def build_database_structure_section(system_prompts: Sequence) -> str:
    """Concatenate prompt blocks (anything with name/content) between fixed delimiters."""
    if not system_prompts:
        return ""

    section = DATABASE_STRUCTURE_HEADER
    for prompt in system_prompts:
        section += f"### {prompt.name}\n{prompt.content}\n\n"
    section += DATABASE_STRUCTURE_FOOTER
    return section
