import json

from llm.request_builder import (
    build_operation_update_user_prompt,
    build_plan_messages,
    build_update_messages,
    build_user_prompt_with_files,
)
from notion_importer.models import OperationPlanItem, ProcessedFile, SystemPrompt
from prompts.templates import (
    ATTACHED_FILES_HEADER,
    IMAGE_ANALYSIS_DIRECTIVE,
    OPERATION_UPDATE_SYSTEM_PROMPT,
    PLAN_GENERATION_SYSTEM_PROMPT,
)

DATA_URL = "data:image/jpeg;base64,AAAA"


def _csv() -> ProcessedFile:
    return ProcessedFile(name="tasks.csv", type="text/csv", content="[CSV Data: tasks.csv]\nRows: 1")


def _image() -> ProcessedFile:
    return ProcessedFile(
        name="board.png",
        type="image/png",
        content="[Image: board.png] - Screenshot",
        metadata={"dataUrl": DATA_URL},
    )


def test_plan_messages_without_files_use_plain_text() -> None:
    prompts = [SystemPrompt(name="Database Structure", content="fields here")]
    messages = build_plan_messages("Add a task to call Bob", prompts)

    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"].startswith(PLAN_GENERATION_SYSTEM_PROMPT)
    assert "=== DATABASE STRUCTURE AND RULES ===" in messages[0]["content"]
    assert "### Database Structure\nfields here" in messages[0]["content"]
    assert messages[1]["content"] == "Add a task to call Bob"


def test_no_structure_section_without_prompts() -> None:
    messages = build_plan_messages("hello", [])
    assert messages[0]["content"] == PLAN_GENERATION_SYSTEM_PROMPT


def test_csv_attachment_is_inlined_as_text() -> None:
    messages = build_plan_messages("Import these", [], [_csv()])
    user = messages[1]["content"]

    assert isinstance(user, str)
    assert user.startswith("Import these" + ATTACHED_FILES_HEADER)
    assert "[CSV Data: tasks.csv]" in user
    assert "=== END FILES ===" in user
    assert IMAGE_ANALYSIS_DIRECTIVE not in user


def test_image_attachment_becomes_image_part() -> None:
    messages = build_plan_messages("What is on this board?", [], [_csv(), _image()])
    parts = messages[1]["content"]

    assert isinstance(parts, list)
    assert parts[0]["type"] == "text"
    assert IMAGE_ANALYSIS_DIRECTIVE in parts[0]["text"]
    assert parts[1:] == [{"type": "image_url", "image_url": {"url": DATA_URL}}]


def test_image_data_url_can_come_from_content() -> None:
    image = ProcessedFile(name="shot.jpg", type="image/jpeg", content=DATA_URL)
    parts = build_plan_messages("see image", [], [image])[1]["content"]
    assert parts[-1]["image_url"]["url"] == DATA_URL


def test_image_directive_follows_image_block_only() -> None:
    text = build_user_prompt_with_files("x", [_image(), _csv()])
    image_at = text.index("[Image: board.png]")
    directive_at = text.index(IMAGE_ANALYSIS_DIRECTIVE)
    csv_at = text.index("[CSV Data: tasks.csv]")
    assert image_at < directive_at < csv_at


def test_update_messages_dump_operations_with_task_ids() -> None:
    ops = [
        OperationPlanItem(id="op-1", kind="create", fields={"Name": "A"}),
        OperationPlanItem(id="op-2", kind="update", taskId="page-9", fields={"Status": "Done"}),
    ]
    messages = build_update_messages("mark everything high priority", ops, [])

    assert messages[0]["content"] == OPERATION_UPDATE_SYSTEM_PROMPT
    user = messages[1]["content"]
    assert "User Request: mark everything high priority" in user

    dumped = user.split("Here are the current operations to modify:\n\n", 1)[1]
    dumped = dumped.split("\n\nUser Request:", 1)[0]
    context = json.loads(dumped)
    assert [c["index"] for c in context] == [1, 2]
    assert context[1]["taskId"] == "page-9"
    assert context[0]["taskId"] is None


def test_update_user_prompt_keeps_unicode() -> None:
    ops = [OperationPlanItem(id="op-1", fields={"Name": "Café"})]
    assert "Café" in build_operation_update_user_prompt("fix", ops)
