#!/usr/bin/env python3
"""Tests for content block creation and tool block promotion."""

from session_review.factories import (
    create_content_block,
    create_message_content,
    create_tool_result_block,
    parse_ask_user_answer,
    parse_plan_decision,
    tool_file_path,
    tool_use_preview,
)
from session_review.models import (
    AskUserAnswerBlock,
    AskUserQuestionBlock,
    ImageBlock,
    PlanContentBlock,
    PlanDecisionBlock,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
)


class TestCreateContentBlock:
    """Registry dispatch on the type tag."""

    def test_known_variants(self):
        assert create_content_block({"type": "text", "text": "hi"}) == TextBlock(
            text="hi"
        )
        thinking = create_content_block(
            {"type": "thinking", "thinking": "hmm", "signature": "sig"}
        )
        assert thinking == ThinkingBlock(thinking="hmm", signature="sig")
        image = create_content_block(
            {"type": "image", "source": {"type": "base64", "data": "AAAA"}}
        )
        assert isinstance(image, ImageBlock)

    def test_unknown_tag_is_preserved(self):
        raw = {"type": "server_tool_use", "id": "x", "name": "web_search"}
        assert create_content_block(raw) == UnknownBlock(raw=raw)

    def test_malformed_known_tag_is_preserved(self):
        raw = {"type": "tool_use", "name": "Bash"}  # missing id
        assert create_content_block(raw) == UnknownBlock(raw=raw)

    def test_string_item_becomes_text(self):
        assert create_content_block("plain") == TextBlock(text="plain")

    def test_other_scalars_are_preserved_as_unknown(self):
        assert create_content_block(7) == UnknownBlock(raw=7)
        assert create_content_block(None) == UnknownBlock(raw=None)
        assert create_message_content(["hi", None]) == [
            TextBlock(text="hi"),
            UnknownBlock(raw=None),
        ]

    def test_tool_result_with_null_is_error(self):
        block = create_content_block(
            {"type": "tool_result", "tool_use_id": "t", "content": "x", "is_error": None}
        )
        assert isinstance(block, ToolResultBlock)
        assert not block.is_error

    def test_structured_agent_id_attached_to_results_only(self):
        blocks = create_message_content(
            [
                {"type": "text", "text": "hi"},
                {"type": "tool_result", "tool_use_id": "t", "content": "done"},
            ],
            agent_id="a1b2c3d4e5",
        )
        assert blocks[0] == TextBlock(text="hi")
        assert isinstance(blocks[1], ToolResultBlock)
        assert blocks[1].agent_id == "a1b2c3d4e5"

    def test_single_typed_dict_content(self):
        blocks = create_message_content({"type": "text", "text": "only"})
        assert blocks == [TextBlock(text="only")]


class TestToolUsePromotion:
    """AskUserQuestion and ExitPlanMode invocations get dedicated blocks."""

    def test_ask_user_question(self):
        block = create_content_block(
            {
                "type": "tool_use",
                "id": "q1",
                "name": "AskUserQuestion",
                "input": {
                    "questions": [
                        {
                            "question": "Which database?",
                            "header": "DB",
                            "options": [
                                {"label": "Postgres", "description": "Default"},
                                {"label": "SQLite"},
                            ],
                        }
                    ]
                },
            }
        )

        assert isinstance(block, AskUserQuestionBlock)
        assert block.id == "q1"
        assert block.questions[0].question == "Which database?"
        assert [o.label for o in block.questions[0].options] == ["Postgres", "SQLite"]

    def test_exit_plan_mode(self):
        block = create_content_block(
            {
                "type": "tool_use",
                "id": "p1",
                "name": "ExitPlanMode",
                "input": {"plan": "1. Do it"},
            }
        )
        assert block == PlanContentBlock(id="p1", plan="1. Do it")

    def test_other_tools_stay_tool_use(self):
        block = create_content_block(
            {"type": "tool_use", "id": "t", "name": "Grep", "input": {"pattern": "x"}}
        )
        assert isinstance(block, ToolUseBlock)


class TestToolResultPromotion:
    """Results of interactive tools."""

    def test_answers_are_parsed(self):
        result = ToolResultBlock(
            tool_use_id="q1",
            content='User has answered your questions: "Which database?"="Postgres", '
            '"Cache?"="No". You can now continue with the user\'s answers in mind.',
        )

        block = parse_ask_user_answer(result)

        assert isinstance(block, AskUserAnswerBlock)
        assert block.tool_use_id == "q1"
        assert [(a.question, a.answer) for a in block.answers] == [
            ("Which database?", "Postgres"),
            ("Cache?", "No"),
        ]

    def test_declined_answer_keeps_raw_message(self):
        result = ToolResultBlock(tool_use_id="q1", content="User declined to answer")
        block = parse_ask_user_answer(result)
        assert block.answers == []
        assert block.raw_message == "User declined to answer"

    def test_plan_approved(self):
        result = ToolResultBlock(
            tool_use_id="p1",
            content="User has approved your plan. You can now start coding.\n\n"
            "## Approved Plan:\n1. Do it",
        )

        block = parse_plan_decision(result)

        assert block == PlanDecisionBlock(
            tool_use_id="p1",
            approved=True,
            message="User has approved your plan. You can now start coding.",
        )

    def test_plan_rejected(self):
        result = ToolResultBlock(
            tool_use_id="p1",
            content="The user doesn't want to proceed with this tool use.",
            is_error=True,
        )
        assert parse_plan_decision(result).approved is False

    def test_unrelated_tool_is_not_promoted(self):
        result = ToolResultBlock(tool_use_id="t", content="ok")
        assert create_tool_result_block(result, "Bash") is result
        assert create_tool_result_block(result, None) is result


class TestToolInputHelpers:
    """Preview and file path extraction."""

    def test_previews(self):
        assert tool_use_preview("Bash", {"command": "ls -la"}) == "ls -la"
        assert tool_use_preview("Read", {"file_path": "/a/b.py"}) == "/a/b.py"
        assert tool_use_preview("Glob", {"pattern": "**/*.ex"}) == "**/*.ex"
        assert tool_use_preview("Task", {"description": "Refactor", "prompt": "p"}) == (
            "Refactor"
        )
        assert tool_use_preview("WebFetch", {"url": "https://x.dev"}) == "https://x.dev"
        assert tool_use_preview("TodoWrite", {}) == ""

    def test_preview_is_truncated(self):
        preview = tool_use_preview("Bash", {"command": "x" * 200})
        assert len(preview) == 60

    def test_file_path(self):
        assert tool_file_path("Edit", {"file_path": "/a/b.py", "old_string": "x"}) == (
            "/a/b.py"
        )
        assert tool_file_path("NotebookEdit", {"notebook_path": "/n.ipynb"}) == (
            "/n.ipynb"
        )
        assert tool_file_path("Bash", {"command": "cat /a/b.py"}) is None
        assert tool_file_path("Read", {}) is None
