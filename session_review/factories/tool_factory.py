"""Factory for tool use and tool result content.

This module handles tool-specific interpretation of content blocks:
- create_tool_input(): Create typed tool input from a raw input dict
- create_tool_use_block(): Promote AskUserQuestion / ExitPlanMode invocations
- create_tool_result_block(): Promote their results to answers / decisions
- tool_use_preview(): Short argument preview for the ``● Name(preview)`` row
- tool_file_path(): File argument of file-targeting tools
"""

import logging
import re
from typing import Any, Callable, Optional, cast

from pydantic import BaseModel, ValidationError

from ..models import (
    AskUserAnswer,
    AskUserAnswerBlock,
    AskUserQuestionBlock,
    BashInput,
    ContentBlock,
    EditInput,
    GlobInput,
    GrepInput,
    NotebookEditInput,
    PlanContentBlock,
    PlanDecisionBlock,
    ReadInput,
    TaskInput,
    ToolInput,
    ToolResultBlock,
    ToolUseBlock,
    WriteInput,
)
from ..parser import extract_result_text

logger = logging.getLogger(__name__)

PREVIEW_MAX_CHARS = 60

SHELL_TOOL_NAMES = frozenset({"Bash"})
DELEGATION_TOOL_NAMES = frozenset({"Task", "Agent"})
ASK_USER_QUESTION_TOOL_NAMES = frozenset({"AskUserQuestion", "ask_user_question"})
PLAN_TOOL_NAMES = frozenset({"ExitPlanMode"})


# =============================================================================
# Tool Input Models Mapping
# =============================================================================

TOOL_INPUT_MODELS: dict[str, type[BaseModel]] = {
    "Bash": BashInput,
    "Read": ReadInput,
    "Write": WriteInput,
    "Edit": EditInput,
    "MultiEdit": EditInput,
    "NotebookEdit": NotebookEditInput,
    "Glob": GlobInput,
    "Grep": GrepInput,
    "Task": TaskInput,
    "Agent": TaskInput,
}


def create_tool_input(
    tool_name: str, input_data: dict[str, Any]
) -> Optional[ToolInput]:
    """Create typed tool input from raw dictionary.

    Returns:
        A typed input model if validation succeeds, None otherwise.
        Callers fall back to the raw dict.
    """
    model_class = TOOL_INPUT_MODELS.get(tool_name)
    if model_class is None:
        return None
    try:
        return cast(ToolInput, model_class.model_validate(input_data))
    except ValidationError:
        return None


def tool_file_path(tool_name: str, input_data: dict[str, Any]) -> Optional[str]:
    """Return the file argument of a file-targeting tool, if any."""
    parsed = create_tool_input(tool_name, input_data)
    if isinstance(parsed, (ReadInput, WriteInput, EditInput)):
        return parsed.file_path or None
    if isinstance(parsed, NotebookEditInput):
        return parsed.notebook_path or None
    return None


def _first_input_value(input_data: dict[str, Any]) -> str:
    value = next(iter(input_data.values()), "")
    return value if isinstance(value, str) else repr(value)


def tool_use_preview(tool_name: str, input_data: dict[str, Any]) -> str:
    """Primary argument of a tool invocation, cut to PREVIEW_MAX_CHARS."""
    parsed = create_tool_input(tool_name, input_data)
    if isinstance(parsed, BashInput):
        preview = parsed.command
    elif isinstance(parsed, (ReadInput, WriteInput, EditInput)):
        preview = parsed.file_path
    elif isinstance(parsed, NotebookEditInput):
        preview = parsed.notebook_path
    elif isinstance(parsed, (GlobInput, GrepInput)):
        preview = parsed.pattern
    elif isinstance(parsed, TaskInput):
        preview = parsed.description or parsed.prompt
    else:
        preview = _first_input_value(input_data)
    return preview[:PREVIEW_MAX_CHARS]


# =============================================================================
# Tool Use Promotion
# =============================================================================


def _create_ask_user_question(tool_use: ToolUseBlock) -> ContentBlock:
    try:
        return AskUserQuestionBlock.model_validate(
            {**tool_use.input, "id": tool_use.id}
        )
    except ValidationError:
        logger.debug("Malformed AskUserQuestion input for %s", tool_use.id)
        return tool_use


def _create_plan_content(tool_use: ToolUseBlock) -> ContentBlock:
    plan = tool_use.input.get("plan")
    return PlanContentBlock(id=tool_use.id, plan=plan if isinstance(plan, str) else "")


TOOL_USE_PROMOTERS: dict[str, Callable[[ToolUseBlock], ContentBlock]] = {
    "AskUserQuestion": _create_ask_user_question,
    "ask_user_question": _create_ask_user_question,  # Legacy tool name
    "ExitPlanMode": _create_plan_content,
}


def create_tool_use_block(tool_use: ToolUseBlock) -> ContentBlock:
    """Promote interactive tool invocations to their dedicated block variant."""
    promoter = TOOL_USE_PROMOTERS.get(tool_use.name)
    if promoter is None:
        return tool_use
    return promoter(tool_use)


# =============================================================================
# Tool Result Promotion
# =============================================================================

_ANSWER_PATTERN = re.compile(
    r"User has answered your questions?: (.+)\. You can now continue", re.DOTALL
)
_QA_PAIR_PATTERN = re.compile(r'"([^"]+)"="([^"]+)"')
_APPROVED_PLAN_MARKER = "## Approved Plan:"


def parse_ask_user_answer(tool_result: ToolResultBlock) -> AskUserAnswerBlock:
    """Parse an AskUserQuestion result.

    Parses the result format:
    'User has answered your questions: "Q1"="A1", "Q2"="A2". You can now continue...'
    Anything else (declined, errors) keeps only the raw message.
    """
    content = extract_result_text(tool_result.content)
    answers: list[AskUserAnswer] = []
    if match := _ANSWER_PATTERN.match(content):
        answers = [
            AskUserAnswer(question=q, answer=a)
            for q, a in _QA_PAIR_PATTERN.findall(match.group(1))
        ]
    return AskUserAnswerBlock(
        tool_use_id=tool_result.tool_use_id, answers=answers, raw_message=content
    )


def parse_plan_decision(tool_result: ToolResultBlock) -> PlanDecisionBlock:
    """Parse an ExitPlanMode result.

    Approved results echo the whole plan after "## Approved Plan:"; the echo
    is dropped since the plan_content row already shows it.
    """
    content = extract_result_text(tool_result.content)
    approved = not tool_result.is_error and "User has approved your plan" in content
    message = content
    if approved and (marker_pos := content.find(_APPROVED_PLAN_MARKER)) > 0:
        message = content[:marker_pos].rstrip()
    return PlanDecisionBlock(
        tool_use_id=tool_result.tool_use_id, approved=approved, message=message
    )


TOOL_RESULT_PROMOTERS: dict[str, Callable[[ToolResultBlock], ContentBlock]] = {
    "AskUserQuestion": parse_ask_user_answer,
    "ask_user_question": parse_ask_user_answer,
    "ExitPlanMode": parse_plan_decision,
}


def create_tool_result_block(
    tool_result: ToolResultBlock, tool_name: Optional[str]
) -> ContentBlock:
    """Promote a tool result according to the tool that produced it."""
    if tool_name is None:
        return tool_result
    promoter = TOOL_RESULT_PROMOTERS.get(tool_name)
    if promoter is None:
        return tool_result
    return promoter(tool_result)
