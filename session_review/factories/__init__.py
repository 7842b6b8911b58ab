"""Factory modules for creating typed objects from raw data."""

from .block_factory import (
    # Content block creation
    create_content_block,
    create_hook_progress_block,
    create_message_content,
    create_progress_content,
    # Registries
    CONTENT_BLOCK_MODELS,
    PROGRESS_BLOCK_CREATORS,
)
from .message_factory import (
    # Message normalization
    normalize_message,
    normalize_messages,
    parse_message_type,
)
from .tool_factory import (
    # Tool input typing
    create_tool_input,
    tool_file_path,
    tool_use_preview,
    # Tool block promotion
    create_tool_use_block,
    create_tool_result_block,
    parse_ask_user_answer,
    parse_plan_decision,
    # Tool name sets
    ASK_USER_QUESTION_TOOL_NAMES,
    DELEGATION_TOOL_NAMES,
    PLAN_TOOL_NAMES,
    SHELL_TOOL_NAMES,
    # Tool input models mapping
    TOOL_INPUT_MODELS,
)

__all__ = [
    # Content block creation
    "create_content_block",
    "create_hook_progress_block",
    "create_message_content",
    "create_progress_content",
    # Registries
    "CONTENT_BLOCK_MODELS",
    "PROGRESS_BLOCK_CREATORS",
    # Message normalization
    "normalize_message",
    "normalize_messages",
    "parse_message_type",
    # Tool input typing
    "create_tool_input",
    "tool_file_path",
    "tool_use_preview",
    # Tool block promotion
    "create_tool_use_block",
    "create_tool_result_block",
    "parse_ask_user_answer",
    "parse_plan_decision",
    # Tool name sets
    "ASK_USER_QUESTION_TOOL_NAMES",
    "DELEGATION_TOOL_NAMES",
    "PLAN_TOOL_NAMES",
    "SHELL_TOOL_NAMES",
    # Tool input models mapping
    "TOOL_INPUT_MODELS",
]
