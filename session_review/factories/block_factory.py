"""Factory for creating ContentBlock instances from raw data.

Raw content arrives in several shapes (JSONL message content, stored
``{"blocks": [...]}`` / ``{"text": ...}`` maps, bare strings). This module
turns any of them into an ordered list of ContentBlock variants:
- Registry dispatch on the ``type`` tag
- UnknownBlock for unrecognised tags and failed validation (never dropped)
- HookProgressBlock from progress payloads
"""

import logging
from typing import Any, Callable, Optional, cast

from pydantic import BaseModel, ValidationError

from ..models import (
    AskUserAnswerBlock,
    AskUserQuestionBlock,
    ContentBlock,
    HookProgressBlock,
    ImageBlock,
    PlanContentBlock,
    PlanDecisionBlock,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
)
from .tool_factory import create_tool_use_block

logger = logging.getLogger(__name__)


# =============================================================================
# Content Block Registry
# =============================================================================

# Maps content type strings to their model classes
CONTENT_BLOCK_MODELS: dict[str, type[BaseModel]] = {
    "text": TextBlock,
    "thinking": ThinkingBlock,
    "tool_use": ToolUseBlock,
    "tool_result": ToolResultBlock,
    "ask_user_question": AskUserQuestionBlock,
    "ask_user_answer": AskUserAnswerBlock,
    "plan_content": PlanContentBlock,
    "plan_decision": PlanDecisionBlock,
    "hook_progress": HookProgressBlock,
    "image": ImageBlock,
}


def create_hook_progress_block(
    data: dict[str, Any], parent_tool_use_id: Optional[str] = None
) -> HookProgressBlock:
    """Create a HookProgressBlock from a hook progress payload.

    Accepts both the transcript's camelCase keys (hookEvent, hookName) and
    snake_case keys. Missing values default to empty strings.
    """

    def pick(*keys: str) -> Any:
        for key in keys:
            value = data.get(key)
            if value is not None:
                return value
        return None

    parent = pick("parent_tool_use_id", "parentToolUseID") or parent_tool_use_id
    return HookProgressBlock(
        parent_tool_use_id=str(parent) if parent else None,
        hook_event=str(pick("hook_event", "hookEvent") or ""),
        hook_name=str(pick("hook_name", "hookName") or ""),
        command=str(pick("command") or ""),
    )


def _create_tool_result(data: dict[str, Any], agent_id: Optional[str]) -> ContentBlock:
    if agent_id and "agent_id" not in data:
        data = {**data, "agent_id": agent_id}
    return ToolResultBlock.model_validate(data)


def create_content_block(
    item_data: Any, agent_id: Optional[str] = None
) -> ContentBlock:
    """Create a ContentBlock from raw data using the registry.

    Args:
        item_data: The raw item (normally a dict with a ``type`` tag)
        agent_id: Structured sub-agent id to attach to tool results
            (from the entry's ``toolUseResult.agentId``)

    Returns:
        ContentBlock instance. Strings become TextBlock; unknown or malformed
        dicts and any other value become UnknownBlock.
    """
    if isinstance(item_data, str):
        return TextBlock(text=item_data)
    if not isinstance(item_data, dict):
        return UnknownBlock(raw=item_data)

    data = cast(dict[str, Any], item_data)
    content_type = data.get("type")
    model_class = CONTENT_BLOCK_MODELS.get(content_type)  # type: ignore[arg-type]
    if model_class is None:
        logger.debug("Unknown content block type %r", content_type)
        return UnknownBlock(raw=data)

    try:
        if model_class is ToolResultBlock:
            return _create_tool_result(data, agent_id)
        if model_class is HookProgressBlock:
            return create_hook_progress_block(data)
        block = model_class.model_validate(data)
    except ValidationError as e:
        logger.debug("Malformed %s block: %s", content_type, e.error_count())
        return UnknownBlock(raw=data)

    if isinstance(block, ToolUseBlock):
        return create_tool_use_block(block)
    return cast(ContentBlock, block)


def create_message_content(
    content_data: Any, agent_id: Optional[str] = None
) -> list[ContentBlock]:
    """Create a list of ContentBlocks from message content data.

    Always returns a list. Accepted shapes:
    - None -> []
    - str -> [TextBlock]
    - list -> one block per item
    - {"blocks": [...]} -> one block per item
    - {"text": "..."} -> [TextBlock]
    - any other dict -> [UnknownBlock]
    """
    if content_data is None:
        return []
    if isinstance(content_data, str):
        return [TextBlock(text=content_data)]
    if isinstance(content_data, dict):
        content_map = cast(dict[str, Any], content_data)
        if isinstance(content_map.get("blocks"), list):
            content_data = content_map["blocks"]
        elif isinstance(content_map.get("text"), str):
            return [TextBlock(text=content_map["text"])]
        elif "type" in content_map:
            return [create_content_block(content_map, agent_id)]
        else:
            return [UnknownBlock(raw=content_map)]
    if isinstance(content_data, list):
        return [
            create_content_block(item, agent_id)
            for item in cast(list[Any], content_data)
        ]
    return [UnknownBlock(raw=content_data)]


ProgressBlockCreator = Callable[[dict[str, Any], Optional[str]], ContentBlock]

# Registry of progress payload creators keyed by ``data.type``
PROGRESS_BLOCK_CREATORS: dict[str, ProgressBlockCreator] = {
    "hook_progress": create_hook_progress_block,
}


def create_progress_content(payload: Any) -> list[ContentBlock]:
    """Create content blocks from a progress entry's raw payload.

    Payloads whose ``data.type`` has no creator produce no blocks; they are
    diagnostic noise that only debug rendering surfaces.
    """
    if not isinstance(payload, dict):
        return []
    payload_map = cast(dict[str, Any], payload)
    data = payload_map.get("data")
    if not isinstance(data, dict):
        return []
    data_map = cast(dict[str, Any], data)
    creator = PROGRESS_BLOCK_CREATORS.get(data_map.get("type"))  # type: ignore[arg-type]
    if creator is None:
        return []
    parent = payload_map.get("parentToolUseID") or payload_map.get(
        "parent_tool_use_id"
    )
    return [creator(data_map, parent)]
