"""Factory for creating normalized Message instances from raw records.

Raw records come either straight from a Claude Code JSONL transcript or from
the store, where the entry was already flattened:

    JSONL:  {"uuid", "type", "message": {"role", "content"}, "timestamp",
             "agentId", "sessionId", "cwd", "isSidechain", "toolUseResult"}
    Stored: {"id", "uuid", "type", "role", "content", "raw_payload",
             "timestamp", "agent_id", "session_id"}

Normalization never raises, never reorders and never deduplicates.
"""

import logging
from typing import Any, Iterable, Optional, cast

from ..models import (
    ContentBlock,
    Message,
    MessageType,
    TextBlock,
    ThinkingBlock,
    UnknownBlock,
)
from ..parser import parse_timestamp
from .block_factory import create_message_content, create_progress_content

logger = logging.getLogger(__name__)

# Maps raw entry type strings to normalized message types
MESSAGE_TYPES: dict[str, MessageType] = {
    "user": MessageType.USER,
    "assistant": MessageType.ASSISTANT,
    "progress": MessageType.SYSTEM_PROGRESS,
    "system-progress": MessageType.SYSTEM_PROGRESS,
    "system_progress": MessageType.SYSTEM_PROGRESS,
    "hook_progress": MessageType.SYSTEM_PROGRESS,
    "thinking": MessageType.THINKING,
}


def parse_message_type(raw_type: Any) -> MessageType:
    """Map a raw entry type to MessageType; anything unrecognised is SYSTEM."""
    if isinstance(raw_type, MessageType):
        return raw_type
    return MESSAGE_TYPES.get(str(raw_type), MessageType.SYSTEM)


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """Return the first non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _structured_agent_id(data: dict[str, Any]) -> Optional[str]:
    """Sub-agent id reported by a delegation result (toolUseResult.agentId)."""
    tool_use_result = data.get("toolUseResult")
    if isinstance(tool_use_result, dict):
        agent_id = cast(dict[str, Any], tool_use_result).get("agentId")
        if agent_id:
            return str(agent_id)
    return None


def _as_thinking(content: list[ContentBlock]) -> list[ContentBlock]:
    """Text blocks of a thinking entry are thinking spans."""
    return [
        ThinkingBlock(thinking=block.text) if isinstance(block, TextBlock) else block
        for block in content
    ]


def normalize_message(raw: Any) -> Message:
    """Create a normalized Message from a raw record.

    Args:
        raw: A Message (returned unchanged), a JSONL entry dict or a stored
            record dict. Anything else becomes a SYSTEM message carrying a
            single UnknownBlock.

    Returns:
        Normalized Message
    """
    if isinstance(raw, Message):
        return raw
    if not isinstance(raw, dict):
        logger.debug("Non-mapping message record of type %s", type(raw).__name__)
        return Message(content=[UnknownBlock(raw=raw)])

    data = cast(dict[str, Any], raw)
    inner = data.get("message")
    inner_map = cast(dict[str, Any], inner) if isinstance(inner, dict) else {}

    message_type = parse_message_type(data.get("type"))
    raw_payload = data.get("raw_payload")
    if raw_payload is None and message_type == MessageType.SYSTEM_PROGRESS:
        raw_payload = data

    content_data = inner_map.get("content")
    if content_data is None:
        content_data = data.get("content")

    structured_agent_id = _structured_agent_id(data)
    content = create_message_content(content_data, structured_agent_id)
    if not content and message_type == MessageType.SYSTEM_PROGRESS:
        content = create_progress_content(raw_payload)
    if message_type == MessageType.THINKING:
        content = _as_thinking(content)

    # A stored record's agent_id marks the owning sub-conversation; a JSONL
    # user entry's top-level agentId mirrors toolUseResult and does not.
    agent_id = data.get("agent_id")
    if agent_id is None and data.get("isSidechain"):
        agent_id = data.get("agentId")

    return Message(
        id=_optional_str(data.get("id")),
        uuid=_optional_str(data.get("uuid")),
        type=message_type,
        role=_optional_str(_pick(inner_map, "role") or data.get("role")),
        content=content,
        raw_payload=raw_payload,
        timestamp=parse_timestamp(data.get("timestamp")),
        agent_id=_optional_str(agent_id),
        session_id=_optional_str(_pick(data, "session_id", "sessionId")),
        cwd=_optional_str(data.get("cwd")),
        is_sidechain=bool(_pick(data, "is_sidechain", "isSidechain")),
    )


def normalize_messages(raw_messages: Optional[Iterable[Any]]) -> list[Message]:
    """Normalize raw records, preserving their order."""
    if raw_messages is None:
        return []
    return [normalize_message(raw) for raw in raw_messages]
