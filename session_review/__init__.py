"""Transcript rendering engine for coding-agent session review."""

from .factories import normalize_message, normalize_messages
from .models import (
    CommandStatus,
    ContentBlock,
    LineKind,
    Message,
    MessageType,
    RenderedLine,
    RenderOptions,
    SubagentRef,
)
from .renderer import render_transcript
from .visibility import TranscriptView, hidden_count, toggle_group, visible_lines

__all__ = [
    "CommandStatus",
    "ContentBlock",
    "LineKind",
    "Message",
    "MessageType",
    "RenderedLine",
    "RenderOptions",
    "SubagentRef",
    "TranscriptView",
    "hidden_count",
    "normalize_message",
    "normalize_messages",
    "render_transcript",
    "toggle_group",
    "visible_lines",
]
