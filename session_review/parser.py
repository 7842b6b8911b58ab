#!/usr/bin/env python3
"""Parse and extract data from raw transcript values.

This module provides small utility functions shared by the factories and
the renderer:
- parse_timestamp: Parse ISO timestamps
- strip_ansi: Remove terminal escape sequences
- extract_result_text: Flatten tool result content to text
- to_relative_path / relativize_in_text: Strip the session cwd prefix

For Message and ContentBlock creation, see factories/.
"""

import re
from datetime import datetime
from typing import Any, Optional

ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")

# Marker that starts every rendered tool result row
RESULT_PREFIX = "  ⎿  "


def parse_timestamp(timestamp: Any) -> Optional[datetime]:
    """Parse ISO timestamp to datetime object."""
    if isinstance(timestamp, datetime):
        return timestamp
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text."""
    return ANSI_ESCAPE_PATTERN.sub("", text)


def extract_result_text(content: Any) -> str:
    """Extract text from tool result content.

    Handles both string content and structured content
    (``[{"type": "text", "text": "..."}, ...]``). Image items become an
    ``[image]`` marker; other items are skipped.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return str(content)
    text_parts: list[str] = []
    for item in content:
        if not isinstance(item, dict):
            text_parts.append(str(item))
        elif item.get("type") == "text":
            text_parts.append(str(item.get("text", "")))
        elif item.get("type") == "image":
            text_parts.append("[image]")
    return "\n".join(text_parts)


def _cwd_prefix(session_cwd: str) -> str:
    return session_cwd.rstrip("/") + "/"


def to_relative_path(path: str, session_cwd: Optional[str]) -> str:
    """Convert an absolute path to one relative to ``session_cwd``.

    Returns the original path when session_cwd is None, the path is not
    absolute, or it does not live under session_cwd.
    """
    if not session_cwd or not path.startswith("/"):
        return path
    prefix = _cwd_prefix(session_cwd)
    if path.startswith(prefix) and len(path) > len(prefix):
        return path[len(prefix) :]
    return path


def relativize_in_text(text: str, session_cwd: Optional[str]) -> str:
    """Remove every occurrence of the session cwd prefix from free text."""
    if not session_cwd or session_cwd == "/":
        return text
    return text.replace(_cwd_prefix(session_cwd), "")


def result_body(text: str) -> str:
    """Rendered tool result text without its RESULT_PREFIX marker."""
    return text[len(RESULT_PREFIX) :] if text.startswith(RESULT_PREFIX) else text
