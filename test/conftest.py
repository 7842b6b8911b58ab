"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, Optional

import pytest


@pytest.fixture
def test_data_dir() -> Path:
    """Return path to test data directory."""
    return Path(__file__).parent / "test_data"


@pytest.fixture
def sample_session_path(test_data_dir: Path) -> Path:
    """JSONL session with Bash, hooks, Read, Task and a subagent mention."""
    return test_data_dir / "sample_session.jsonl"


@pytest.fixture
def bash_pair() -> list[dict[str, Any]]:
    """Stored records for one Bash invocation and its successful result."""
    return [
        stored_record(
            "m1",
            "assistant",
            [
                {
                    "type": "tool_use",
                    "id": "tu1",
                    "name": "Bash",
                    "input": {"command": "ls"},
                }
            ],
        ),
        stored_record(
            "m2",
            "user",
            [
                {
                    "type": "tool_result",
                    "tool_use_id": "tu1",
                    "content": "a.txt",
                    "is_error": False,
                }
            ],
        ),
    ]


def stored_record(
    record_id: str,
    record_type: str,
    content: Any,
    role: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Message record in the flattened shape the store hands out."""
    if role is None and record_type in ("user", "assistant"):
        role = record_type
    return {
        "id": record_id,
        "uuid": f"uuid-{record_id}",
        "type": record_type,
        "role": role,
        "content": content,
        **extra,
    }


def hook_record(
    record_id: str,
    parent_tool_use_id: Optional[str],
    hook_event: str = "PostToolUse",
    hook_name: str = "lint-check",
    command: str = "mix credo",
) -> dict[str, Any]:
    """system-progress record carrying one hook_progress payload."""
    payload: dict[str, Any] = {
        "type": "progress",
        "data": {
            "type": "hook_progress",
            "hookEvent": hook_event,
            "hookName": hook_name,
            "command": command,
        },
    }
    if parent_tool_use_id is not None:
        payload["parentToolUseID"] = parent_tool_use_id
    return {
        "id": record_id,
        "type": "system-progress",
        "content": None,
        "raw_payload": payload,
    }


@pytest.fixture
def make_record():
    """Factory fixture for stored message records."""
    return stored_record


@pytest.fixture
def make_hook():
    """Factory fixture for hook progress records."""
    return hook_record
