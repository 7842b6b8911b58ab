"""Load session transcripts from Claude Code JSONL files."""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from .factories import normalize_message
from .models import Message

logger = logging.getLogger(__name__)


def load_raw_entries(jsonl_path: Union[str, Path]) -> list[dict[str, Any]]:
    """Read JSON objects from a JSONL file, one per line.

    Blank lines are ignored. Lines that are not valid JSON, or not a JSON
    object, are skipped with a warning.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    jsonl_path = Path(jsonl_path)
    entries: list[dict[str, Any]] = []

    with open(jsonl_path, "r", encoding="utf-8", errors="replace") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry: Any = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(
                    "Line %d of %s | JSON decode error: %s", line_no, jsonl_path, e
                )
                continue
            if not isinstance(entry, dict):
                logger.warning(
                    "Line %d of %s is not a JSON object", line_no, jsonl_path
                )
                continue
            entries.append(entry)

    return entries


def load_messages(jsonl_path: Union[str, Path]) -> list[Message]:
    """Load and normalize every entry of a JSONL transcript, in file order."""
    return [normalize_message(entry) for entry in load_raw_entries(jsonl_path)]


def session_metadata(messages: list[Message]) -> tuple[Optional[str], Optional[str]]:
    """First (cwd, session_id) found in the transcript."""
    cwd = next((m.cwd for m in messages if m.cwd), None)
    session_id = next((m.session_id for m in messages if m.session_id), None)
    return cwd, session_id
