#!/usr/bin/env python3
"""Tests for JSONL transcript loading."""

import logging
from pathlib import Path

import pytest

from session_review.loader import load_messages, load_raw_entries, session_metadata
from session_review.models import MessageType


class TestLoadMessages:
    """Loading sessions from disk."""

    def test_sample_session(self, sample_session_path: Path):
        messages = load_messages(sample_session_path)

        assert len(messages) == 11
        assert messages[0].type == MessageType.USER
        assert messages[2].type == MessageType.SYSTEM_PROGRESS
        assert messages[-1].type == MessageType.SYSTEM

    def test_malformed_lines_are_skipped_with_warning(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ):
        path = tmp_path / "session.jsonl"
        path.write_text(
            '{"type": "user", "uuid": "u1", "message": {"content": "hi"}}\n'
            "{broken\n"
            "\n"
            "[1, 2, 3]\n",
            encoding="utf-8",
        )

        with caplog.at_level(logging.WARNING, logger="session_review.loader"):
            entries = load_raw_entries(path)

        assert [e["uuid"] for e in entries] == ["u1"]
        assert "Line 2" in caplog.text
        assert "Line 4" in caplog.text

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_messages(tmp_path / "nope.jsonl")

    def test_session_metadata(self, sample_session_path: Path):
        cwd, session_id = session_metadata(load_messages(sample_session_path))
        assert cwd == "/work/app"
        assert session_id == "sess-1"

    def test_session_metadata_empty(self):
        assert session_metadata([]) == (None, None)
