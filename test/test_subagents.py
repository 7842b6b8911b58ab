#!/usr/bin/env python3
"""Tests for subagent detection."""

from session_review import LineKind, RenderOptions, render_transcript
from session_review.annotators import detect_subagent_id
from session_review.loader import load_messages


class TestTextHeuristic:
    """Agent ids mentioned in assistant text."""

    def test_launch_line(self, make_record):
        text = "Launching agent-9f3c2a1b to handle refactor"
        lines = render_transcript(
            [make_record("m1", "assistant", [{"type": "text", "text": text}])],
            RenderOptions(session_id="sid"),
        )

        (line,) = lines
        assert line.kind == LineKind.SUBAGENT_LAUNCH
        assert line.text == text
        assert line.hidden_by_default is False
        assert line.subagent is not None
        assert line.subagent.agent_id == "9f3c2a1b"
        assert line.subagent.label == "9f3c2a1"
        assert line.subagent.href == "/sessions/sid/agents/9f3c2a1b"
        assert line.subagent.source == "text"

    def test_agent_id_phrase(self):
        assert detect_subagent_id("agentId: abcdef1234 (for resuming)") == "abcdef1234"

    def test_short_ids_do_not_match(self):
        assert detect_subagent_id("see agent-abc123") is None
        assert detect_subagent_id("no delegation here") is None

    def test_user_text_is_not_scanned(self, make_record):
        lines = render_transcript(
            [make_record("m1", "user", "what did agent-9f3c2a1b do?")]
        )
        assert lines[0].kind == LineKind.TEXT
        assert lines[0].subagent is None

    def test_session_id_falls_back_to_message(self, make_record):
        record = make_record("m1", "assistant", "Started agent-9f3c2a1b", session_id="s-7")
        (line,) = render_transcript([record])
        assert line.subagent.href == "/sessions/s-7/agents/9f3c2a1b"

    def test_no_session_means_no_href(self, make_record):
        (line,) = render_transcript([make_record("m1", "assistant", "agent-9f3c2a1b")])
        assert line.kind == LineKind.SUBAGENT_LAUNCH
        assert line.subagent.href is None

    def test_fenced_code_is_not_scanned(self, make_record):
        text = "```\nagent-9f3c2a1b\n```"
        (line,) = render_transcript([make_record("m1", "assistant", text)])
        assert line.is_code is True
        assert line.kind == LineKind.TEXT


class TestStructuredAgentIds:
    """toolUseResult.agentId takes priority over text."""

    def test_task_line_gets_structured_ref(self, sample_session_path):
        lines = render_transcript(load_messages(sample_session_path))

        task = next(l for l in lines if l.tool_name == "Task" and l.kind == LineKind.TOOL_USE)
        assert task.subagent is not None
        assert task.subagent.source == "structured"
        assert task.subagent.agent_id == "a1b2c3d4e5"
        assert task.subagent.href == "/sessions/sess-1/agents/a1b2c3d4e5"

    def test_text_mention_reuses_structured_ref(self, sample_session_path):
        lines = render_transcript(load_messages(sample_session_path))

        task = next(l for l in lines if l.tool_name == "Task" and l.kind == LineKind.TOOL_USE)
        mention = next(l for l in lines if l.kind == LineKind.SUBAGENT_LAUNCH)
        assert mention.subagent == task.subagent
        assert mention.text == "Subagent agent-a1b2c3d4e5 finished the refactor."
