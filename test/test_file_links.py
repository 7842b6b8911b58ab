#!/usr/bin/env python3
"""Tests for file reference linkification."""

from session_review import LineKind, MessageType, RenderOptions, render_transcript
from session_review.annotators import linkify_line
from session_review.models import RenderedLine


def text_line(text: str, file_ref: str | None = None) -> RenderedLine:
    return RenderedLine(
        line_number=1,
        message_id="m1",
        kind=LineKind.TEXT,
        type=MessageType.ASSISTANT,
        role="assistant",
        text=text,
        file_ref_relative_path=file_ref,
    )


class TestLinkifyLine:
    """linkify_line() behavior."""

    def test_known_file_is_linked(self):
        line = linkify_line(text_line("Updated lib/bar.ex today"), "p1", frozenset({"lib/bar.ex"}))

        assert line.is_html is True
        assert line.text == (
            'Updated <a href="/projects/p1/files/lib/bar.ex" class="file-ref-link">'
            "lib/bar.ex</a> today"
        )

    def test_empty_known_files_leaves_text(self):
        line = linkify_line(text_line("Updated lib/bar.ex"), "p1", frozenset())
        assert line.is_html is False
        assert line.text == "Updated lib/bar.ex"

    def test_missing_project_leaves_text(self):
        line = linkify_line(text_line("Updated lib/bar.ex"), None, frozenset({"lib/bar.ex"}))
        assert line.is_html is False
        assert line.text == "Updated lib/bar.ex"

    def test_unknown_paths_stay_plain(self):
        line = linkify_line(text_line("See lib/other.ex"), "p1", frozenset({"lib/bar.ex"}))
        assert line.is_html is False
        assert line.text == "See lib/other.ex"

    def test_line_suffix_stays_outside_anchor(self):
        line = linkify_line(
            text_line("error at lib/bar.ex:12:3, fix it"), "p1", frozenset({"lib/bar.ex"})
        )
        assert line.text == (
            'error at <a href="/projects/p1/files/lib/bar.ex" class="file-ref-link">'
            "lib/bar.ex</a>:12:3, fix it"
        )

    def test_surrounding_text_is_escaped(self):
        line = linkify_line(
            text_line("<b> (lib/bar.ex) & more"), "p1", frozenset({"lib/bar.ex"})
        )
        assert line.text.startswith("&lt;b&gt; (<a ")
        assert line.text.endswith("</a>) &amp; more")

    def test_multiple_paths(self):
        line = linkify_line(
            text_line("lib/a.ex and lib/b.ex and lib/c.ex"),
            "p1",
            frozenset({"lib/a.ex", "lib/c.ex"}),
        )
        assert line.text.count('class="file-ref-link"') == 2
        assert " and lib/b.ex and " in line.text

    def test_structured_ref_takes_priority(self):
        line = linkify_line(
            text_line("● Edit(lib/bar.ex)", file_ref="lib/bar.ex"),
            "p1",
            frozenset({"lib/bar.ex"}),
        )
        assert line.text == (
            '● Edit(<a href="/projects/p1/files/lib/bar.ex" class="file-ref-link">'
            "lib/bar.ex</a>)"
        )

    def test_structured_ref_skips_longer_paths(self):
        line = linkify_line(
            text_line("see test/bar.ex and bar.ex", file_ref="bar.ex"),
            "p1",
            frozenset({"bar.ex"}),
        )
        assert line.text == (
            'see test/bar.ex and <a href="/projects/p1/files/bar.ex" '
            'class="file-ref-link">bar.ex</a>'
        )

    def test_code_lines_are_skipped(self):
        line = text_line("lib/bar.ex")
        line.is_code = True
        linkify_line(line, "p1", frozenset({"lib/bar.ex"}))
        assert line.text == "lib/bar.ex"
        assert line.is_html is False


class TestRenderedLinks:
    """Linkification inside render_transcript()."""

    def test_scenario_with_and_without_known_files(self, make_record):
        records = [make_record("m1", "assistant", "Changed lib/bar.ex")]

        linked = render_transcript(
            records, RenderOptions(project_id="p1", known_files=frozenset({"lib/bar.ex"}))
        )
        plain = render_transcript(
            records, RenderOptions(project_id="p1", known_files=frozenset())
        )

        assert '<a href="/projects/p1/files/lib/bar.ex"' in linked[0].text
        assert plain[0].text == "Changed lib/bar.ex"
        assert plain[0].is_html is False

    def test_read_tool_result_carries_file_ref(self, sample_session_path):
        from session_review.loader import load_messages

        lines = render_transcript(
            load_messages(sample_session_path),
            RenderOptions(
                session_cwd="/work/app",
                project_id="p1",
                known_files=frozenset({"lib/bar.ex"}),
            ),
        )

        read_use = next(l for l in lines if l.tool_name == "Read" and l.kind == LineKind.TOOL_USE)
        read_result = next(
            l for l in lines if l.tool_name == "Read" and l.kind == LineKind.TOOL_RESULT
        )
        assert read_use.is_html is True
        assert "/projects/p1/files/lib/bar.ex" in read_use.text
        assert read_result.file_ref_relative_path == "lib/bar.ex"
        # Numbered file content is code and never linkified
        assert read_result.is_code is True
        assert read_result.is_html is False
