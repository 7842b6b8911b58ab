#!/usr/bin/env python3
"""CLI interface for session-review."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .html import render_panel
from .loader import load_messages, session_metadata
from .models import RenderedLine, RenderOptions
from .renderer import render_transcript
from .visibility import visible_lines

logger = logging.getLogger(__name__)


def read_known_files(path: Path) -> frozenset[str]:
    """Project-relative paths from a file, one per line."""
    with open(path, "r", encoding="utf-8") as f:
        return frozenset(line.strip() for line in f if line.strip())


def format_text(lines: list[RenderedLine]) -> str:
    return "\n".join(f"{line.line_number:4d}  {line.text}" for line in lines)


def format_json(lines: list[RenderedLine]) -> str:
    return json.dumps(
        [line.to_dict() for line in lines], indent=2, ensure_ascii=False, default=str
    )


@click.group()
def main() -> None:
    """Render coding-agent session transcripts for review."""


@main.command()
@click.argument("session_path", type=click.Path(path_type=Path))
@click.option(
    "--cwd",
    "session_cwd",
    type=str,
    default=None,
    help="Session working directory stripped from paths (default: from the transcript)",
)
@click.option(
    "--project-id",
    type=str,
    default=None,
    help="Project id used for file links",
)
@click.option(
    "--known-files",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="File listing project-relative paths (one per line) that may be linked",
)
@click.option(
    "--session-id",
    type=str,
    default=None,
    help="Session id used for subagent links (default: from the transcript)",
)
@click.option(
    "--expand-tool",
    "expand_tools",
    multiple=True,
    help="Expand the results of this tool_use id (repeatable)",
)
@click.option(
    "--expand-hook",
    "expand_hooks",
    multiple=True,
    help="Expand this hook group key (repeatable)",
)
@click.option(
    "--all",
    "show_all",
    is_flag=True,
    help="Print every rendered line, including hidden ones",
)
@click.option(
    "--show-debug",
    is_flag=True,
    help="Include diagnostic lines and raw payloads",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "html"]),
    default="text",
    help="Output format (default: text)",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write output to this file instead of stdout",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging and show full traceback on errors.",
)
def render(
    session_path: Path,
    session_cwd: Optional[str],
    project_id: Optional[str],
    known_files: Optional[Path],
    session_id: Optional[str],
    expand_tools: tuple[str, ...],
    expand_hooks: tuple[str, ...],
    show_all: bool,
    show_debug: bool,
    output_format: str,
    output: Optional[Path],
    debug: bool,
) -> None:
    """Render a session transcript.

    SESSION_PATH: Path to a Claude Code session JSONL file.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        messages = load_messages(session_path)
        default_cwd, default_session_id = session_metadata(messages)
        options = RenderOptions(
            session_cwd=session_cwd or default_cwd,
            known_files=read_known_files(known_files) if known_files else None,
            project_id=project_id,
            show_debug=show_debug,
            session_id=session_id or default_session_id,
        )
        rendered = render_transcript(messages, options)
        logger.debug("Rendered %d lines from %s", len(rendered), session_path)

        expanded_tools = frozenset(expand_tools)
        expanded_hooks = frozenset(expand_hooks)
        if output_format == "html":
            content = render_panel(
                rendered,
                expanded_tools,
                expanded_hooks,
                show_debug=show_debug,
            )
        else:
            lines = (
                rendered
                if show_all
                else visible_lines(rendered, expanded_tools, expanded_hooks)
            )
            formatter = format_json if output_format == "json" else format_text
            content = formatter(lines)

        if output is not None:
            output.write_text(content + "\n", encoding="utf-8")
            click.echo(f"Wrote {output}")
        else:
            click.echo(content)

    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)
    except OSError as e:
        click.echo(f"Error rendering transcript: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
