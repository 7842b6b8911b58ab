"""File reference linkification.

Wraps project file paths found in line text in anchors to the project file
view. Only paths in the caller's known-files set are linked; everything
else stays plain text. A linked line's text becomes escaped HTML and is
flagged with ``is_html``.
"""

import html
import logging
import re
from typing import TYPE_CHECKING, Optional

from ..models import RenderedLine

if TYPE_CHECKING:
    from ..renderer import RenderingContext

logger = logging.getLogger(__name__)

FILE_EXTENSIONS = (
    "ex|exs|heex|eex|leex|json|jsonl|js|jsx|ts|tsx|py|rb|rs|go|yml|yaml|toml"
    "|md|html|css|sql|sh|bash|diff|txt|conf|cfg|xml|csv"
)

_TOKEN_START = r"(?:^|(?<=[\s(\"'`]))"
_TOKEN_END = r"(?=$|[\s)\"'`.,;!?:])"

# Path-like token with an optional :line[:col] suffix
FILE_REF_PATTERN = re.compile(
    _TOKEN_START
    + r"([a-zA-Z0-9_\-./]+\.(?:"
    + FILE_EXTENSIONS
    + r"))"
    r"(?::(\d+)(?::(\d+))?)?"
    r"(?=$|[\s)\"'`.,;!?])",
    re.MULTILINE,
)

LINK_CLASS = "file-ref-link"


def file_href(project_id: str, path: str) -> str:
    return f"/projects/{project_id}/files/{path}"


def _anchor(project_id: str, path: str) -> str:
    escaped_path = html.escape(path)
    href = html.escape(file_href(project_id, path))
    return f'<a href="{href}" class="{LINK_CLASS}">{escaped_path}</a>'


def _linkify_structured_ref(
    text: str, path: str, project_id: str
) -> Optional[str]:
    """Link the first whole-token occurrence of ``path``.

    A match inside a longer path (``bar.ex`` in ``test/bar.ex``) is skipped.
    """
    pattern = re.compile(_TOKEN_START + re.escape(path) + _TOKEN_END, re.MULTILINE)
    match = pattern.search(text)
    if match is None:
        return None
    return (
        html.escape(text[: match.start()])
        + _anchor(project_id, path)
        + html.escape(text[match.end() :])
    )


def _linkify_plain_text(
    text: str, project_id: str, known_files: frozenset[str]
) -> Optional[str]:
    """Link every known path-like token. None when nothing was linked."""
    parts: list[str] = []
    position = 0
    linked = False
    for match in FILE_REF_PATTERN.finditer(text):
        path = match.group(1)
        if path not in known_files:
            continue
        parts.append(html.escape(text[position : match.start(1)]))
        parts.append(_anchor(project_id, path))
        position = match.end(1)
        linked = True
    if not linked:
        return None
    parts.append(html.escape(text[position:]))
    return "".join(parts)


def linkify_line(
    line: RenderedLine,
    project_id: Optional[str],
    known_files: Optional[frozenset[str]],
) -> RenderedLine:
    """Wrap known file references in ``line.text`` with anchors, in place.

    The structured ``file_ref_relative_path`` is tried first; otherwise
    path-like tokens in the text are matched against ``known_files``.
    Never raises: on failure the text is left as it was.
    """
    if not project_id or not known_files or line.is_code or line.is_html:
        return line

    try:
        linked: Optional[str] = None
        ref = line.file_ref_relative_path
        if ref and ref in known_files:
            linked = _linkify_structured_ref(line.text, ref, project_id)
        if linked is None:
            linked = _linkify_plain_text(line.text, project_id, known_files)
    except (re.error, TypeError, ValueError) as e:
        logger.debug("Failed to linkify line of message %s: %s", line.message_id, e)
        return line

    if linked is not None:
        line.text = linked
        line.is_html = True
    return line


def annotate_file_links(lines: list[RenderedLine], ctx: "RenderingContext") -> None:
    options = ctx.options
    for line in lines:
        linkify_line(line, options.project_id, options.known_files)
