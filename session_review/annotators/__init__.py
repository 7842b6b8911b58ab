"""Line annotators run after classification and threading.

Each annotator takes the full line list and the RenderingContext and
updates lines in place. Code detection runs first so later annotators can
skip code lines.
"""

from typing import TYPE_CHECKING, Callable

from ..models import RenderedLine
from .code_blocks import annotate_code_blocks, normalize_language, parse_fenced_block
from .command_status import annotate_command_status, classify_command_status
from .file_links import annotate_file_links, linkify_line
from .subagents import annotate_subagents, detect_subagent_id

if TYPE_CHECKING:
    from ..renderer import RenderingContext

Annotator = Callable[[list[RenderedLine], "RenderingContext"], None]

ANNOTATORS: list[Annotator] = [
    annotate_code_blocks,
    annotate_subagents,
    annotate_file_links,
    annotate_command_status,
]

__all__ = [
    "ANNOTATORS",
    "Annotator",
    "annotate_code_blocks",
    "annotate_command_status",
    "annotate_file_links",
    "annotate_subagents",
    "classify_command_status",
    "detect_subagent_id",
    "linkify_line",
    "normalize_language",
    "parse_fenced_block",
]
