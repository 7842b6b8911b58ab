#!/usr/bin/env python3
"""Code block detection and language tagging.

Only classifies: no highlighting happens here. Two sources of code lines:
- text lines consisting of exactly one fenced block
- Read tool results in ``cat -n`` format ("   12→code")

Language names are normalized against Pygments' lexer registry.
"""

import os
import re
from typing import TYPE_CHECKING, Optional

from pygments.lexers import get_all_lexers  # type: ignore[reportUnknownVariableType]

from ..models import LineKind, RenderedLine
from ..parser import result_body

if TYPE_CHECKING:
    from ..renderer import RenderingContext

DEFAULT_LANGUAGE = "plaintext"

# Tools whose results are cat -n numbered file content
NUMBERED_OUTPUT_TOOL_NAMES = frozenset({"Read"})

_FENCE_PATTERN = re.compile(r"\A```([^\s`]*)[ \t]*\n(.*?)\n?```\Z", re.DOTALL)
_CAT_N_LINE_PATTERN = re.compile(r"\s+(\d+)→(.*)$")


# Cache for Pygments alias and extension lookup
_alias_cache: Optional[dict[str, str]] = None
_extension_cache: Optional[dict[str, str]] = None


def _init_language_caches() -> tuple[dict[str, str], dict[str, str]]:
    """Initialize alias and extension caches.

    Returns:
        Tuple of (alias_cache, extension_cache), both mapping to the lexer's
        first alias
    """
    global _alias_cache, _extension_cache

    if _alias_cache is not None and _extension_cache is not None:
        return _alias_cache, _extension_cache

    alias_cache: dict[str, str] = {}
    extension_cache: dict[str, str] = {}

    # get_all_lexers() returns (name, aliases, patterns, mimetypes) tuples
    for _name, aliases, patterns, _mimetypes in get_all_lexers():  # type: ignore[reportUnknownVariableType]
        if not aliases:
            continue
        canonical = aliases[0]
        for alias in aliases:
            alias_cache.setdefault(alias.lower(), canonical)
        for pattern in patterns:
            pattern_lower = pattern.lower()
            # Simple extension patterns (*.ext) only
            if (
                pattern_lower.startswith("*.")
                and "*" not in pattern_lower[2:]
                and "?" not in pattern_lower[2:]
            ):
                extension_cache.setdefault(pattern_lower[2:], canonical)

    _alias_cache = alias_cache
    _extension_cache = extension_cache
    return alias_cache, extension_cache


def normalize_language(tag: Optional[str]) -> str:
    """Canonical language name for a fence info string.

    Known Pygments aliases map to the lexer's primary alias ("py" ->
    "python"); unknown tags are kept lower-cased; a missing tag is
    "plaintext".
    """
    if not tag or not tag.strip():
        return DEFAULT_LANGUAGE
    tag_lower = tag.strip().lower()
    alias_cache, _ = _init_language_caches()
    return alias_cache.get(tag_lower, tag_lower)


def language_for_path(file_path: Optional[str]) -> str:
    """Language for a file, from its extension."""
    if not file_path:
        return DEFAULT_LANGUAGE
    basename = os.path.basename(file_path).lower()
    if "." not in basename:
        return DEFAULT_LANGUAGE
    _, extension_cache = _init_language_caches()
    return extension_cache.get(basename.rsplit(".", 1)[-1], DEFAULT_LANGUAGE)


def parse_fenced_block(text: str) -> Optional[tuple[str, str]]:
    """Split text that is exactly one fenced block into (language, code).

    Returns None for anything else, including prose around a fence and
    text holding more than one fence.
    """
    match = _FENCE_PATTERN.match(text.strip())
    if match is None:
        return None
    code = match.group(2)
    if re.search(r"^```", code, re.MULTILINE):
        return None
    return normalize_language(match.group(1)), code


def parse_numbered_output(content: str) -> Optional[tuple[str, int]]:
    """Parse ``cat -n`` style output into (code, first line number).

    Blank lines between numbered lines are skipped; a trailing
    <system-reminder> section is dropped.
    """
    lines = content.split("\n")
    if not lines or not _CAT_N_LINE_PATTERN.match(lines[0]):
        return None

    code_lines: list[str] = []
    line_offset = 1
    for line in lines:
        if "<system-reminder>" in line:
            break
        match = _CAT_N_LINE_PATTERN.match(line)
        if match:
            if not code_lines:
                line_offset = int(match.group(1))
            code_lines.append(match.group(2))
        elif line.strip() == "":
            continue
        else:
            break

    if not code_lines:
        return None
    return "\n".join(code_lines), line_offset


def annotate_code_blocks(lines: list[RenderedLine], ctx: "RenderingContext") -> None:
    """Mark fenced text lines and numbered Read results as code."""
    for line in lines:
        if line.kind == LineKind.TEXT:
            fenced = parse_fenced_block(line.text)
            if fenced is not None:
                line.is_code = True
                line.language, line.text = fenced
        elif (
            line.kind == LineKind.TOOL_RESULT
            and line.tool_name in NUMBERED_OUTPUT_TOOL_NAMES
            and not line.is_error
        ):
            numbered = parse_numbered_output(result_body(line.text))
            if numbered is not None:
                line.is_code = True
                line.text, line.source_line_start = numbered
                line.language = language_for_path(line.file_ref_relative_path)
