"""Visibility projection over rendered lines.

Expand state is owned by the caller as two sets of group keys: expanded
tool-result groups (tool_use ids) and expanded hook groups. Nothing here
mutates the rendered lines.
"""

from typing import AbstractSet, Any, Iterable, Optional, Sequence

from .models import LineKind, RenderedLine, RenderOptions
from .renderer import render_transcript


def is_hidden(
    line: RenderedLine,
    expanded_tool_groups: AbstractSet[str],
    expanded_hook_groups: AbstractSet[str],
) -> bool:
    if not line.hidden_by_default:
        return False
    if (
        line.kind == LineKind.TOOL_RESULT
        and line.tool_result_group not in expanded_tool_groups
    ):
        return True
    return (
        line.hook_group is not None and line.hook_group not in expanded_hook_groups
    )


def visible_lines(
    rendered_lines: Sequence[RenderedLine],
    expanded_tool_groups: Optional[AbstractSet[str]] = None,
    expanded_hook_groups: Optional[AbstractSet[str]] = None,
) -> list[RenderedLine]:
    """Lines shown for the given expand state, in their original order."""
    expanded_tools = expanded_tool_groups or frozenset()
    expanded_hooks = expanded_hook_groups or frozenset()
    return [
        line
        for line in rendered_lines
        if not is_hidden(line, expanded_tools, expanded_hooks)
    ]


def toggle_group(expanded: AbstractSet[str], group: str) -> frozenset[str]:
    """Return ``expanded`` with ``group`` flipped."""
    if group in expanded:
        return frozenset(expanded) - {group}
    return frozenset(expanded) | {group}


def hidden_count(rendered_lines: Iterable[RenderedLine], group: str) -> int:
    """Number of hidden-by-default rows collapsed under ``group``."""
    return sum(
        1
        for line in rendered_lines
        if line.hidden_by_default
        and (line.tool_result_group == group or line.hook_group == group)
    )


class TranscriptView:
    """Two-tier memoization of rendering and visibility.

    The engine re-runs only when the message list or the options change;
    changing expand state only re-runs the visibility projection. Messages
    are compared by identity plus an optional caller-supplied version, so
    appending to the same list requires bumping ``version``.
    """

    def __init__(self) -> None:
        self._messages: Optional[Sequence[Any]] = None
        self._render_key: Optional[tuple[Any, RenderOptions]] = None
        self._rendered: list[RenderedLine] = []
        self._visible_key: Optional[tuple[frozenset[str], frozenset[str]]] = None
        self._visible: list[RenderedLine] = []
        self.render_count = 0

    def rendered_lines(
        self,
        messages: Optional[Sequence[Any]],
        options: Optional[RenderOptions] = None,
        version: Any = None,
    ) -> list[RenderedLine]:
        options = options or RenderOptions()
        key = (version, options)
        if messages is not self._messages or key != self._render_key:
            self._rendered = render_transcript(messages, options)
            self._messages = messages
            self._render_key = key
            self._visible_key = None
            self.render_count += 1
        return self._rendered

    def visible(
        self,
        expanded_tool_groups: Optional[AbstractSet[str]] = None,
        expanded_hook_groups: Optional[AbstractSet[str]] = None,
    ) -> list[RenderedLine]:
        """Visible lines of the last rendered transcript."""
        key = (
            frozenset(expanded_tool_groups or ()),
            frozenset(expanded_hook_groups or ()),
        )
        if key != self._visible_key:
            self._visible = visible_lines(self._rendered, *key)
            self._visible_key = key
        return self._visible
