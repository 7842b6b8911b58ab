"""Server-side HTML for the transcript panel.

Turns rendered lines plus the caller's expand state into an HTML fragment:
- CSS class computation per row (row_classes)
- Expand controls for collapsed tool results and hook groups
- Template environment management
"""

import functools
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet, Any, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from ..models import CommandStatus, LineKind, RenderedLine
from ..renderer import THREAD_OPENER_KINDS
from ..visibility import visible_lines

PANEL_ID = "transcript-messages"
EMPTY_MESSAGE = "No transcript available."

KIND_CLASSES: dict[LineKind, list[str]] = {
    LineKind.TOOL_RESULT: ["is-tool-result"],
    LineKind.THINKING: ["is-thinking"],
    LineKind.ASK_USER_QUESTION: ["is-ask-user-question"],
    LineKind.ASK_USER_ANSWER: ["is-ask-user-answer"],
    LineKind.PLAN_CONTENT: ["is-plan-content"],
    LineKind.PLAN_DECISION: ["is-plan-decision"],
    LineKind.HOOK_PROGRESS: ["is-hook-progress"],
    LineKind.HOOK_GROUP: ["is-hook-group"],
    LineKind.SUBAGENT_LAUNCH: ["is-subagent-launch"],
    LineKind.UNKNOWN: ["is-unknown"],
    LineKind.DEBUG: ["is-debug"],
}

COMMAND_STATUS_CLASSES: dict[CommandStatus, str] = {
    CommandStatus.PENDING: "is-bash-pending",
    CommandStatus.SUCCESS: "is-bash-success",
    CommandStatus.ERROR: "is-bash-error",
}


@dataclass
class ExpandControl:
    """Toggle button rendered after a row."""

    group: str
    action: str  # "toggle-tool-result" or "toggle-hook-group"
    label: str
    is_expanded: bool


def row_classes(line: RenderedLine, current_message_id: Optional[str] = None) -> str:
    """Space-separated CSS classes for a transcript row."""
    classes = ["transcript-row"]
    if line.kind == LineKind.TOOL_USE:
        classes.append("is-tool-use")
        if status_class := COMMAND_STATUS_CLASSES.get(line.command_status):
            classes.append(status_class)
    else:
        classes.extend(KIND_CLASSES.get(line.kind, []))
    if line.role == "user":
        classes.append("is-user")
    if line.is_code:
        classes.append("is-code")
    if line.is_orphaned:
        classes.append("is-orphaned")
    if line.is_error:
        classes.append("is-error")
    if line.subagent is not None:
        classes.append("is-subagent")
    if current_message_id is not None and line.message_id == current_message_id:
        classes.append("is-active")
    return " ".join(classes)


@dataclass
class CollapsedGroups:
    """Sizes of the hidden-by-default groups, gathered in one pass.

    ``rows`` counts hidden rows per group key (tool_use id or hook key);
    ``result_lines`` sums the result line counts per tool_use id.
    """

    rows: dict[str, int] = field(default_factory=dict)
    result_lines: dict[str, int] = field(default_factory=dict)


def collapsed_groups(lines: Sequence[RenderedLine]) -> CollapsedGroups:
    groups = CollapsedGroups()
    for line in lines:
        if not line.hidden_by_default:
            continue
        keys = {line.tool_result_group, line.hook_group} - {None}
        for key in keys:
            groups.rows[key] = groups.rows.get(key, 0) + 1
        if line.tool_result_group is not None:
            group = line.tool_result_group
            groups.result_lines[group] = groups.result_lines.get(group, 0) + (
                line.result_total_lines or 1
            )
    return groups


def expand_control_for(
    line: RenderedLine,
    groups: CollapsedGroups,
    expanded_tool_groups: AbstractSet[str],
    expanded_hook_groups: AbstractSet[str],
) -> Optional[ExpandControl]:
    """Expand/collapse control shown after ``line``, if it opens a group."""
    if line.kind == LineKind.HOOK_GROUP and line.hook_group:
        is_expanded = line.hook_group in expanded_hook_groups
        count = groups.rows.get(line.hook_group, 0)
        return ExpandControl(
            group=line.hook_group,
            action="toggle-hook-group",
            label="Hide hooks" if is_expanded else f"Show {count} hooks",
            is_expanded=is_expanded,
        )

    if line.kind in THREAD_OPENER_KINDS:
        group = line.tool_use_id
        if group is None or group not in groups.result_lines:
            return None
        is_expanded = group in expanded_tool_groups
        total = groups.result_lines[group]
        noun = "line" if total == 1 else "lines"
        return ExpandControl(
            group=group,
            action="toggle-tool-result",
            label="Show less" if is_expanded else f"Show {total} {noun}",
            is_expanded=is_expanded,
        )

    return None


def encode_debug_payload(payload: Any) -> str:
    if payload is None:
        return "{}"
    try:
        return json.dumps(payload, indent=2, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return '{"error": "Could not encode payload"}'


def row_text(line: RenderedLine) -> Any:
    """Row text for the template; linkified text is already escaped markup."""
    return Markup(line.text) if line.is_html else line.text


@functools.lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    """Get cached Jinja2 template environment for the panel.

    Returns:
        Configured Jinja2 Environment (cached after first call)
    """
    templates_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.globals["row_classes"] = row_classes  # type: ignore[index]
    env.globals["row_text"] = row_text  # type: ignore[index]
    env.filters["debug_json"] = encode_debug_payload  # type: ignore[index]
    return env


def render_panel(
    lines: Sequence[RenderedLine],
    expanded_tool_groups: Optional[AbstractSet[str]] = None,
    expanded_hook_groups: Optional[AbstractSet[str]] = None,
    current_message_id: Optional[str] = None,
    show_debug: bool = False,
    panel_id: str = PANEL_ID,
    empty_message: str = EMPTY_MESSAGE,
) -> str:
    """Render the transcript panel for the given expand state.

    Args:
        lines: All rendered lines (hidden ones included)
        expanded_tool_groups: Expanded tool-result group keys
        expanded_hook_groups: Expanded hook group keys
        current_message_id: Message whose rows are highlighted
        show_debug: Render each row's raw payload next to it
        panel_id: DOM id of the panel container
        empty_message: Text shown when no line is visible

    Returns:
        HTML fragment
    """
    expanded_tools = frozenset(expanded_tool_groups or ())
    expanded_hooks = frozenset(expanded_hook_groups or ())
    groups = collapsed_groups(lines)
    rows = [
        (line, expand_control_for(line, groups, expanded_tools, expanded_hooks))
        for line in visible_lines(lines, expanded_tools, expanded_hooks)
    ]
    template = get_template_environment().get_template("transcript.html")
    return template.render(
        rows=rows,
        current_message_id=current_message_id,
        show_debug=show_debug,
        panel_id=panel_id,
        empty_message=empty_message,
    )
