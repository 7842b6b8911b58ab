"""Execution status of shell tool invocations."""

from typing import TYPE_CHECKING, Optional

from ..factories import SHELL_TOOL_NAMES
from ..models import CommandStatus, LineKind, RenderedLine

if TYPE_CHECKING:
    from ..renderer import RenderingContext


def classify_command_status(
    tool_name: Optional[str], result: Optional[RenderedLine]
) -> CommandStatus:
    """Status of a tool use given its linked result row (if any).

    A shell invocation without a result is pending; there is no separate
    state for a result that will never arrive.
    """
    if tool_name not in SHELL_TOOL_NAMES:
        return CommandStatus.NOT_APPLICABLE
    if result is None:
        return CommandStatus.PENDING
    return CommandStatus.ERROR if result.is_error else CommandStatus.SUCCESS


def annotate_command_status(
    lines: list[RenderedLine], ctx: "RenderingContext"
) -> None:
    for line in lines:
        if line.kind != LineKind.TOOL_USE or line.tool_use_id is None:
            continue
        result_indices = ctx.linked_results.get(line.tool_use_id, [])
        first_result = lines[result_indices[0]] if result_indices else None
        status = classify_command_status(line.tool_name, first_result)
        line.command_status = status
        for index in result_indices:
            lines[index].command_status = status
