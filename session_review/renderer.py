"""Render normalized messages into classified, threaded display lines.

Pipeline for one call of render_transcript():
1. normalize_messages()      raw records -> Message
2. classify_blocks()         one draft RenderedLine per content block
3. group_hook_progress()     hook summary rows + hidden detail rows
4. link_tool_results()       pair tool results with their tool_use rows
5. annotators                code blocks, subagents, file links, status
6. number_lines()            contiguous line numbers starting at 1

All threading state lives in a RenderingContext created per call.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, cast

from .annotators import ANNOTATORS
from .factories import (
    create_tool_result_block,
    normalize_messages,
    tool_file_path,
    tool_use_preview,
)
from .models import (
    AskUserAnswerBlock,
    AskUserQuestionBlock,
    ContentBlock,
    HookProgressBlock,
    ImageBlock,
    LineKind,
    Message,
    MessageType,
    PlanContentBlock,
    PlanDecisionBlock,
    RenderedLine,
    RenderOptions,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
)
from .parser import (
    RESULT_PREFIX,
    extract_result_text,
    relativize_in_text,
    strip_ansi,
    to_relative_path,
)
from .renderer_timings import log_timing, report_timing_statistics, timing_stat

logger = logging.getLogger(__name__)

EMPTY_RESULT = "(empty)"

# Kinds whose rows open a tool_use_id thread
THREAD_OPENER_KINDS = frozenset(
    {LineKind.TOOL_USE, LineKind.ASK_USER_QUESTION, LineKind.PLAN_CONTENT}
)


@dataclass
class RenderingContext:
    """State for a single render pass.

    Attributes:
        options: Options bundle for this pass.
        tool_use_context: tool_use_id -> tool name, filled while classifying
            so results can be promoted (answers, plan decisions).
        tool_use_index: tool_use_id -> index of the opening row.
        linked_results: tool_use_id -> indices of result rows paired with it.
        hook_labels: hook group key -> (event, name) for summary rows.
        structured_agent_ids: tool_use_id -> agent id reported by the
            delegation result.
        message_session_ids: message_id -> session id of that message.
    """

    options: RenderOptions
    tool_use_context: dict[str, str] = field(
        default_factory=lambda: {}  # type: dict[str, str]
    )
    tool_use_index: dict[str, int] = field(
        default_factory=lambda: {}  # type: dict[str, int]
    )
    linked_results: dict[str, list[int]] = field(
        default_factory=lambda: {}  # type: dict[str, list[int]]
    )
    hook_labels: dict[str, tuple[str, str]] = field(
        default_factory=lambda: {}  # type: dict[str, tuple[str, str]]
    )
    structured_agent_ids: dict[str, str] = field(
        default_factory=lambda: {}  # type: dict[str, str]
    )
    message_session_ids: dict[str, str] = field(
        default_factory=lambda: {}  # type: dict[str, str]
    )

    def session_id_for(self, line: RenderedLine) -> Optional[str]:
        """Session id used for navigation targets of ``line``."""
        if self.options.session_id:
            return self.options.session_id
        if line.message_id is None:
            return None
        return self.message_session_ids.get(line.message_id)


def hook_group_key(parent_tool_use_id: str, hook_event: str, hook_name: str) -> str:
    return f"{parent_tool_use_id}:{hook_event}:{hook_name}"


# -- Block Classification -----------------------------------------------------


def _new_line(
    message: Message, kind: LineKind, text: str, **fields: Any
) -> RenderedLine:
    return RenderedLine(
        line_number=0,
        message_id=message.message_id,
        kind=kind,
        type=message.type,
        role=message.role,
        text=text,
        agent_id=message.agent_id,
        **fields,
    )


def _text_line(
    message: Message, block: TextBlock, ctx: RenderingContext
) -> RenderedLine:
    return _new_line(message, LineKind.TEXT, block.text)


def _thinking_line(
    message: Message, block: ThinkingBlock, ctx: RenderingContext
) -> RenderedLine:
    return _new_line(message, LineKind.THINKING, block.thinking)


def _tool_use_line(
    message: Message, block: ToolUseBlock, ctx: RenderingContext
) -> RenderedLine:
    cwd = ctx.options.session_cwd
    ctx.tool_use_context[block.id] = block.name
    preview = relativize_in_text(tool_use_preview(block.name, block.input), cwd)
    file_path = tool_file_path(block.name, block.input)
    file_ref = to_relative_path(file_path, cwd) if file_path else None
    return _new_line(
        message,
        LineKind.TOOL_USE,
        f"● {block.name}({preview})",
        tool_use_id=block.id,
        tool_name=block.name,
        file_ref_relative_path=file_ref,
    )


def _tool_result_line(
    message: Message, block: ToolResultBlock, ctx: RenderingContext
) -> RenderedLine:
    if block.agent_id:
        ctx.structured_agent_ids[block.tool_use_id] = block.agent_id
    content = relativize_in_text(
        strip_ansi(extract_result_text(block.content)), ctx.options.session_cwd
    )
    if not content.strip():
        content = EMPTY_RESULT
        total_lines = 0
    else:
        total_lines = len(content.splitlines())
    return _new_line(
        message,
        LineKind.TOOL_RESULT,
        f"{RESULT_PREFIX}{content}",
        tool_use_id=block.tool_use_id,
        is_error=bool(block.is_error),
        result_total_lines=total_lines,
    )


def _ask_user_question_line(
    message: Message, block: AskUserQuestionBlock, ctx: RenderingContext
) -> RenderedLine:
    if block.id:
        ctx.tool_use_context[block.id] = "AskUserQuestion"
    parts: list[str] = []
    if block.question and not block.questions:
        parts.append(f"? {block.question}")
    for item in block.questions:
        parts.append(f"? {item.question}")
        for option in item.options:
            if option.description:
                parts.append(f"  - {option.label}: {option.description}")
            else:
                parts.append(f"  - {option.label}")
    return _new_line(
        message,
        LineKind.ASK_USER_QUESTION,
        "\n".join(parts) or "?",
        tool_use_id=block.id,
        tool_name="AskUserQuestion",
    )


def _ask_user_answer_line(
    message: Message, block: AskUserAnswerBlock, ctx: RenderingContext
) -> RenderedLine:
    if block.answers:
        text = "\n".join(f"→ {a.question}: {a.answer}" for a in block.answers)
    else:
        text = f"→ {block.raw_message}"
    return _new_line(
        message, LineKind.ASK_USER_ANSWER, text, tool_use_id=block.tool_use_id
    )


def _plan_content_line(
    message: Message, block: PlanContentBlock, ctx: RenderingContext
) -> RenderedLine:
    if block.id:
        ctx.tool_use_context[block.id] = "ExitPlanMode"
    return _new_line(
        message,
        LineKind.PLAN_CONTENT,
        block.plan,
        tool_use_id=block.id,
        tool_name="ExitPlanMode",
    )


def _plan_decision_line(
    message: Message, block: PlanDecisionBlock, ctx: RenderingContext
) -> RenderedLine:
    text = "Plan approved" if block.approved else "Plan rejected"
    if block.message:
        text = f"{text}\n{block.message}"
    return _new_line(
        message,
        LineKind.PLAN_DECISION,
        text,
        tool_use_id=block.tool_use_id,
        is_error=not block.approved,
    )


def _hook_progress_line(
    message: Message, block: HookProgressBlock, ctx: RenderingContext
) -> RenderedLine:
    text = f"hook {block.hook_event} {block.hook_name}: {block.command}"
    if not block.parent_tool_use_id:
        # Cannot be attributed to a tool, so no expand affordance exists
        logger.debug(
            "Hook event %s/%s has no parent tool use",
            block.hook_event,
            block.hook_name,
        )
        return _new_line(message, LineKind.HOOK_PROGRESS, text, is_orphaned=True)

    key = hook_group_key(block.parent_tool_use_id, block.hook_event, block.hook_name)
    ctx.hook_labels.setdefault(key, (block.hook_event, block.hook_name))
    return _new_line(
        message,
        LineKind.HOOK_PROGRESS,
        text,
        tool_use_id=block.parent_tool_use_id,
        hook_group=key,
    )


def _image_line(
    message: Message, block: ImageBlock, ctx: RenderingContext
) -> RenderedLine:
    return _new_line(message, LineKind.IMAGE, "[image]")


def _unknown_line(
    message: Message, block: UnknownBlock, ctx: RenderingContext
) -> RenderedLine:
    try:
        raw = json.dumps(block.raw, sort_keys=True, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        raw = str(block.raw)
    return _new_line(message, LineKind.UNKNOWN, f"[unknown block] {raw}")


LineBuilder = Callable[[Message, Any, RenderingContext], RenderedLine]

# Maps content block classes to the builder of their draft line
LINE_BUILDERS: dict[type, LineBuilder] = {
    TextBlock: _text_line,
    ThinkingBlock: _thinking_line,
    ToolUseBlock: _tool_use_line,
    ToolResultBlock: _tool_result_line,
    AskUserQuestionBlock: _ask_user_question_line,
    AskUserAnswerBlock: _ask_user_answer_line,
    PlanContentBlock: _plan_content_line,
    PlanDecisionBlock: _plan_decision_line,
    HookProgressBlock: _hook_progress_line,
    ImageBlock: _image_line,
    UnknownBlock: _unknown_line,
}


def _promote_result(block: ContentBlock, ctx: RenderingContext) -> ContentBlock:
    if isinstance(block, ToolResultBlock):
        return create_tool_result_block(
            block, ctx.tool_use_context.get(block.tool_use_id)
        )
    return block


def _debug_line(message: Message) -> Optional[RenderedLine]:
    """Diagnostic row for a progress payload that produced no hook rows."""
    if message.type != MessageType.SYSTEM_PROGRESS:
        return None
    if any(isinstance(block, HookProgressBlock) for block in message.content):
        return None
    progress_type = "unknown"
    if isinstance(message.raw_payload, dict):
        data = cast(dict[str, Any], message.raw_payload).get("data")
        if isinstance(data, dict) and cast(dict[str, Any], data).get("type"):
            progress_type = str(cast(dict[str, Any], data)["type"])
    return _new_line(message, LineKind.DEBUG, f"progress {progress_type}")


def classify_blocks(
    messages: Iterable[Message], ctx: RenderingContext
) -> list[RenderedLine]:
    """Flatten messages into one draft line per content block, in order."""
    lines: list[RenderedLine] = []
    show_debug = ctx.options.show_debug

    for message in messages:
        if message.message_id and message.session_id:
            ctx.message_session_ids[message.message_id] = message.session_id

        message_lines: list[RenderedLine] = []
        for block in message.content:
            block = _promote_result(block, ctx)
            builder = LINE_BUILDERS.get(type(block), _unknown_line)
            if builder is _unknown_line and not isinstance(block, UnknownBlock):
                block = UnknownBlock(raw=block.model_dump())
            message_lines.append(builder(message, block, ctx))

        if show_debug:
            if (debug_line := _debug_line(message)) is not None:
                message_lines.append(debug_line)
            for line in message_lines:
                line.debug_payload = message.raw_payload

        lines.extend(message_lines)

    return lines


# -- Threading ----------------------------------------------------------------


def group_hook_progress(
    lines: list[RenderedLine], ctx: RenderingContext
) -> list[RenderedLine]:
    """Collapse hook detail rows behind one summary row per group key.

    Two passes: counts per key over the whole input first, then a summary
    row is emitted right before the first detail row of each key. Every
    grouped detail row is hidden by default.
    """
    counts: dict[str, int] = {}
    for line in lines:
        if line.kind == LineKind.HOOK_PROGRESS and line.hook_group:
            counts[line.hook_group] = counts.get(line.hook_group, 0) + 1

    if not counts:
        return lines

    grouped: list[RenderedLine] = []
    summarized: set[str] = set()
    for line in lines:
        key = line.hook_group
        if line.kind == LineKind.HOOK_PROGRESS and key:
            if key not in summarized:
                summarized.add(key)
                event, name = ctx.hook_labels[key]
                grouped.append(
                    RenderedLine(
                        line_number=0,
                        message_id=line.message_id,
                        kind=LineKind.HOOK_GROUP,
                        type=line.type,
                        role=line.role,
                        text=f"hooks {event} {name} ({counts[key]})",
                        tool_use_id=line.tool_use_id,
                        hook_group=key,
                        hook_count=counts[key],
                        agent_id=line.agent_id,
                        debug_payload=line.debug_payload,
                    )
                )
            line.hidden_by_default = True
        grouped.append(line)
    return grouped


def link_tool_results(lines: list[RenderedLine], ctx: RenderingContext) -> None:
    """Pair tool_result rows with the earlier row that opened their thread.

    Paired results are grouped under the tool_use_id and hidden by default;
    results with no earlier opener are flagged orphaned and stay visible.
    """
    for index, line in enumerate(lines):
        tool_use_id = line.tool_use_id
        if tool_use_id is None:
            continue

        if line.kind in THREAD_OPENER_KINDS:
            if tool_use_id in ctx.tool_use_index:
                logger.debug("Duplicate tool_use id %s", tool_use_id)
            else:
                ctx.tool_use_index[tool_use_id] = index
            continue

        if line.kind != LineKind.TOOL_RESULT:
            continue

        opener_index = ctx.tool_use_index.get(tool_use_id)
        if opener_index is None:
            logger.debug("Orphaned tool result for %s", tool_use_id)
            line.is_orphaned = True
            line.hidden_by_default = False
            continue

        opener = lines[opener_index]
        line.tool_result_group = tool_use_id
        line.hidden_by_default = True
        line.tool_name = opener.tool_name
        line.file_ref_relative_path = opener.file_ref_relative_path
        ctx.linked_results.setdefault(tool_use_id, []).append(index)


def number_lines(lines: list[RenderedLine]) -> list[RenderedLine]:
    for line_number, line in enumerate(lines, start=1):
        line.line_number = line_number
    return lines


# -- Entry Point --------------------------------------------------------------


def render_transcript(
    messages: Optional[Iterable[Any]], options: Optional[RenderOptions] = None
) -> list[RenderedLine]:
    """Render a transcript into classified, threaded display lines.

    Args:
        messages: Ordered Message objects or raw records (normalized here)
        options: Render options; defaults to RenderOptions()

    Returns:
        Ordered RenderedLine list, numbered from 1. Empty input gives [].
    """
    t_start = time.time()
    ctx = RenderingContext(options=options or RenderOptions())

    with log_timing("Normalize messages", t_start):
        normalized = normalize_messages(messages)
    if not normalized:
        return []

    with log_timing(lambda: f"Classify blocks ({len(lines)} lines)", t_start):
        lines = classify_blocks(normalized, ctx)

    with log_timing("Link threads", t_start):
        lines = group_hook_progress(lines, ctx)
        link_tool_results(lines, ctx)

    annotator_timings: list[tuple[float, str]] = []
    with log_timing("Annotate", t_start):
        for annotator in ANNOTATORS:
            with timing_stat(annotator_timings, annotator.__name__):
                annotator(lines, ctx)
    report_timing_statistics([("Annotators", annotator_timings)])

    return number_lines(lines)
