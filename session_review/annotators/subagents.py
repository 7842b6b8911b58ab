"""Detection of delegated sub-conversations (subagents).

Two sources, in priority order:
1. Structured: a delegation result reports ``toolUseResult.agentId``; the
   paired Task/Agent tool_use row gets the reference.
2. Text: assistant text mentioning ``agent-<id>`` or ``agentId: <id>``
   becomes a subagent_launch row.

Text is never modified; only metadata is attached.
"""

import logging
import re
from typing import TYPE_CHECKING, Optional

from ..factories import DELEGATION_TOOL_NAMES
from ..models import LineKind, MessageType, RenderedLine, SubagentRef

if TYPE_CHECKING:
    from ..renderer import RenderingContext

logger = logging.getLogger(__name__)

AGENT_LABEL_LENGTH = 7
SUBAGENT_PATTERN = re.compile(r"\b(?:agent-|agentId:\s*)([A-Za-z0-9]{8,})\b")


def subagent_href(session_id: Optional[str], agent_id: str) -> Optional[str]:
    """Navigation target for a subagent, None without a session."""
    if not session_id:
        return None
    return f"/sessions/{session_id}/agents/{agent_id}"


def make_subagent_ref(
    agent_id: str, session_id: Optional[str], source: str
) -> SubagentRef:
    return SubagentRef(
        agent_id=agent_id,
        label=agent_id[:AGENT_LABEL_LENGTH],
        href=subagent_href(session_id, agent_id),
        source=source,
    )


def detect_subagent_id(text: str) -> Optional[str]:
    """First agent id mentioned in ``text``, if any."""
    match = SUBAGENT_PATTERN.search(text)
    return match.group(1) if match else None


def annotate_subagents(lines: list[RenderedLine], ctx: "RenderingContext") -> None:
    structured: dict[str, SubagentRef] = {}

    for line in lines:
        if (
            line.kind != LineKind.TOOL_USE
            or line.tool_name not in DELEGATION_TOOL_NAMES
            or line.tool_use_id is None
        ):
            continue
        agent_id = ctx.structured_agent_ids.get(line.tool_use_id)
        if agent_id is None:
            continue
        ref = make_subagent_ref(agent_id, ctx.session_id_for(line), "structured")
        line.subagent = ref
        structured.setdefault(agent_id, ref)

    for line in lines:
        if (
            line.kind != LineKind.TEXT
            or line.type != MessageType.ASSISTANT
            or line.is_code
            or line.subagent is not None
        ):
            continue
        agent_id = detect_subagent_id(line.text)
        if agent_id is None:
            continue
        logger.debug("Subagent %s mentioned in line text", agent_id)
        line.kind = LineKind.SUBAGENT_LAUNCH
        line.subagent = structured.get(agent_id) or make_subagent_ref(
            agent_id, ctx.session_id_for(line), "text"
        )
