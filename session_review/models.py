"""Pydantic models for session transcript messages and rendered lines.

Input side (parsed from raw records) uses pydantic models:
- ContentBlock variants (closed tagged union on ``type``)
- Message
- RenderOptions
- Typed tool inputs (BashInput, ReadInput, ...)

Output side (render-time state) uses dataclasses:
- RenderedLine
- SubagentRef
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    """Message type after normalization.

    Using str as base class keeps plain string comparisons working.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM_PROGRESS = "system-progress"
    THINKING = "thinking"
    # Every other entry type (system, file-history-snapshot, summary, ...)
    SYSTEM = "system"


class LineKind(str, Enum):
    """Kind of a rendered line.

    Mirrors the ContentBlock variants plus the kinds derived while rendering
    (hook_group summaries, subagent launches and debug rows).
    """

    TEXT = "text"
    THINKING = "thinking"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"
    ASK_USER_QUESTION = "ask_user_question"
    ASK_USER_ANSWER = "ask_user_answer"
    PLAN_CONTENT = "plan_content"
    PLAN_DECISION = "plan_decision"
    HOOK_PROGRESS = "hook_progress"
    IMAGE = "image"
    UNKNOWN = "unknown"

    # Derived kinds
    HOOK_GROUP = "hook_group"
    SUBAGENT_LAUNCH = "subagent_launch"
    DEBUG = "debug"


class CommandStatus(str, Enum):
    """Execution status of a shell tool invocation."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    NOT_APPLICABLE = "n/a"


# =============================================================================
# Content Blocks
# =============================================================================


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ThinkingBlock(BaseModel):
    type: Literal["thinking"] = "thinking"
    thinking: str = Field(validation_alias=AliasChoices("thinking", "text"))
    signature: Optional[str] = None


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = {}


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: Union[str, list[Any], None] = None
    is_error: Optional[bool] = None
    agent_id: Optional[str] = None  # From toolUseResult.agentId on Task results


class AskUserQuestionOption(BaseModel):
    """Option for an AskUserQuestion question.

    All fields have defaults for lenient parsing.
    """

    label: str = ""
    description: Optional[str] = None


class AskUserQuestionItem(BaseModel):
    """Single question in an AskUserQuestion prompt."""

    question: str = ""
    header: Optional[str] = None
    options: list[AskUserQuestionOption] = []
    multiSelect: bool = False


class AskUserQuestionBlock(BaseModel):
    type: Literal["ask_user_question"] = "ask_user_question"
    id: Optional[str] = None
    questions: list[AskUserQuestionItem] = []
    question: Optional[str] = None  # Legacy single question format


class AskUserAnswer(BaseModel):
    question: str
    answer: str


class AskUserAnswerBlock(BaseModel):
    type: Literal["ask_user_answer"] = "ask_user_answer"
    tool_use_id: Optional[str] = None
    answers: list[AskUserAnswer] = []
    raw_message: str = ""


class PlanContentBlock(BaseModel):
    type: Literal["plan_content"] = "plan_content"
    id: Optional[str] = None
    plan: str = ""


class PlanDecisionBlock(BaseModel):
    type: Literal["plan_decision"] = "plan_decision"
    tool_use_id: Optional[str] = None
    approved: bool = False
    message: str = ""


class HookProgressBlock(BaseModel):
    type: Literal["hook_progress"] = "hook_progress"
    parent_tool_use_id: Optional[str] = None
    hook_event: str = ""
    hook_name: str = ""
    command: str = ""


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    source: dict[str, Any] = {}


class UnknownBlock(BaseModel):
    """Catch-all for block shapes nothing else recognises. Never dropped."""

    type: Literal["unknown"] = "unknown"
    raw: Any = None


ContentBlock = Annotated[
    Union[
        TextBlock,
        ThinkingBlock,
        ToolUseBlock,
        ToolResultBlock,
        AskUserQuestionBlock,
        AskUserAnswerBlock,
        PlanContentBlock,
        PlanDecisionBlock,
        HookProgressBlock,
        ImageBlock,
        UnknownBlock,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Messages
# =============================================================================


class Message(BaseModel):
    """One normalized transcript turn."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    uuid: Optional[str] = None
    type: MessageType = MessageType.SYSTEM
    role: Optional[str] = None
    content: list[ContentBlock] = []
    raw_payload: Optional[Any] = None
    timestamp: Optional[datetime] = None
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    cwd: Optional[str] = None
    is_sidechain: bool = False

    @property
    def message_id(self) -> Optional[str]:
        """Stored id when present, falling back to the transcript uuid."""
        return self.id or self.uuid


class RenderOptions(BaseModel):
    """Options bundle for a single render pass."""

    model_config = ConfigDict(frozen=True)

    session_cwd: Optional[str] = None
    known_files: Optional[frozenset[str]] = None
    project_id: Optional[str] = None
    show_debug: bool = False
    session_id: Optional[str] = None


# =============================================================================
# Tool Input Models
# =============================================================================
# Typed models for the tool inputs the engine needs to look inside.


class BashInput(BaseModel):
    """Input parameters for the Bash tool."""

    command: str
    description: Optional[str] = None
    timeout: Optional[int] = None
    run_in_background: Optional[bool] = None


class ReadInput(BaseModel):
    """Input parameters for the Read tool."""

    file_path: str
    offset: Optional[int] = None
    limit: Optional[int] = None


class WriteInput(BaseModel):
    """Input parameters for the Write tool."""

    file_path: str
    content: str = ""


class EditInput(BaseModel):
    """Input parameters for the Edit and MultiEdit tools."""

    file_path: str
    old_string: str = ""
    new_string: str = ""

    model_config = {"extra": "allow"}  # MultiEdit carries an edits list


class NotebookEditInput(BaseModel):
    """Input parameters for the NotebookEdit tool."""

    notebook_path: str

    model_config = {"extra": "allow"}


class GlobInput(BaseModel):
    """Input parameters for the Glob tool."""

    pattern: str
    path: Optional[str] = None


class GrepInput(BaseModel):
    """Input parameters for the Grep tool.

    Note: Extra fields like -A, -B, -C are allowed for flexibility.
    """

    pattern: str
    path: Optional[str] = None

    model_config = {"extra": "allow"}


class TaskInput(BaseModel):
    """Input parameters for the Task (delegation) tool."""

    prompt: str = ""
    subagent_type: str = ""
    description: str = ""


ToolInput = Union[
    BashInput,
    ReadInput,
    WriteInput,
    EditInput,
    NotebookEditInput,
    GlobInput,
    GrepInput,
    TaskInput,
]


# =============================================================================
# Rendered Output
# =============================================================================


@dataclass(frozen=True)
class SubagentRef:
    """Navigation metadata for a delegated sub-conversation."""

    agent_id: str
    label: str  # Shortened id for display
    href: Optional[str]
    source: str  # "structured" or "text"


@dataclass
class RenderedLine:
    """One UI-ready display row derived from a content block.

    line_number is only stable for identical input; callers key expand
    state by tool_result_group / hook_group instead.
    """

    line_number: int
    message_id: Optional[str]
    kind: LineKind
    type: MessageType
    role: Optional[str]
    text: str
    tool_use_id: Optional[str] = None
    tool_name: Optional[str] = None
    tool_result_group: Optional[str] = None
    hook_group: Optional[str] = None
    command_status: CommandStatus = CommandStatus.NOT_APPLICABLE
    hidden_by_default: bool = False
    file_ref_relative_path: Optional[str] = None
    session_band: Optional[int] = None  # Assigned by blame consumers only

    is_orphaned: bool = False
    is_error: bool = False
    is_code: bool = False
    language: Optional[str] = None
    is_html: bool = False
    subagent: Optional[SubagentRef] = None
    agent_id: Optional[str] = None
    hook_count: Optional[int] = None
    result_total_lines: Optional[int] = None
    source_line_start: Optional[int] = None
    debug_payload: Optional[Any] = None

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible representation."""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["type"] = self.type.value
        data["command_status"] = self.command_status.value
        return data
