"""Core data models — no internal dependencies, only Pydantic + stdlib."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agent_orchestrator.errors import ToolExecutionFailed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Completions
# ---------------------------------------------------------------------------

class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant", "tool"]
    content: str


class CompletionRequest(BaseModel):
    """Immutable once constructed."""
    model_config = ConfigDict(frozen=True)

    messages: tuple[Message, ...]
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    tools: tuple[dict[str, Any], ...] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


FinishReason = Literal["stop", "length", "tool_calls", "content_filter", "error"]


class ToolCallRequest(BaseModel):
    """A single tool/function call requested by the model."""
    id: str
    name: str
    arguments: dict[str, Any]


class CompletionResponse(BaseModel):
    content: str
    model: str
    tokens_used: int = 0
    finish_reason: FinishReason = "stop"
    tool_calls: list[ToolCallRequest] | None = None


class ProviderCapabilities(BaseModel):
    supports_streaming: bool = False
    supports_tools: bool = False
    supports_vision: bool = False
    max_tokens: int = 4096
    supported_models: list[str] = Field(default_factory=list)
    default_model: str


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

ToolCategory = Literal["data", "action", "reasoning"]


class ToolExecutionContext(BaseModel):
    """Actor/session metadata handed to normalization and handlers."""
    agent_id: str
    trigger_id: str | None = None
    conversation_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    execution_time: float = 0.0  # milliseconds

    @model_validator(mode="after")
    def _check_outcome(self) -> ToolResult:
        if self.success and (self.error is not None or self.data is None):
            raise ValueError("successful ToolResult needs data and no error")
        if not self.success and (not self.error or self.data is not None):
            raise ValueError("failed ToolResult needs an error and no data")
        return self

    @classmethod
    def ok(cls, data: Any, execution_time: float) -> ToolResult:
        """A handler that returns nothing yields an empty payload."""
        return cls(success=True, data={} if data is None else data, execution_time=execution_time)

    @classmethod
    def fail(cls, error: str, execution_time: float) -> ToolResult:
        return cls(success=False, error=error or "Unknown error", execution_time=execution_time)

    def raise_for_error(self, tool_name: str = "<unknown>") -> None:
        if not self.success:
            raise ToolExecutionFailed(tool_name, self.error or "Unknown error")


class ToolCall(BaseModel):
    """One entry of a tool chain."""
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

class PromptDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    template: str | Callable[[dict[str, Any]], str]
    variables: tuple[str, ...]
    model: str | None = None
    temperature: float | None = None


class PromptResult(BaseModel):
    prompt: str
    model: str
    temperature: float


# ---------------------------------------------------------------------------
# Scheduling / workflow
# ---------------------------------------------------------------------------

class ScheduleType(str, Enum):
    AGENT_CYCLE = "agent_cycle"
    RELATIONSHIP_SYNC = "relationship_sync"
    MEMORY_CLEANUP = "memory_cleanup"
    TOKEN_RESET = "token_reset"


class WorkflowTrigger(BaseModel):
    type: Literal["schedule", "event"] = "schedule"
    schedule: ScheduleType | None = None
    event: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class Actor(BaseModel):
    id: str
    type: Literal["agent", "user"] = "agent"


class Subject(BaseModel):
    id: str
    type: Literal["post", "comment", "community", "user", "proposal", "battle"]
    data: dict[str, Any] = Field(default_factory=dict)


class WorkflowScope(BaseModel):
    trigger: WorkflowTrigger
    actor: Actor
    subject: Subject | None = None
    conversation_id: str | None = None
    context_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def trigger_id(self) -> str:
        kind = self.trigger.event or (self.trigger.schedule.value if self.trigger.schedule else "none")
        return f"{self.trigger.type}:{kind}"


class WorkflowError(BaseModel):
    step: str
    error: str
    timestamp: datetime = Field(default_factory=_utcnow)


class AgentState(BaseModel):
    """Per-agent, per-cycle working state. Discarded after the cycle."""
    scope: WorkflowScope
    step: Literal["observe", "reason", "act", "complete"] = "observe"
    start_time: datetime = Field(default_factory=_utcnow)
    identity: dict[str, float] = Field(default_factory=dict)
    morale: float = 50.0
    relationships: dict[str, float] = Field(default_factory=dict)
    perception: dict[str, Any] = Field(default_factory=dict)
    memories: list[str] = Field(default_factory=list)
    reasoning: str | None = None
    decision: list[ToolCall] = Field(default_factory=list)
    tool_results: list[ToolResult] = Field(default_factory=list)
    executed_actions: list[str] = Field(default_factory=list)
    errors: list[WorkflowError] = Field(default_factory=list)


class WorkflowResult(BaseModel):
    agent_id: str
    success: bool
    executed_actions: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    start_time: datetime
    duration_ms: float


# ---------------------------------------------------------------------------
# Agent/entity store records
# ---------------------------------------------------------------------------

class AgentRecord(BaseModel):
    id: str
    name: str = ""
    is_bot: bool = True
    is_active: bool = True
    identity: dict[str, float] = Field(default_factory=dict)
    morale: float = 50.0
    heat: float = 0.0
    daily_action_tokens: int = 100
    relationships: dict[str, float] = Field(default_factory=dict)


class MemoryRecord(BaseModel):
    id: str
    agent_id: str
    content: str
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Tracing
# ---------------------------------------------------------------------------

class TraceEvent(BaseModel):
    """One span marker published on the trace bus."""
    kind: Literal["span_start", "span_end", "span_error"]
    span_id: str
    trace_id: str
    name: str
    data: dict[str, Any] = Field(default_factory=dict)
    ts: float = Field(default_factory=time.time)


# ---------------------------------------------------------------------------
# Schedule results
# ---------------------------------------------------------------------------

class AgentRunOutcome(BaseModel):
    agent_id: str
    success: bool
    actions: int = 0
    duration_ms: float | None = None
    error: str | None = None


class ScheduleResult(BaseModel):
    schedule: ScheduleType
    success: bool
    agents_processed: int = 0
    results: list[AgentRunOutcome] = Field(default_factory=list)
    records_affected: int | None = None
    skipped: bool = False
    message: str = ""


class ScheduleRun(BaseModel):
    """One entry of the dispatcher's run history."""
    schedule: ScheduleType
    success: bool
    skipped: bool = False
    started_at: datetime
    duration_ms: float
    message: str = ""


class SchedulerStatus(BaseModel):
    enabled: bool
    schedules: dict[ScheduleType, bool]
    history: list[ScheduleRun] = Field(default_factory=list)
