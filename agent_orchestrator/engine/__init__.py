from agent_orchestrator.engine.models import (
    Actor,
    AgentRecord,
    AgentRunOutcome,
    AgentState,
    CompletionRequest,
    CompletionResponse,
    MemoryRecord,
    Message,
    PromptDefinition,
    PromptResult,
    ProviderCapabilities,
    ScheduleResult,
    ScheduleRun,
    ScheduleType,
    SchedulerStatus,
    Subject,
    ToolCall,
    ToolCallRequest,
    ToolExecutionContext,
    ToolResult,
    TraceEvent,
    WorkflowResult,
    WorkflowScope,
    WorkflowTrigger,
)

__all__ = [
    "Actor",
    "AgentRecord",
    "AgentRunOutcome",
    "AgentState",
    "CompletionRequest",
    "CompletionResponse",
    "MemoryRecord",
    "Message",
    "PromptDefinition",
    "PromptResult",
    "ProviderCapabilities",
    "ScheduleResult",
    "ScheduleRun",
    "ScheduleType",
    "SchedulerStatus",
    "Subject",
    "ToolCall",
    "ToolCallRequest",
    "ToolExecutionContext",
    "ToolResult",
    "TraceEvent",
    "WorkflowResult",
    "WorkflowScope",
    "WorkflowTrigger",
]
