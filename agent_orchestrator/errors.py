"""Exception taxonomy for the orchestration core."""

from __future__ import annotations


class AgentOrchestratorError(Exception):
    """Base class for every error raised by ``agent_orchestrator``."""


# ---------------------------------------------------------------------------
# Completion manager
# ---------------------------------------------------------------------------

class ProviderNotFound(AgentOrchestratorError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Provider '{name}' not found or not registered")
        self.provider_name = name


class ProviderMisconfigured(AgentOrchestratorError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Provider '{name}' is not properly configured")
        self.provider_name = name


class CompletionExhausted(AgentOrchestratorError):
    """All retry attempts failed. ``last_error`` is the final underlying error."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(f"Failed to complete after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


# ---------------------------------------------------------------------------
# Tool registry
# ---------------------------------------------------------------------------

class ToolNotFound(AgentOrchestratorError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}")
        self.tool_name = name


class ToolExecutionFailed(AgentOrchestratorError):
    """Raised only by ``ToolResult.raise_for_error``; the registry never throws it."""

    def __init__(self, tool_name: str, error: str) -> None:
        super().__init__(f"Tool '{tool_name}' failed: {error}")
        self.tool_name = tool_name
        self.error = error


# ---------------------------------------------------------------------------
# Prompt catalog
# ---------------------------------------------------------------------------

class PromptNotFound(AgentOrchestratorError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Prompt definition not found: {name}")
        self.prompt_name = name


class InvalidPromptDefinition(AgentOrchestratorError, ValueError):
    pass


class MissingPromptVariables(AgentOrchestratorError, ValueError):
    def __init__(self, name: str, missing: list[str]) -> None:
        super().__init__(f"Prompt '{name}' is missing variables: {', '.join(missing)}")
        self.prompt_name = name
        self.missing = missing


# ---------------------------------------------------------------------------
# Schedule dispatcher
# ---------------------------------------------------------------------------

class UnknownScheduleType(AgentOrchestratorError, LookupError):
    def __init__(self, schedule_type: object) -> None:
        super().__init__(f"Unknown schedule type: {schedule_type}")
        self.schedule_type = schedule_type
