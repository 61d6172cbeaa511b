"""Workflow engine — one agent, one cycle: observe → reason → act."""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any

from agent_orchestrator.config import ScheduleConfig, WorkflowConfig
from agent_orchestrator.engine.models import (
    AgentState,
    CompletionRequest,
    CompletionResponse,
    Message,
    ScheduleType,
    ToolCall,
    ToolExecutionContext,
    WorkflowError,
    WorkflowResult,
    WorkflowScope,
)
from agent_orchestrator.llm.manager import CompletionManager
from agent_orchestrator.prompts.catalog import PromptCatalog
from agent_orchestrator.store.interface import AgentStore
from agent_orchestrator.tools.registry import ToolRegistry
from agent_orchestrator.tracing.bus import TraceBus

logger = logging.getLogger(__name__)

IDLE_ACTIONS = {"IGNORE", "NONE", "WAIT", ""}

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class WorkflowEngine(ABC):
    """Contract the schedule dispatcher drives once per agent per cycle."""

    @abstractmethod
    def create_initial_state(self, scope: WorkflowScope) -> AgentState: ...

    @abstractmethod
    async def execute(self, state: AgentState) -> WorkflowResult: ...


class UniversalWorkflow(WorkflowEngine):
    """Reference pipeline over the completion manager and tool registry.

    Step errors are recorded on the state and end the run; ``execute`` only
    raises for failures outside the steps themselves.
    """

    def __init__(
        self,
        store: AgentStore,
        completions: CompletionManager,
        tools: ToolRegistry,
        prompts: PromptCatalog,
        config: WorkflowConfig | None = None,
        schedule_config: ScheduleConfig | None = None,
        trace_bus: TraceBus | None = None,
        provider_name: str | None = None,
    ) -> None:
        self._store = store
        self._llm = completions
        self._tools = tools
        self._prompts = prompts
        self._config = config or WorkflowConfig()
        self._schedule = schedule_config or ScheduleConfig()
        self._trace = trace_bus
        self._provider = provider_name

    def create_initial_state(self, scope: WorkflowScope) -> AgentState:
        return AgentState(scope=scope)

    async def execute(self, state: AgentState) -> WorkflowResult:
        if self._trace is not None:
            with self._trace.trace(f"{state.scope.actor.id}-{int(time.time() * 1000)}"):
                return await self._run(state)
        return await self._run(state)

    async def _run(self, state: AgentState) -> WorkflowResult:
        t0 = time.perf_counter()
        agent_id = state.scope.actor.id
        logger.info("workflow start agent=%s trigger=%s", agent_id, state.scope.trigger_id)

        steps = 0
        while state.step != "complete":
            if steps >= self._config.max_steps:
                state.errors.append(WorkflowError(step="workflow", error=f"Exceeded {self._config.max_steps} steps"))
                break
            steps += 1
            step = state.step
            try:
                if step == "observe":
                    await self._observe(state)
                elif step == "reason":
                    await self._reason(state)
                elif step == "act":
                    await self._act(state)
            except Exception as exc:
                logger.warning("workflow agent=%s step=%s error=%s", agent_id, step, exc)
                state.errors.append(WorkflowError(step=step, error=str(exc)))
                state.step = "complete"

        duration_ms = round((time.perf_counter() - t0) * 1000, 2)
        if self._trace is not None:
            self._trace.record("workflow", {
                "agent_id": agent_id,
                "trigger": state.scope.trigger_id,
                "executed_actions": list(state.executed_actions),
                "errors": [e.error for e in state.errors],
                "duration_ms": duration_ms,
            })
        logger.info(
            "workflow done agent=%s actions=%d errors=%d latency=%.1fms",
            agent_id, len(state.executed_actions), len(state.errors), duration_ms,
        )
        return WorkflowResult(
            agent_id=agent_id,
            success=not state.errors,
            executed_actions=list(state.executed_actions),
            errors=[e.error for e in state.errors],
            start_time=state.start_time,
            duration_ms=duration_ms,
        )

    # -- steps --------------------------------------------------------------

    async def _observe(self, state: AgentState) -> None:
        agent_id = state.scope.actor.id
        agent = await self._store.get_agent(agent_id)
        if agent is None:
            raise LookupError(f"Agent '{agent_id}' not found")

        state.identity = dict(agent.identity)
        state.morale = agent.morale
        state.relationships = dict(agent.relationships)

        if state.scope.trigger.schedule == ScheduleType.RELATIONSHIP_SYNC:
            state.relationships = await self._store.decay_relationships(
                agent_id, self._schedule.relationship_decay_factor,
            )
            state.executed_actions.append("relationship_decay")
            state.step = "complete"
            return

        memories = await self._store.recent_memories(agent_id, limit=self._config.memory_limit)
        state.memories = [m.content for m in memories]
        state.perception = {
            "trigger": state.scope.trigger_id,
            "subject": state.scope.subject.model_dump() if state.scope.subject else None,
            "heat": agent.heat,
            "daily_action_tokens": agent.daily_action_tokens,
        }
        if agent.daily_action_tokens <= 0:
            logger.info("agent=%s has no action budget left, skipping", agent_id)
            state.step = "complete"
            return
        state.step = "reason"

    async def _reason(self, state: AgentState) -> None:
        declarations = self._tools.get_tools_as_function_declarations()
        built = self._prompts.build("agent.reasoning", {
            "identity": json.dumps(state.identity),
            "morale": state.morale,
            "context": json.dumps(state.perception, default=str),
            "memory_context": "\n".join(state.memories) or "none",
            "available_actions": ", ".join(d["function"]["name"] for d in declarations) or "none",
        })
        request = CompletionRequest(
            messages=[Message(role="system", content=built.prompt)],
            model=built.model,
            temperature=built.temperature,
            tools=declarations or None,
            metadata={"tags": ["agent.reasoning", state.scope.trigger_id], "agent_id": state.scope.actor.id},
        )
        response = await self._llm.complete(request, self._provider)
        state.reasoning = response.content
        state.decision = _decide(response)[: self._config.max_tool_calls]
        state.step = "act" if state.decision else "complete"

    async def _act(self, state: AgentState) -> None:
        scope = state.scope
        subject = scope.subject
        context = ToolExecutionContext(
            agent_id=scope.actor.id,
            trigger_id=scope.trigger_id,
            conversation_id=scope.conversation_id,
            metadata={
                "user_id": scope.actor.id,
                "subject_id": subject.id if subject else None,
                "subject_type": subject.type if subject else None,
                "post_id": subject.id if subject and subject.type == "post" else None,
            },
        )
        results = await self._tools.execute_tool_chain(state.decision, context)
        state.tool_results = results
        for call, result in zip(state.decision, results):
            if result.success:
                state.executed_actions.append(call.name)
            else:
                state.errors.append(WorkflowError(step="act", error=f"{call.name}: {result.error}"))
        state.step = "complete"


def _decide(response: CompletionResponse) -> list[ToolCall]:
    """Turn a model response into an ordered list of tool calls."""
    if response.tool_calls:
        return [ToolCall(name=tc.name, arguments=tc.arguments) for tc in response.tool_calls]

    payload = _parse_json_object(response.content)
    if payload is None:
        return []

    calls: list[ToolCall] = []
    for raw in payload.get("tool_calls") or []:
        if isinstance(raw, dict) and raw.get("name"):
            calls.append(ToolCall(name=raw["name"], arguments=raw.get("arguments") or {}))
    if calls:
        return calls

    action = str(payload.get("chosen_action") or "").strip()
    if action.upper() in IDLE_ACTIONS:
        return []
    return [ToolCall(name=action, arguments=payload.get("arguments") or {})]


def _parse_json_object(text: str) -> dict[str, Any] | None:
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None
