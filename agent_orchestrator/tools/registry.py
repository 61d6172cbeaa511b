"""Tool registry with input normalization, chained execution, and tracing hooks."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable

from pydantic import BaseModel

from agent_orchestrator.engine.models import (
    ToolCall,
    ToolCategory,
    ToolExecutionContext,
    ToolResult,
)
from agent_orchestrator.errors import ToolNotFound
from agent_orchestrator.tools.placeholders import normalize_tool_input
from agent_orchestrator.tracing.bus import TraceBus

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any, ToolExecutionContext], Awaitable[Any]]


@dataclass
class ToolDef:
    """Registration record for a single tool.

    ``parameters`` is the JSON-schema object shown to the model. When
    ``input_model`` is given instead, the schema is derived from it and the
    handler receives a validated model instance rather than a dict.
    """

    name: str
    category: ToolCategory
    description: str
    handler: ToolHandler
    parameters: dict[str, Any] = field(default_factory=dict)
    input_model: type[BaseModel] | None = None

    def __post_init__(self) -> None:
        if self.input_model is not None and not self.parameters:
            self.parameters = self.input_model.model_json_schema()

    def schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": self.parameters.get("properties", {}),
            "required": self.parameters.get("required", []),
        }


class ToolRegistry:
    """Catalog of named tools.

    Re-registering a name replaces the previous definition, so callers own
    registration order.
    """

    def __init__(self, trace_bus: TraceBus | None = None) -> None:
        self._tools: dict[str, ToolDef] = {}
        self._trace = trace_bus

    # -- registration -------------------------------------------------------

    def register_tool(self, tool: ToolDef) -> None:
        replaced = tool.name in self._tools
        self._tools[tool.name] = tool
        logger.info("Registered tool %s (category=%s replaced=%s)", tool.name, tool.category, replaced)

    def get_tool(self, name: str) -> ToolDef | None:
        return self._tools.get(name)

    def all_tools(self) -> list[ToolDef]:
        return list(self._tools.values())

    def get_tools_by_category(self, category: ToolCategory) -> list[ToolDef]:
        return [t for t in self._tools.values() if t.category == category]

    def reset(self) -> None:
        self._tools.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # -- function-calling declarations --------------------------------------

    def get_tools_as_function_declarations(
        self,
        categories: Iterable[ToolCategory] | None = None,
        names: Iterable[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return OpenAI-compatible function declarations, optionally filtered."""
        allowed_categories = set(categories) if categories is not None else None
        allowed_names = set(names) if names is not None else None

        declarations: list[dict[str, Any]] = []
        for tool in self._tools.values():
            if allowed_categories is not None and tool.category not in allowed_categories:
                continue
            if allowed_names is not None and tool.name not in allowed_names:
                continue
            declarations.append({
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.schema(),
                },
            })
        return declarations

    # -- execution ----------------------------------------------------------

    async def execute_tool(
        self,
        name: str,
        input_data: dict[str, Any],
        context: ToolExecutionContext,
    ) -> ToolResult:
        """Run one tool. Never raises: every failure becomes a failed ``ToolResult``."""
        t0 = time.perf_counter()
        normalized = input_data

        try:
            tool = self._tools.get(name)
            if tool is None:
                raise ToolNotFound(name)

            normalized = normalize_tool_input(name, input_data or {}, context)
            payload = tool.input_model.model_validate(normalized) if tool.input_model else normalized
            data = await tool.handler(payload, context)
            result = ToolResult.ok(data, _elapsed_ms(t0))
            logger.info("tool=%s latency=%.1fms OK", name, result.execution_time)
        except Exception as exc:
            result = ToolResult.fail(str(exc), _elapsed_ms(t0))
            logger.warning("tool=%s latency=%.1fms error=%s", name, result.execution_time, exc)

        self._report(name, normalized, result)
        return result

    async def execute_tool_chain(
        self,
        calls: Iterable[ToolCall | dict[str, Any]],
        context: ToolExecutionContext,
    ) -> list[ToolResult]:
        """Run calls in order, stopping right after the first failure."""
        results: list[ToolResult] = []
        for call in calls:
            if isinstance(call, dict):
                call = ToolCall.model_validate(call)
            result = await self.execute_tool(call.name, call.arguments, context)
            results.append(result)
            if not result.success:
                logger.warning("tool=%s failed, stopping chain after %d call(s)", call.name, len(results))
                break
        return results

    def _report(self, name: str, normalized: dict[str, Any], result: ToolResult) -> None:
        if self._trace is None or not self._trace.enabled:
            return
        self._trace.record(
            f"tool:{name}",
            {
                "tool": name,
                "input": normalized,
                "success": result.success,
                "data": result.data,
                "error": result.error,
                "duration_ms": result.execution_time,
            },
            success=result.success,
        )


def _elapsed_ms(t0: float) -> float:
    return round((time.perf_counter() - t0) * 1000, 2)
