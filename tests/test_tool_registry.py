"""Tests for ToolRegistry — registration, normalization, execution, chains, declarations."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from agent_orchestrator.engine.models import ToolCall, ToolExecutionContext, ToolResult
from agent_orchestrator.errors import ToolExecutionFailed
from agent_orchestrator.tools.placeholders import (
    ActorId,
    LiteralValue,
    PostId,
    SubjectId,
    normalize_tool_input,
    parse_placeholder,
)
from agent_orchestrator.tools.registry import ToolDef, ToolRegistry


# -- helpers ----------------------------------------------------------------

class EchoInput(BaseModel):
    msg: str


async def _echo_handler(inp, ctx) -> dict:
    return {"echo": inp}


async def _failing_handler(inp, ctx) -> dict:
    raise RuntimeError("handler exploded")


def _make_tool(**overrides) -> ToolDef:
    defaults = dict(
        name="echo",
        category="data",
        description="Echoes input",
        handler=_echo_handler,
        parameters={
            "type": "object",
            "properties": {"msg": {"type": "string"}},
            "required": ["msg"],
        },
    )
    defaults.update(overrides)
    return ToolDef(**defaults)


def _context(**meta) -> ToolExecutionContext:
    return ToolExecutionContext(agent_id="a1", metadata=meta)


# -- tests ------------------------------------------------------------------

class TestRegistration:
    def test_register_and_get(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool())
        assert registry.get_tool("echo").description == "Echoes input"
        assert registry.get_tool("missing") is None

    def test_reregistration_overwrites(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool(description="v1"))
        registry.register_tool(_make_tool(description="v2"))
        assert len(registry) == 1
        assert registry.get_tool("echo").description == "v2"

    def test_by_category(self, tool_registry):
        names = {t.name for t in tool_registry.get_tools_by_category("data")}
        assert names == {"get_agent_profile", "get_recent_memories"}
        assert [t.name for t in tool_registry.get_tools_by_category("action")] == ["record_memory"]
        assert tool_registry.get_tools_by_category("reasoning") == []

    def test_reset(self, tool_registry):
        tool_registry.reset()
        assert tool_registry.all_tools() == []


class TestFunctionDeclarations:
    def test_shape(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool())
        [decl] = registry.get_tools_as_function_declarations()
        assert decl == {
            "type": "function",
            "function": {
                "name": "echo",
                "description": "Echoes input",
                "parameters": {
                    "type": "object",
                    "properties": {"msg": {"type": "string"}},
                    "required": ["msg"],
                },
            },
        }

    def test_schema_derived_from_input_model(self, tool_registry):
        [decl] = tool_registry.get_tools_as_function_declarations(names=["record_memory"])
        params = decl["function"]["parameters"]
        assert set(params["properties"]) == {"user_id", "content"}
        assert set(params["required"]) == {"user_id", "content"}

    def test_filter_by_category_and_name(self, tool_registry):
        data = tool_registry.get_tools_as_function_declarations(categories=["data"])
        assert {d["function"]["name"] for d in data} == {"get_agent_profile", "get_recent_memories"}

        both = tool_registry.get_tools_as_function_declarations(categories=["data"], names=["record_memory"])
        assert both == []

    def test_empty_when_no_match(self, tool_registry):
        assert tool_registry.get_tools_as_function_declarations(names=["nonexistent"]) == []


class TestPlaceholders:
    def test_parse_variants(self):
        assert parse_placeholder("event.userId") == ActorId("event.userId")
        assert parse_placeholder(" subject.user.id ") == ActorId(" subject.user.id ")
        assert parse_placeholder("event.post.id") == PostId("event.post.id")
        assert parse_placeholder("subject.id") == SubjectId("subject.id")
        assert parse_placeholder("hello") == LiteralValue("hello")

    def test_actor_placeholder_substituted(self):
        ctx = _context(user_id="u1", post_id="p1")
        assert normalize_tool_input("any", {"target_id": "event.userId"}, ctx) == {"target_id": "u1"}

    def test_literal_passes_through(self):
        ctx = _context(user_id="u1", post_id="p1")
        assert normalize_tool_input("any", {"target_id": "literal-value"}, ctx) == {"target_id": "literal-value"}

    def test_missing_metadata_keeps_placeholder(self):
        ctx = _context(user_id="u1", post_id=None)
        assert normalize_tool_input("any", {"ref": "event.postId"}, ctx) == {"ref": "event.postId"}

    def test_recurses_into_nested_values(self):
        ctx = _context(user_id="u1", post_id="p1", subject_id="s1")
        out = normalize_tool_input(
            "any",
            {"a": {"b": ["event.postId", "subject.id", 3, None]}, "c": "event.senderId"},
            ctx,
        )
        assert out == {"a": {"b": ["p1", "s1", 3, None]}, "c": "u1"}

    def test_post_id_in_actor_field_is_corrected(self):
        ctx = _context(user_id="u1", post_id="p1")
        assert normalize_tool_input("follow", {"user_id": "p1"}, ctx) == {"user_id": "u1"}

    def test_subject_id_in_target_field_is_corrected_for_posts(self):
        ctx = _context(user_id="u1", subject_id="s9", subject_type="post")
        assert normalize_tool_input("follow", {"target_id": "s9"}, ctx) == {"target_id": "u1"}

    def test_subject_id_kept_for_non_post_subjects(self):
        ctx = _context(user_id="u1", subject_id="s9", subject_type="community")
        assert normalize_tool_input("join", {"target_id": "s9"}, ctx) == {"target_id": "s9"}

    def test_post_details_autofill(self):
        ctx = _context(user_id="u1", subject_id="s9", subject_type="post")
        assert normalize_tool_input("get_post_details", {}, ctx) == {"post_id": "s9"}
        assert normalize_tool_input("get_post_details", {"post_id": "x"}, ctx) == {"post_id": "x"}
        assert normalize_tool_input("other_tool", {}, ctx) == {}

    def test_input_not_mutated(self):
        ctx = _context(user_id="u1")
        original = {"nested": {"id": "event.userId"}}
        normalize_tool_input("any", original, ctx)
        assert original == {"nested": {"id": "event.userId"}}


class TestExecution:
    async def test_success_result(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool())

        result = await registry.execute_tool("echo", {"msg": "event.userId"}, _context(user_id="u1"))

        assert result.success is True
        assert result.data == {"echo": {"msg": "u1"}}
        assert result.error is None
        assert result.execution_time >= 0

    async def test_unknown_tool_returns_failed_result(self):
        registry = ToolRegistry()
        result = await registry.execute_tool("nonexistent", {}, _context())
        assert result.success is False
        assert "Tool not found: nonexistent" in result.error

    async def test_handler_exception_is_captured(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool(name="boom", handler=_failing_handler))

        result = await registry.execute_tool("boom", {}, _context())

        assert result.success is False
        assert result.error == "handler exploded"
        assert result.data is None
        with pytest.raises(ToolExecutionFailed, match="handler exploded"):
            result.raise_for_error("boom")

    async def test_input_model_validation_failure_is_captured(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool(name="typed", input_model=EchoInput, parameters={}))

        bad = await registry.execute_tool("typed", {"msg": 42}, _context())
        good = await registry.execute_tool("typed", {"msg": "hi"}, _context())

        assert bad.success is False
        assert good.success is True
        assert good.data == {"echo": EchoInput(msg="hi")}

    async def test_handler_receives_context(self):
        seen = []

        async def _handler(inp, ctx):
            seen.append(ctx.agent_id)
            return None

        registry = ToolRegistry()
        registry.register_tool(_make_tool(name="ctx", handler=_handler))
        result = await registry.execute_tool("ctx", {}, _context())

        assert seen == ["a1"]
        assert result.success is True
        assert result.data == {}

    async def test_builtin_tools_against_store(self, tool_registry, store):
        ctx = _context(user_id="a1")

        profile = await tool_registry.execute_tool("get_agent_profile", {"user_id": "event.userId"}, ctx)
        saved = await tool_registry.execute_tool("record_memory", {"user_id": "a1", "content": "met Bo"}, ctx)
        recalled = await tool_registry.execute_tool("get_recent_memories", {"user_id": "a1", "limit": 1}, ctx)
        forbidden = await tool_registry.execute_tool("record_memory", {"user_id": "a2", "content": "x"}, ctx)

        assert profile.data["name"] == "Ada"
        assert saved.success is True
        assert recalled.data == {"memories": ["met Bo"]}
        assert forbidden.success is False
        assert "own memories" in forbidden.error

    async def test_every_execution_is_traced(self, sink, trace_bus):
        registry = ToolRegistry(trace_bus=trace_bus)
        registry.register_tool(_make_tool())
        registry.register_tool(_make_tool(name="boom", handler=_failing_handler))

        await registry.execute_tool("echo", {"msg": "event.userId"}, _context(user_id="u1"))
        await registry.execute_tool("boom", {}, _context())
        await trace_bus.drain()

        assert [(e.name, e.kind) for e in sink.events] == [
            ("tool:echo", "span_start"),
            ("tool:echo", "span_end"),
            ("tool:boom", "span_start"),
            ("tool:boom", "span_error"),
        ]
        start = sink.events[0]
        assert start.data["input"] == {"msg": "u1"}
        assert start.data["success"] is True
        assert "duration_ms" in start.data
        assert sink.events[3].data["error"] == "handler exploded"

    async def test_broken_tracer_does_not_change_result(self, exploding_bus):
        registry = ToolRegistry(trace_bus=exploding_bus)
        registry.register_tool(_make_tool())

        result = await registry.execute_tool("echo", {"msg": "hi"}, _context())
        await exploding_bus.drain()

        assert result.success is True


class TestToolChain:
    async def test_stops_after_first_failure(self):
        calls: list[str] = []

        def _recording(name, fail=False):
            async def _handler(inp, ctx):
                calls.append(name)
                if fail:
                    raise RuntimeError(f"{name} failed")
                return name
            return _handler

        registry = ToolRegistry()
        registry.register_tool(_make_tool(name="A", handler=_recording("A")))
        registry.register_tool(_make_tool(name="B", handler=_recording("B", fail=True)))
        registry.register_tool(_make_tool(name="C", handler=_recording("C")))

        results = await registry.execute_tool_chain(
            [ToolCall(name="A"), {"name": "B", "arguments": {}}, ToolCall(name="C")],
            _context(),
        )

        assert len(results) == 2
        assert results[0].success is True and results[0].data == "A"
        assert results[1].success is False and results[1].error == "B failed"
        assert calls == ["A", "B"]

    async def test_unknown_tool_stops_chain(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool())

        results = await registry.execute_tool_chain(
            [ToolCall(name="missing"), ToolCall(name="echo")],
            _context(),
        )

        assert [r.success for r in results] == [False]

    async def test_all_succeed(self):
        registry = ToolRegistry()
        registry.register_tool(_make_tool())

        results = await registry.execute_tool_chain([ToolCall(name="echo")] * 3, _context())

        assert [r.success for r in results] == [True, True, True]


class TestToolResultInvariant:
    def test_success_without_data_rejected(self):
        with pytest.raises(ValidationError):
            ToolResult(success=True)

    def test_ok_with_no_payload_is_empty_dict(self):
        result = ToolResult.ok(None, 1.0)
        assert result.data == {}
        assert result.error is None

    def test_success_with_error_rejected(self):
        with pytest.raises(ValidationError):
            ToolResult(success=True, data=1, error="nope")

    def test_failure_without_error_rejected(self):
        with pytest.raises(ValidationError):
            ToolResult(success=False)

    def test_failure_with_data_rejected(self):
        with pytest.raises(ValidationError):
            ToolResult(success=False, data={"x": 1}, error="bad")
