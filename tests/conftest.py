"""Shared fixtures for agent_orchestrator tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from agent_orchestrator.config import CompletionManagerConfig, ScheduleConfig
from agent_orchestrator.engine.models import AgentRecord, MemoryRecord, TraceEvent
from agent_orchestrator.engine.workflow import UniversalWorkflow
from agent_orchestrator.llm.manager import CompletionManager
from agent_orchestrator.llm.providers import MockProvider
from agent_orchestrator.prompts.catalog import PromptCatalog
from agent_orchestrator.scheduling.dispatcher import ScheduleDispatcher
from agent_orchestrator.store.in_memory import InMemoryAgentStore
from agent_orchestrator.tools.builtins import make_store_tools
from agent_orchestrator.tools.registry import ToolRegistry
from agent_orchestrator.tracing.bus import TraceBus
from agent_orchestrator.tracing.interface import TraceSink

NOW = datetime.now(timezone.utc)


class ListSink(TraceSink):
    """Keeps every delivered event in memory."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []
        self.flushes = 0

    async def on_event(self, event: TraceEvent) -> None:
        self.events.append(event)

    async def flush(self) -> None:
        self.flushes += 1


class ExplodingSink(TraceSink):
    async def on_event(self, event: TraceEvent) -> None:
        raise RuntimeError("tracer is down")

    async def flush(self) -> None:
        raise RuntimeError("tracer is still down")


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def trace_bus(sink):
    return TraceBus([sink])


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_manager(trace_bus, sleep, clock):
    def _make(*providers, **config_overrides) -> CompletionManager:
        config = CompletionManagerConfig(default_provider="mock", **config_overrides)
        return CompletionManager(
            config,
            providers=list(providers),
            trace_bus=trace_bus,
            sleep=sleep,
            clock=clock,
        )
    return _make


@pytest.fixture
def agents():
    return [
        AgentRecord(id="a1", name="Ada", identity={"logic_emotion": 0.8}, relationships={"a2": 0.5}),
        AgentRecord(id="a2", name="Bo", identity={"power_harmony": -0.4}, relationships={"a1": 1.0, "a3": -0.2}),
        AgentRecord(id="a3", name="Cy", daily_action_tokens=3, heat=12.0),
        AgentRecord(id="h1", name="Human", is_bot=False, daily_action_tokens=7),
        AgentRecord(id="a4", name="Sleepy", is_active=False),
    ]


@pytest.fixture
def store(agents):
    return InMemoryAgentStore(
        agents=agents,
        memories=[
            MemoryRecord(id="m-old", agent_id="a1", content="ancient grudge", created_at=NOW - timedelta(days=45)),
            MemoryRecord(id="m-new", agent_id="a1", content="liked a post", created_at=NOW - timedelta(days=2)),
        ],
    )


@pytest.fixture
def tool_registry(trace_bus, store):
    registry = ToolRegistry(trace_bus=trace_bus)
    for tool in make_store_tools(store):
        registry.register_tool(tool)
    return registry


@pytest.fixture
def prompts():
    return PromptCatalog()


@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def workflow(store, make_manager, mock_provider, tool_registry, prompts, trace_bus):
    return UniversalWorkflow(
        store=store,
        completions=make_manager(mock_provider),
        tools=tool_registry,
        prompts=prompts,
        trace_bus=trace_bus,
    )


@pytest.fixture
def dispatcher(store, workflow, trace_bus):
    return ScheduleDispatcher(store, workflow, config=ScheduleConfig(), trace_bus=trace_bus, now=lambda: NOW)


@pytest.fixture
def exploding_bus():
    return TraceBus([ExplodingSink()])
