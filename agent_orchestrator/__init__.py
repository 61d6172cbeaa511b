"""agent_orchestrator — scheduled, tool-using agent cycles over pluggable LLM providers.

Usage::

    from agent_orchestrator import create_core

    core = create_core(store=my_store)
    result = await core.dispatcher.handle_schedule("agent_cycle")
"""

from __future__ import annotations

from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()  # reads .env into os.environ (no-op if file missing)

from agent_orchestrator.config import CoreConfig, load_config
from agent_orchestrator.engine.models import ScheduleType
from agent_orchestrator.engine.workflow import UniversalWorkflow, WorkflowEngine
from agent_orchestrator.llm.manager import CompletionManager
from agent_orchestrator.llm.providers import CompletionProvider, DemoProvider, OpenAIProvider
from agent_orchestrator.prompts.catalog import PromptCatalog
from agent_orchestrator.scheduling.dispatcher import ScheduleDispatcher
from agent_orchestrator.store.in_memory import InMemoryAgentStore
from agent_orchestrator.store.interface import AgentStore
from agent_orchestrator.tools.builtins import make_store_tools
from agent_orchestrator.tools.registry import ToolRegistry
from agent_orchestrator.tracing.bus import TraceBus
from agent_orchestrator.tracing.jsonl_tracer import JSONLTraceSink

__all__ = [
    "CompletionManager",
    "OrchestratorCore",
    "PromptCatalog",
    "ScheduleDispatcher",
    "ScheduleType",
    "ToolRegistry",
    "create_core",
]


@dataclass
class OrchestratorCore:
    """Everything ``create_core`` wired together. Owned by the caller."""

    config: CoreConfig
    store: AgentStore
    trace_bus: TraceBus
    completions: CompletionManager
    tools: ToolRegistry
    prompts: PromptCatalog
    workflow: WorkflowEngine
    dispatcher: ScheduleDispatcher

    def reset(self) -> None:
        """Return the registries to their start-up state (test isolation)."""
        self.completions.clear_cache()
        self.tools.reset()
        for tool in make_store_tools(self.store):
            self.tools.register_tool(tool)
        self.prompts.reset()
        self.dispatcher.reset_handlers()
        self.dispatcher.reset_controls()

    async def aclose(self) -> None:
        await self.trace_bus.aclose()


def create_core(
    *,
    config: CoreConfig | None = None,
    store: AgentStore | None = None,
    providers: list[CompletionProvider] | None = None,
    workflow: WorkflowEngine | None = None,
) -> OrchestratorCore:
    """Wire all components and return a ready-to-use core.

    Environment variables (all optional), see ``config.load_config``:
      OPENAI_API_KEY / OPENAI_BASE_URL — real provider; otherwise the demo provider
      USE_MOCK_LLM    — set to ``1`` to force the demo provider
      TRACE_DIR       — write JSONL traces to this directory

    Traces are delivered by a background task that starts with the first span
    published inside a running event loop; call ``aclose()`` on shutdown.
    """
    cfg = config or load_config()
    store = store if store is not None else InMemoryAgentStore()

    # -- components --
    sinks = [JSONLTraceSink(cfg.trace_dir)] if cfg.trace_dir else []
    trace_bus = TraceBus(sinks, max_pending=cfg.trace_max_pending, auto_start=True)

    if providers is None:
        if cfg.use_mock_llm or not cfg.provider.api_key:
            providers = [DemoProvider()]
        else:
            providers = [OpenAIProvider(cfg.provider, name=cfg.manager.default_provider)]

    manager_cfg = cfg.manager
    if providers and manager_cfg.default_provider not in {p.get_provider_name() for p in providers}:
        manager_cfg = manager_cfg.model_copy(update={"default_provider": providers[0].get_provider_name()})
    completions = CompletionManager(manager_cfg, providers=providers, trace_bus=trace_bus)

    tools = ToolRegistry(trace_bus=trace_bus)
    for tool in make_store_tools(store):
        tools.register_tool(tool)

    prompts = PromptCatalog()

    if workflow is None:
        workflow = UniversalWorkflow(
            store=store,
            completions=completions,
            tools=tools,
            prompts=prompts,
            config=cfg.workflow,
            schedule_config=cfg.schedule,
            trace_bus=trace_bus,
        )

    dispatcher = ScheduleDispatcher(store, workflow, config=cfg.schedule, trace_bus=trace_bus)

    return OrchestratorCore(
        config=cfg,
        store=store,
        trace_bus=trace_bus,
        completions=completions,
        tools=tools,
        prompts=prompts,
        workflow=workflow,
        dispatcher=dispatcher,
    )
