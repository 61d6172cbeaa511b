"""Tests for create_core wiring, environment config and the CLI adapter."""

from __future__ import annotations

import asyncio
import json

import pytest

from agent_orchestrator import create_core
from agent_orchestrator.adapters.cli import main as cli
from agent_orchestrator.config import CoreConfig, load_config
from agent_orchestrator.engine.models import CompletionRequest, Message, PromptDefinition
from agent_orchestrator.llm.providers import DemoProvider, MockProvider


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY", "OPENAI_BASE_URL", "LLM_DEFAULT_PROVIDER", "LLM_CACHE_ENABLED",
        "LLM_CACHE_TTL", "LLM_CACHE_MAX_ENTRIES", "LLM_MAX_RETRIES", "LLM_BACKOFF_MULTIPLIER",
        "LLM_MODEL", "AGENT_CYCLE_BATCH_SIZE", "MEMORY_RETENTION_DAYS", "DAILY_ACTION_TOKENS",
        "RELATIONSHIP_DECAY_FACTOR", "USE_MOCK_LLM", "TRACE_DIR", "TRACE_MAX_PENDING", "LOG_LEVEL",
        "SCHEDULER_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadConfig:
    def test_defaults(self, clean_env):
        cfg = load_config()
        assert cfg.manager.default_provider == "openai"
        assert cfg.manager.cache.ttl == 300
        assert cfg.manager.cache.max_entries == 1024
        assert cfg.manager.retries.max_retries == 3
        assert cfg.schedule.agent_cycle_batch_size == 10
        assert cfg.provider.api_key is None
        assert cfg.trace_dir is None

    def test_overrides(self, clean_env):
        clean_env.setenv("LLM_CACHE_ENABLED", "false")
        clean_env.setenv("LLM_CACHE_MAX_ENTRIES", "none")
        clean_env.setenv("LLM_BACKOFF_MULTIPLIER", "1.5")
        clean_env.setenv("AGENT_CYCLE_BATCH_SIZE", "4")
        clean_env.setenv("SCHEDULER_ENABLED", "no")
        clean_env.setenv("TRACE_MAX_PENDING", "50")
        clean_env.setenv("USE_MOCK_LLM", "1")

        cfg = load_config()

        assert cfg.manager.cache.enabled is False
        assert cfg.manager.cache.max_entries is None
        assert cfg.manager.retries.backoff_multiplier == 1.5
        assert cfg.schedule.agent_cycle_batch_size == 4
        assert cfg.use_mock_llm is True
        assert cfg.schedule.scheduler_enabled is False
        assert cfg.trace_max_pending == 50


class TestCreateCore:
    def test_demo_provider_without_api_key(self, clean_env, store):
        core = create_core(store=store)
        assert core.completions.available_providers() == ["demo"]
        assert core.completions.default_provider == "demo"
        assert "record_memory" in core.tools

    async def test_demo_cycle_end_to_end(self, store, tmp_path):
        core = create_core(config=CoreConfig(use_mock_llm=True, trace_dir=str(tmp_path)), store=store)

        result = await core.dispatcher.handle_schedule("agent_cycle")
        await core.aclose()

        assert result.agents_processed == 3
        assert all(r.success and r.actions == 1 for r in result.results)
        assert len(list(tmp_path.glob("*.jsonl"))) == 3

    async def test_explicit_providers(self, store):
        provider = MockProvider(name="scripted")
        core = create_core(config=CoreConfig(), store=store, providers=[provider, DemoProvider()])

        await core.dispatcher.handle_schedule("agent_cycle")

        assert core.completions.default_provider == "scripted"
        assert provider.call_count == 3

    async def test_direct_completions_reach_trace_files(self, store, tmp_path):
        core = create_core(config=CoreConfig(use_mock_llm=True, trace_dir=str(tmp_path)), store=store)

        for i in range(5):
            await core.completions.complete(
                CompletionRequest(messages=[Message(role="user", content=f"ping {i}")]),
            )
        for _ in range(50):
            if core.trace_bus.pending == 0 and list(tmp_path.glob("*.jsonl")):
                break
            await asyncio.sleep(0)

        assert core.trace_bus.running is True
        assert core.trace_bus.pending == 0
        [trace_file] = tmp_path.glob("*.jsonl")
        events = [json.loads(line)["event"] for line in trace_file.read_text().splitlines()]
        assert events == ["span_start", "span_end"] * 5
        await core.aclose()

    def test_trace_queue_bound_from_config(self, store, tmp_path):
        core = create_core(
            config=CoreConfig(use_mock_llm=True, trace_dir=str(tmp_path), trace_max_pending=2), store=store,
        )
        core.trace_bus.record("first")
        core.trace_bus.record("second")

        assert core.trace_bus.pending == 2
        assert core.trace_bus.dropped == 2

    def test_reset_restores_start_up_state(self, store):
        core = create_core(config=CoreConfig(use_mock_llm=True), store=store)
        core.prompts.register(PromptDefinition(name="Extra", template="{x}", variables=("x",)))
        core.tools.reset()

        async def _noop():
            return None
        core.dispatcher.register_schedule_handler("token_reset", _noop)

        core.reset()

        assert core.prompts.get("extra") is None
        assert len(core.tools) == 3


class TestCli:
    async def test_run_schedule_returns_json_payload(self, clean_env):
        clean_env.setenv("USE_MOCK_LLM", "1")
        payload = await cli.run_schedule("token_reset")
        assert payload["schedule"] == "token_reset"
        assert payload["records_affected"] == 0

    def test_unknown_schedule_exits_2(self, clean_env, capsys):
        clean_env.setattr("sys.argv", ["agent-schedule", "bogus"])
        with pytest.raises(SystemExit) as excinfo:
            cli.main()
        assert excinfo.value.code == 2
        assert "agent_cycle" in capsys.readouterr().err

    def test_prints_result(self, clean_env, capsys):
        clean_env.setenv("USE_MOCK_LLM", "1")
        clean_env.setattr("sys.argv", ["agent-schedule", "memory_cleanup"])
        cli.main()
        out = json.loads(capsys.readouterr().out)
        assert out["success"] is True
        assert out["records_affected"] == 0
