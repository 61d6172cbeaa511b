"""Configuration models and environment loading.

Every setting has a default, so ``load_config()`` works with an empty
environment. ``agent_orchestrator`` calls ``load_dotenv()`` on import, so a
local ``.env`` file is honoured too.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_MODEL = "mistral-small-latest"


class CacheConfig(BaseModel):
    enabled: bool = True
    ttl: float = 300.0  # seconds
    max_entries: int | None = None  # None = unbounded


class RetryConfig(BaseModel):
    max_retries: int = Field(default=3, ge=1)
    backoff_multiplier: float = Field(default=2.0, gt=0)


class CompletionManagerConfig(BaseModel):
    default_provider: str = "openai"
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retries: RetryConfig = Field(default_factory=RetryConfig)


class ProviderConfig(BaseModel):
    api_key: str | None = None
    base_url: str | None = None
    default_model: str = DEFAULT_MODEL
    embedding_model: str = "mistral-embed"
    temperature: float = 0.7
    max_tokens: int = 2048
    timeout: float = 30.0


class ScheduleConfig(BaseModel):
    agent_cycle_batch_size: int = 10
    memory_retention_days: int = 30
    daily_action_tokens: int = 100
    baseline_heat: float = 0.0
    relationship_decay_factor: float = 0.95
    scheduler_enabled: bool = True
    history_limit: int = 100


class WorkflowConfig(BaseModel):
    max_steps: int = 6
    memory_limit: int = 5
    max_tool_calls: int = 3


class CoreConfig(BaseModel):
    manager: CompletionManagerConfig = Field(default_factory=CompletionManagerConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    use_mock_llm: bool = False
    trace_dir: str | None = None
    trace_max_pending: int = 10_000
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in {"", "none", "0"}:
        return None
    return int(raw)


def load_config() -> CoreConfig:
    """Build a ``CoreConfig`` from environment variables."""
    env = os.environ
    return CoreConfig(
        manager=CompletionManagerConfig(
            default_provider=env.get("LLM_DEFAULT_PROVIDER", "openai"),
            cache=CacheConfig(
                enabled=_env_bool("LLM_CACHE_ENABLED", True),
                ttl=float(env.get("LLM_CACHE_TTL", "300")),
                max_entries=_env_optional_int("LLM_CACHE_MAX_ENTRIES", 1024),
            ),
            retries=RetryConfig(
                max_retries=int(env.get("LLM_MAX_RETRIES", "3")),
                backoff_multiplier=float(env.get("LLM_BACKOFF_MULTIPLIER", "2")),
            ),
        ),
        provider=ProviderConfig(
            api_key=env.get("OPENAI_API_KEY"),
            base_url=env.get("OPENAI_BASE_URL"),
            default_model=env.get("LLM_MODEL", DEFAULT_MODEL),
            embedding_model=env.get("LLM_EMBEDDING_MODEL", "mistral-embed"),
        ),
        schedule=ScheduleConfig(
            agent_cycle_batch_size=int(env.get("AGENT_CYCLE_BATCH_SIZE", "10")),
            memory_retention_days=int(env.get("MEMORY_RETENTION_DAYS", "30")),
            daily_action_tokens=int(env.get("DAILY_ACTION_TOKENS", "100")),
            relationship_decay_factor=float(env.get("RELATIONSHIP_DECAY_FACTOR", "0.95")),
            scheduler_enabled=_env_bool("SCHEDULER_ENABLED", True),
        ),
        use_mock_llm=_env_bool("USE_MOCK_LLM", False),
        trace_dir=env.get("TRACE_DIR") or None,
        trace_max_pending=int(env.get("TRACE_MAX_PENDING", "10000")),
        log_level=env.get("LOG_LEVEL", "INFO"),
    )
