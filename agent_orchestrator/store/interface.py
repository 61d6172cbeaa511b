"""Agent/entity store interface — depends only on engine.models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from agent_orchestrator.engine.models import AgentRecord, MemoryRecord


class AgentStore(ABC):
    """Async persistence for agents and their memories.

    Swap to Postgres/Supabase by implementing this ABC.
    """

    @abstractmethod
    async def list_active_agents(self, limit: int | None = None) -> list[AgentRecord]:
        """Active, automated (``is_bot``) agents; ``limit=None`` returns all."""

    @abstractmethod
    async def get_agent(self, agent_id: str) -> AgentRecord | None: ...

    @abstractmethod
    async def recent_memories(self, agent_id: str, limit: int = 5) -> list[MemoryRecord]: ...

    @abstractmethod
    async def add_memory(self, agent_id: str, content: str) -> MemoryRecord: ...

    @abstractmethod
    async def delete_memories_older_than(self, cutoff: datetime) -> int:
        """Bulk delete; returns the number of deleted records."""

    @abstractmethod
    async def reset_action_budgets(self, daily_action_tokens: int, heat: float) -> int:
        """Bulk reset for every automated agent; returns the number updated."""

    @abstractmethod
    async def decay_relationships(self, agent_id: str, factor: float) -> dict[str, float]: ...
