"""Dict-backed agent store — suitable for single-process dev/test."""

from __future__ import annotations

import uuid
from datetime import datetime

from agent_orchestrator.engine.models import AgentRecord, MemoryRecord
from agent_orchestrator.store.interface import AgentStore


class InMemoryAgentStore(AgentStore):
    def __init__(
        self,
        agents: list[AgentRecord] | None = None,
        memories: list[MemoryRecord] | None = None,
    ) -> None:
        self._agents: dict[str, AgentRecord] = {a.id: a for a in agents or []}
        self._memories: list[MemoryRecord] = list(memories or [])

    def add_agent(self, agent: AgentRecord) -> None:
        self._agents[agent.id] = agent

    @property
    def memories(self) -> list[MemoryRecord]:
        return list(self._memories)

    async def list_active_agents(self, limit: int | None = None) -> list[AgentRecord]:
        active = [a for a in self._agents.values() if a.is_bot and a.is_active]
        return active if limit is None else active[:limit]

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        return self._agents.get(agent_id)

    async def recent_memories(self, agent_id: str, limit: int = 5) -> list[MemoryRecord]:
        own = [m for m in self._memories if m.agent_id == agent_id]
        own.sort(key=lambda m: m.created_at, reverse=True)
        return own[:limit]

    async def add_memory(self, agent_id: str, content: str) -> MemoryRecord:
        record = MemoryRecord(id=str(uuid.uuid4()), agent_id=agent_id, content=content)
        self._memories.append(record)
        return record

    async def delete_memories_older_than(self, cutoff: datetime) -> int:
        before = len(self._memories)
        self._memories = [m for m in self._memories if m.created_at >= cutoff]
        return before - len(self._memories)

    async def reset_action_budgets(self, daily_action_tokens: int, heat: float) -> int:
        updated = 0
        for agent in self._agents.values():
            if agent.is_bot:
                agent.daily_action_tokens = daily_action_tokens
                agent.heat = heat
                updated += 1
        return updated

    async def decay_relationships(self, agent_id: str, factor: float) -> dict[str, float]:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise LookupError(f"Agent '{agent_id}' not found")
        agent.relationships = {
            other: round(score * factor, 4) for other, score in agent.relationships.items()
        }
        return dict(agent.relationships)
