"""Built-in store-backed tools: agent profile, memory recall, memory write."""

from __future__ import annotations

from pydantic import BaseModel, Field

from agent_orchestrator.engine.models import ToolExecutionContext
from agent_orchestrator.store.interface import AgentStore
from agent_orchestrator.tools.registry import ToolDef


class AgentRefInput(BaseModel):
    user_id: str = Field(description="Id of the agent to look up.")


class RecallInput(BaseModel):
    user_id: str
    limit: int = Field(default=5, ge=1, le=50)


class RememberInput(BaseModel):
    user_id: str
    content: str = Field(min_length=1)


def make_store_tools(store: AgentStore) -> list[ToolDef]:
    """Factory — binds an *AgentStore* instance into the tool handlers."""

    async def _get_agent_profile(inp: AgentRefInput, ctx: ToolExecutionContext) -> dict:
        agent = await store.get_agent(inp.user_id)
        if agent is None:
            raise LookupError(f"Agent '{inp.user_id}' not found")
        return agent.model_dump(include={"id", "name", "identity", "morale", "relationships"})

    async def _get_recent_memories(inp: RecallInput, ctx: ToolExecutionContext) -> dict:
        records = await store.recent_memories(inp.user_id, limit=inp.limit)
        return {"memories": [r.content for r in records]}

    async def _record_memory(inp: RememberInput, ctx: ToolExecutionContext) -> dict:
        if inp.user_id != ctx.agent_id:
            raise PermissionError("Agents may only write their own memories")
        record = await store.add_memory(inp.user_id, inp.content)
        return {"memory_id": record.id}

    return [
        ToolDef(
            name="get_agent_profile",
            category="data",
            description="Fetch an agent's identity vector, morale and relationships.",
            handler=_get_agent_profile,
            input_model=AgentRefInput,
        ),
        ToolDef(
            name="get_recent_memories",
            category="data",
            description="Recall an agent's most recent memories.",
            handler=_get_recent_memories,
            input_model=RecallInput,
        ),
        ToolDef(
            name="record_memory",
            category="action",
            description="Store a new memory for the acting agent.",
            handler=_record_memory,
            input_model=RememberInput,
        ),
    ]
