"""TraceSink ABC — depends only on engine.models.TraceEvent."""

from __future__ import annotations

from abc import ABC, abstractmethod

from agent_orchestrator.engine.models import TraceEvent


class TraceSink(ABC):
    """Receives span events drained from the trace bus.

    Sinks may raise; the bus logs and discards the failure.
    """

    @abstractmethod
    async def on_event(self, event: TraceEvent) -> None: ...

    async def flush(self) -> None:
        """Persist anything buffered. Called once per bus drain."""
        return None
