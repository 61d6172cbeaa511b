"""Schedule dispatcher — maps schedule kinds to batch handlers over the agent population."""

from __future__ import annotations

import logging
import time
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

from agent_orchestrator.config import ScheduleConfig
from agent_orchestrator.engine.models import (
    Actor,
    AgentRecord,
    AgentRunOutcome,
    ScheduleResult,
    ScheduleRun,
    ScheduleType,
    SchedulerStatus,
    WorkflowScope,
    WorkflowTrigger,
)
from agent_orchestrator.engine.workflow import WorkflowEngine
from agent_orchestrator.errors import UnknownScheduleType
from agent_orchestrator.store.interface import AgentStore
from agent_orchestrator.tracing.bus import TraceBus

logger = logging.getLogger(__name__)

ScheduleHandler = Callable[[], Awaitable[Any]]


class ScheduleDispatcher:
    """Public API: ``result = await dispatcher.handle_schedule("agent_cycle")``.

    Agents within one tick run strictly one after another. A failing agent is
    recorded and the batch moves on; store failures in the bulk handlers
    propagate to the caller.

    Each schedule kind can be switched off, as can the dispatcher as a whole;
    a disabled tick returns a skipped result without touching the store. The
    last ``history_limit`` ticks are kept for :meth:`status`.
    """

    def __init__(
        self,
        store: AgentStore,
        workflow: WorkflowEngine,
        config: ScheduleConfig | None = None,
        trace_bus: TraceBus | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._workflow = workflow
        self._config = config or ScheduleConfig()
        self._trace = trace_bus
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._handlers: dict[ScheduleType, ScheduleHandler] = {}
        self._history: deque[ScheduleRun] = deque(maxlen=self._config.history_limit)
        self._enabled = self._config.scheduler_enabled
        self._schedule_enabled: dict[ScheduleType, bool] = {}
        self.reset_handlers()
        self.reset_controls()

    # -- dispatch table -----------------------------------------------------

    def reset_handlers(self) -> None:
        self._handlers = {
            ScheduleType.AGENT_CYCLE: self.handle_agent_cycle,
            ScheduleType.RELATIONSHIP_SYNC: self.handle_relationship_sync,
            ScheduleType.MEMORY_CLEANUP: self.handle_memory_cleanup,
            ScheduleType.TOKEN_RESET: self.handle_token_reset,
        }

    def register_schedule_handler(self, schedule_type: ScheduleType | str, handler: ScheduleHandler) -> None:
        kind = _coerce(schedule_type)
        self._handlers[kind] = handler
        logger.info("Registered handler for schedule %s", kind.value)

    # -- switches and history -----------------------------------------------

    def reset_controls(self) -> None:
        """Re-enable every schedule and forget past runs."""
        self._enabled = self._config.scheduler_enabled
        self._schedule_enabled = {kind: True for kind in ScheduleType}
        self._history.clear()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        logger.info("Scheduler %s", "enabled" if enabled else "disabled")

    def set_schedule_enabled(self, schedule_type: ScheduleType | str, enabled: bool) -> None:
        kind = _coerce(schedule_type)
        self._schedule_enabled[kind] = enabled
        logger.info("Schedule %s %s", kind.value, "enabled" if enabled else "disabled")

    def is_schedule_enabled(self, schedule_type: ScheduleType | str) -> bool:
        return self._enabled and self._schedule_enabled[_coerce(schedule_type)]

    @property
    def history(self) -> list[ScheduleRun]:
        return list(self._history)

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            enabled=self._enabled,
            schedules=dict(self._schedule_enabled),
            history=list(self._history),
        )

    # -- dispatch -----------------------------------------------------------

    async def handle_schedule(self, schedule_type: ScheduleType | str) -> Any:
        kind = _coerce(schedule_type)
        handler = self._handlers.get(kind)
        if handler is None:
            raise UnknownScheduleType(schedule_type)

        started_at = self._now()
        if not self.is_schedule_enabled(kind):
            reason = "Scheduler is disabled" if not self._enabled else f"Schedule {kind.value} is disabled"
            logger.info("schedule=%s skipped: %s", kind.value, reason)
            result = ScheduleResult(schedule=kind, success=True, skipped=True, message=reason)
            self._remember(kind, started_at, 0.0, result)
            return result

        t0 = time.perf_counter()
        result = None
        error: Exception | None = None
        try:
            result = await handler()
            return result
        except Exception as exc:
            error = exc
            raise
        finally:
            duration_ms = round((time.perf_counter() - t0) * 1000, 2)
            logger.info("schedule=%s latency=%.1fms", kind.value, duration_ms)
            self._remember(kind, started_at, duration_ms, result, error)
            if self._trace is not None:
                await self._trace.drain()

    def _remember(
        self,
        kind: ScheduleType,
        started_at: datetime,
        duration_ms: float,
        result: Any,
        error: Exception | None = None,
    ) -> None:
        if error is not None:
            run = ScheduleRun(
                schedule=kind, success=False, started_at=started_at,
                duration_ms=duration_ms, message=f"Job failed: {kind.value}: {error}",
            )
        elif isinstance(result, ScheduleResult):
            run = ScheduleRun(
                schedule=kind, success=result.success, skipped=result.skipped,
                started_at=started_at, duration_ms=duration_ms, message=result.message,
            )
        else:
            run = ScheduleRun(schedule=kind, success=True, started_at=started_at, duration_ms=duration_ms)
        self._history.append(run)

    # -- built-in handlers --------------------------------------------------

    async def handle_agent_cycle(self) -> ScheduleResult:
        logger.info("Running agent cycle")
        agents = await self._store.list_active_agents(limit=self._config.agent_cycle_batch_size)
        if not agents:
            logger.info("No active agents found")
            return ScheduleResult(schedule=ScheduleType.AGENT_CYCLE, success=True, message="No active agents")

        results: list[AgentRunOutcome] = []
        for agent in agents:
            try:
                outcome = await self._run_agent(agent, ScheduleType.AGENT_CYCLE)
                results.append(AgentRunOutcome(
                    agent_id=agent.id,
                    success=outcome.success,
                    actions=len(outcome.executed_actions),
                    duration_ms=outcome.duration_ms,
                    error="; ".join(outcome.errors) or None,
                ))
            except Exception as exc:
                logger.error("Error processing agent %s: %s", agent.id, exc)
                results.append(AgentRunOutcome(agent_id=agent.id, success=False, error=str(exc)))

        logger.info("Processed %d agents", len(agents))
        return ScheduleResult(
            schedule=ScheduleType.AGENT_CYCLE,
            success=True,
            agents_processed=len(agents),
            results=results,
            message=f"Processed {len(agents)} agents, executed {sum(r.actions for r in results)} actions",
        )

    async def handle_relationship_sync(self) -> ScheduleResult:
        logger.info("Running relationship sync")
        agents = await self._store.list_active_agents(limit=None)
        for agent in agents:
            try:
                await self._run_agent(agent, ScheduleType.RELATIONSHIP_SYNC)
            except Exception as exc:
                logger.error("Error syncing relationships for agent %s: %s", agent.id, exc)

        logger.info("Synced relationships for %d agents", len(agents))
        return ScheduleResult(
            schedule=ScheduleType.RELATIONSHIP_SYNC,
            success=True,
            agents_processed=len(agents),
            message=f"Relationship sync completed - processed {len(agents)} agents",
        )

    async def handle_memory_cleanup(self) -> ScheduleResult:
        cutoff = self._now() - timedelta(days=self._config.memory_retention_days)
        logger.info("Running memory cleanup cutoff=%s", cutoff.isoformat())
        deleted = await self._store.delete_memories_older_than(cutoff)
        logger.info("Memory cleanup completed deleted=%d", deleted)
        return ScheduleResult(
            schedule=ScheduleType.MEMORY_CLEANUP,
            success=True,
            records_affected=deleted,
            message=f"Memory cleanup completed - deleted {deleted} old memories",
        )

    async def handle_token_reset(self) -> ScheduleResult:
        logger.info("Running token reset")
        updated = await self._store.reset_action_budgets(
            daily_action_tokens=self._config.daily_action_tokens,
            heat=self._config.baseline_heat,
        )
        logger.info("Token reset completed updated=%d", updated)
        return ScheduleResult(
            schedule=ScheduleType.TOKEN_RESET,
            success=True,
            records_affected=updated,
            message=f"Daily tokens reset - {updated} agents reset",
        )

    # -- helpers ------------------------------------------------------------

    async def _run_agent(self, agent: AgentRecord, schedule: ScheduleType):
        scope = WorkflowScope(
            trigger=WorkflowTrigger(type="schedule", schedule=schedule, timestamp=self._now()),
            actor=Actor(id=agent.id, type="agent"),
        )
        state = self._workflow.create_initial_state(scope)
        return await self._workflow.execute(state)


def _coerce(schedule_type: ScheduleType | str) -> ScheduleType:
    try:
        return ScheduleType(schedule_type)
    except ValueError:
        raise UnknownScheduleType(schedule_type) from None
