"""Trace bus — fire-and-forget side channel between producers and sinks.

Producers (completion manager, tool registry, workflow) only ever append an
event to an in-memory queue; they never await a sink. Sinks run when the bus
is drained: explicitly at the end of a schedule tick, or from a background
task. With ``auto_start=True`` that task is started by the first event
published inside a running event loop, so direct library calls are delivered
without a schedule tick. A failing sink is logged and skipped, so it cannot
reach the caller that produced the event.

The queue is bounded; once ``max_pending`` events are waiting, the oldest
ones are dropped and counted in :attr:`TraceBus.dropped`.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
import uuid
from collections import deque
from contextlib import contextmanager
from typing import Any, Iterator

from agent_orchestrator.engine.models import TraceEvent
from agent_orchestrator.tracing.interface import TraceSink

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 10_000

_current_trace: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "agent_orchestrator_trace_id", default=None,
)


class TraceBus:
    def __init__(
        self,
        sinks: list[TraceSink] | None = None,
        *,
        max_pending: int | None = DEFAULT_MAX_PENDING,
        auto_start: bool = False,
    ) -> None:
        self._sinks: list[TraceSink] = list(sinks or [])
        self._queue: deque[TraceEvent] = deque(maxlen=max_pending)
        self._auto_start = auto_start
        self._default_trace_id = str(uuid.uuid4())
        self._lock = asyncio.Lock()
        self._wakeup: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self.dropped = 0

    # -- configuration ------------------------------------------------------

    def add_sink(self, sink: TraceSink) -> None:
        self._sinks.append(sink)

    @property
    def enabled(self) -> bool:
        return bool(self._sinks)

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # -- trace scoping ------------------------------------------------------

    @property
    def trace_id(self) -> str:
        return _current_trace.get() or self._default_trace_id

    @contextmanager
    def trace(self, trace_id: str | None = None) -> Iterator[str]:
        """Group every span published inside the block under one trace id."""
        tid = trace_id or str(uuid.uuid4())
        token = _current_trace.set(tid)
        try:
            yield tid
        finally:
            _current_trace.reset(token)

    # -- producers ----------------------------------------------------------

    def start_span(self, name: str, data: dict[str, Any] | None = None) -> str:
        span_id = str(uuid.uuid4())
        self._publish("span_start", span_id, name, data)
        return span_id

    def end_span(self, span_id: str, name: str, data: dict[str, Any] | None = None) -> None:
        self._publish("span_end", span_id, name, data)

    def error_span(self, span_id: str, name: str, error: BaseException | str) -> None:
        self._publish("span_error", span_id, name, {"error": str(error)})

    def record(self, name: str, data: dict[str, Any] | None = None, *, success: bool = True) -> str:
        """Publish a complete span (start + end/error) for an already-finished operation."""
        span_id = self.start_span(name, data)
        if success:
            self.end_span(span_id, name, data)
        else:
            self.error_span(span_id, name, (data or {}).get("error", "failed"))
        return span_id

    def _publish(self, kind: str, span_id: str, name: str, data: dict[str, Any] | None) -> None:
        if not self._sinks:
            return
        if self._queue.maxlen is not None and len(self._queue) >= self._queue.maxlen:
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 1000 == 0:
                logger.warning(
                    "trace queue full (max_pending=%d), dropped=%d oldest event(s)",
                    self._queue.maxlen, self.dropped,
                )
        self._queue.append(TraceEvent(
            kind=kind,
            span_id=span_id,
            trace_id=self.trace_id,
            name=name,
            data=dict(data or {}),
        ))
        if self._auto_start and not self.running:
            self._start_if_loop()
        if self._wakeup is not None:
            self._wakeup.set()

    # -- delivery -----------------------------------------------------------

    async def drain(self) -> int:
        """Deliver every queued event to every sink, then flush the sinks."""
        async with self._lock:
            delivered = 0
            while self._queue:
                event = self._queue.popleft()
                for sink in self._sinks:
                    try:
                        await sink.on_event(event)
                    except Exception as exc:
                        logger.warning(
                            "trace sink=%s event=%s span=%s failed: %s",
                            type(sink).__name__, event.kind, event.span_id, exc,
                        )
                delivered += 1

            for sink in self._sinks:
                try:
                    await sink.flush()
                except Exception as exc:
                    logger.warning("trace sink=%s flush failed: %s", type(sink).__name__, exc)
            return delivered

    def start(self) -> None:
        """Deliver events in the background until :meth:`aclose`."""
        if not self.running:
            self._spawn(asyncio.get_running_loop())

    def _start_if_loop(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._spawn(loop)

    def _spawn(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        self._wakeup = wakeup = asyncio.Event()
        if self._queue:
            wakeup.set()
        self._task = loop.create_task(self._run(wakeup))

    async def _run(self, wakeup: asyncio.Event) -> None:
        while True:
            await wakeup.wait()
            wakeup.clear()
            await self.drain()

    async def aclose(self) -> None:
        task, self._task = self._task, None
        self._wakeup = None
        if task is not None and not task.done() and task.get_loop() is asyncio.get_running_loop():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.drain()
