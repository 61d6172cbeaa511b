"""JSONL file-based trace sink."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agent_orchestrator.engine.models import TraceEvent
from agent_orchestrator.tracing.interface import TraceSink


class JSONLTraceSink(TraceSink):
    """Writes span events to ``./traces/{trace_id}.jsonl``.

    Events are buffered in memory and written out on ``flush()``, which the
    bus calls at the end of every drain (one drain per schedule tick).
    """

    def __init__(self, trace_dir: str = "./traces") -> None:
        self._dir = Path(trace_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._buffers: dict[str, list[dict[str, Any]]] = {}

    async def on_event(self, event: TraceEvent) -> None:
        entry = {
            "ts": event.ts,
            "trace_id": event.trace_id,
            "span_id": event.span_id,
            "event": event.kind,
            "name": event.name,
            **event.data,
        }
        self._buffers.setdefault(event.trace_id, []).append(entry)

    async def flush(self) -> None:
        buffers, self._buffers = self._buffers, {}
        for trace_id, entries in buffers.items():
            path = self._dir / f"{trace_id}.jsonl"
            with open(path, "a") as f:
                for entry in entries:
                    f.write(json.dumps(entry, default=str) + "\n")
