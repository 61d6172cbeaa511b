"""Completion cache keyed by request fingerprint.

Entries expire lazily: an entry older than the TTL is dropped when it is next
read, never by a background sweep. ``max_entries`` optionally caps the size
with least-recently-used eviction; ``None`` leaves it unbounded.
"""

from __future__ import annotations

import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from agent_orchestrator.engine.models import CompletionRequest, CompletionResponse


def fingerprint(request: CompletionRequest) -> str:
    """Deterministic key over the message sequence, temperature and max tokens."""
    payload = json.dumps(
        {
            "messages": [[m.role, m.content] for m in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    response: CompletionResponse
    created_at: float


class CompletionCache:
    def __init__(
        self,
        ttl: float = 300.0,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> CompletionResponse | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at > self.ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.response

    def put(self, key: str, response: CompletionResponse) -> None:
        self._entries[key] = CacheEntry(response=response, created_at=self._clock())
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
