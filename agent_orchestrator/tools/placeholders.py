"""Tool-input normalization against the execution context.

Models choosing tool arguments often echo symbolic references such as
``"event.userId"`` instead of real ids. Each string leaf is parsed into a
closed set of placeholder variants and resolved against the context
metadata. A placeholder whose metadata value is missing or falsy resolves to
the original string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from agent_orchestrator.engine.models import ToolExecutionContext


@dataclass(frozen=True)
class LiteralValue:
    value: str


@dataclass(frozen=True)
class ActorId:
    raw: str


@dataclass(frozen=True)
class PostId:
    raw: str


@dataclass(frozen=True)
class SubjectId:
    raw: str


Placeholder = Union[LiteralValue, ActorId, PostId, SubjectId]

_ACTOR_SPELLINGS = frozenset({
    "event.userId",
    "event.user.id",
    "event.mentionerId",
    "event.senderId",
    "subject.userId",
    "subject.user.id",
})
_POST_SPELLINGS = frozenset({"event.postId", "event.post.id", "subject.postId"})
_SUBJECT_SPELLINGS = frozenset({"subject.id"})

# Top-level fields that must hold the acting user's id.
ACTOR_FIELDS = ("user_id", "target_id")

POST_DETAILS_TOOL = "get_post_details"
POST_ID_FIELD = "post_id"


def parse_placeholder(value: str) -> Placeholder:
    token = value.strip()
    if token in _ACTOR_SPELLINGS:
        return ActorId(value)
    if token in _POST_SPELLINGS:
        return PostId(value)
    if token in _SUBJECT_SPELLINGS:
        return SubjectId(value)
    return LiteralValue(value)


def resolve_placeholder(placeholder: Placeholder, meta: dict[str, Any]) -> Any:
    if isinstance(placeholder, LiteralValue):
        return placeholder.value
    if isinstance(placeholder, ActorId):
        return meta.get("user_id") or placeholder.raw
    if isinstance(placeholder, PostId):
        return meta.get("post_id") or placeholder.raw
    if isinstance(placeholder, SubjectId):
        return meta.get("subject_id") or placeholder.raw
    raise TypeError(f"Unhandled placeholder variant: {placeholder!r}")


def _normalize_value(value: Any, meta: dict[str, Any]) -> Any:
    if isinstance(value, dict):
        return {key: _normalize_value(child, meta) for key, child in value.items()}
    if isinstance(value, list):
        return [_normalize_value(item, meta) for item in value]
    if isinstance(value, str):
        return resolve_placeholder(parse_placeholder(value), meta)
    return value


def normalize_tool_input(
    tool_name: str,
    input_data: dict[str, Any],
    context: ToolExecutionContext,
) -> dict[str, Any]:
    """Return a normalized copy of ``input_data``; the argument is not mutated."""
    meta = context.metadata
    normalized = _normalize_value(input_data, meta)

    actor_id = meta.get("user_id")
    subject_id = meta.get("subject_id")
    subject_type = meta.get("subject_type")
    post_id = meta.get("post_id")

    # Models sometimes put the post/subject id where the actor id belongs.
    if actor_id:
        for field in ACTOR_FIELDS:
            current = normalized.get(field)
            if not isinstance(current, str):
                continue
            if (subject_type == "post" and current == subject_id) or (post_id and current == post_id):
                normalized[field] = actor_id

    if (
        tool_name == POST_DETAILS_TOOL
        and not normalized.get(POST_ID_FIELD)
        and subject_type == "post"
        and subject_id
    ):
        normalized[POST_ID_FIELD] = subject_id

    return normalized
