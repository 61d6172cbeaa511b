from agent_orchestrator.llm.cache import CompletionCache, fingerprint
from agent_orchestrator.llm.manager import CompletionManager
from agent_orchestrator.llm.providers import (
    CompletionProvider,
    DemoProvider,
    MockProvider,
    OpenAIProvider,
)

__all__ = [
    "CompletionCache",
    "CompletionManager",
    "CompletionProvider",
    "DemoProvider",
    "MockProvider",
    "OpenAIProvider",
    "fingerprint",
]
