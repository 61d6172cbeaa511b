"""Prompt catalog — named templates resolved into ready-to-send prompts."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from agent_orchestrator.config import DEFAULT_MODEL
from agent_orchestrator.engine.models import PromptDefinition, PromptResult
from agent_orchestrator.errors import (
    InvalidPromptDefinition,
    MissingPromptVariables,
    PromptNotFound,
)
from agent_orchestrator.prompts.definitions import BUILTIN_PROMPTS

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.5

_WHITESPACE = re.compile(r"\s+")


def prompt_key(display_name: str) -> str:
    """``"My Custom Prompt"`` -> ``"my.custom.prompt"``."""
    return _WHITESPACE.sub(".", display_name.lower())


class PromptCatalog:
    """Table of prompt definitions.

    Substitution is literal: every ``{key}`` for a supplied key is replaced
    with ``str(value)``. Placeholders with no supplied value stay verbatim
    unless ``build(..., strict=True)`` is used.
    """

    def __init__(self, definitions: Mapping[str, PromptDefinition] | None = None) -> None:
        self._builtin = dict(BUILTIN_PROMPTS if definitions is None else definitions)
        self._definitions: dict[str, PromptDefinition] = dict(self._builtin)

    def get(self, name: str) -> PromptDefinition | None:
        return self._definitions.get(name)

    def build(self, name: str, variables: Mapping[str, Any], strict: bool = False) -> PromptResult:
        definition = self._definitions.get(name)
        if definition is None:
            raise PromptNotFound(name)

        if strict:
            missing = [v for v in definition.variables if v not in variables]
            if missing:
                raise MissingPromptVariables(name, missing)

        template = definition.template
        prompt = template(dict(variables)) if callable(template) else template
        for key, value in variables.items():
            prompt = prompt.replace("{" + key + "}", str(value))

        return PromptResult(
            prompt=prompt,
            model=definition.model or DEFAULT_MODEL,
            temperature=definition.temperature if definition.temperature is not None else DEFAULT_TEMPERATURE,
        )

    def register(self, definition: PromptDefinition) -> str:
        """Add a custom prompt; returns the derived key. Same key overwrites silently."""
        if not definition.name or not definition.template or not definition.variables:
            raise InvalidPromptDefinition(
                "Invalid prompt definition: must have name, template, and variables"
            )
        key = prompt_key(definition.name)
        self._definitions[key] = definition
        logger.info("Registered custom prompt %s as %s", definition.name, key)
        return key

    def list(self) -> list[str]:
        return list(self._definitions)

    def get_by_category_prefix(self, prefix: str) -> list[PromptDefinition]:
        return [d for key, d in self._definitions.items() if key.startswith(prefix)]

    def reset(self) -> None:
        """Drop custom prompts, keeping the definitions the catalog was built with."""
        self._definitions = dict(self._builtin)
