"""Built-in prompt definitions, keyed by ``category.name``."""

from __future__ import annotations

from agent_orchestrator.config import DEFAULT_MODEL
from agent_orchestrator.engine.models import PromptDefinition

BUILTIN_PROMPTS: dict[str, PromptDefinition] = {
    # ========== AGENT ==========
    "agent.perception": PromptDefinition(
        name="Agent Perception",
        template=(
            "You are analyzing game state for an agent.\n\n"
            "Agent identity: {identity}\n"
            "Morale: {morale}\n"
            "Relationships: {relationships}\n\n"
            "Post content: {post_content}\n\n"
            "Respond with JSON containing threat_level (0-1), opportunity_level (0-1), "
            "emotional_resonance (0-1) and recommended_action (string)."
        ),
        variables=("identity", "morale", "relationships", "post_content"),
        model=DEFAULT_MODEL,
        temperature=0.3,
    ),
    "agent.reasoning": PromptDefinition(
        name="Agent Reasoning",
        template=(
            "You are an agent with a distinct personality deciding what to do next.\n\n"
            "Identity: {identity}\n"
            "Morale: {morale}\n"
            "Situation: {context}\n"
            "Past context: {memory_context}\n"
            "Available tools: {available_actions}\n\n"
            "Respond with JSON:\n"
            '{"chosen_action": "<tool name or IGNORE>", "explanation": "...", '
            '"tool_calls": [{"name": "<tool>", "arguments": {}}]}'
        ),
        variables=("identity", "morale", "context", "memory_context", "available_actions"),
        model=DEFAULT_MODEL,
        temperature=0.9,
    ),
    "agent.governance": PromptDefinition(
        name="Agent Governance Decision",
        template=(
            "You are an agent voting on a community proposal.\n\n"
            "Community ideology: {community_ideology}\n"
            "Your values: {agent_identity}\n"
            "Alignment score: {alignment_score}\n\n"
            "Proposal: {proposal}\n"
            "Community sentiment: {sentiment}\n\n"
            'Respond with JSON: {"decision": "support|oppose|abstain", '
            '"confidence": 0.0-1.0, "reasoning": "..."}'
        ),
        variables=("community_ideology", "agent_identity", "alignment_score", "proposal", "sentiment"),
        model=DEFAULT_MODEL,
        temperature=0.4,
    ),
    # ========== ANALYSIS ==========
    "analyze.personality": PromptDefinition(
        name="Analyze Personality from Text",
        template=(
            "Extract a five-axis identity vector from the text below. Each axis is "
            "scored from -1.0 to 1.0: order_chaos, self_community, logic_emotion, "
            "power_harmony, tradition_innovation.\n\n"
            "Text: {text}\n\n"
            "Respond with only a JSON object of the five scores."
        ),
        variables=("text",),
        model=DEFAULT_MODEL,
        temperature=0.2,
    ),
    "analyze.sentiment": PromptDefinition(
        name="Analyze Sentiment",
        template=(
            "Analyze the sentiment of this text.\n\n"
            "Text: {text}\n\n"
            "Respond with JSON containing sentiment (-1.0 to 1.0), intensity (0.0 to 1.0), "
            "emotions (list) and target (string)."
        ),
        variables=("text",),
        model=DEFAULT_MODEL,
        temperature=0.3,
    ),
    # ========== GENERATION ==========
    "generate.response": PromptDefinition(
        name="Generate Agent Response",
        template=(
            "You are {agent_name}, a character in a social simulation.\n\n"
            "Personality: {identity}\n"
            "Energy: {morale}/100\n"
            "Relationships: {relationships}\n"
            "Recent memories: {memories}\n\n"
            "Conversation:\n{conversation}\n\n"
            "Latest message: {user_message}\n\n"
            "Reply in one to three sentences, in character."
        ),
        variables=("agent_name", "identity", "morale", "relationships", "memories", "conversation", "user_message"),
        model=DEFAULT_MODEL,
        temperature=0.7,
    ),
    "generate.action": PromptDefinition(
        name="Generate Action Description",
        template=(
            "Describe this action taken by {agent_name} in one or two sentences.\n\n"
            "Action: {action_type}\n"
            "Target: {target}\n"
            "Context: {context}"
        ),
        variables=("agent_name", "action_type", "target", "context"),
        model=DEFAULT_MODEL,
        temperature=0.8,
    ),
    # ========== COMMUNITY ==========
    "community.ideology": PromptDefinition(
        name="Interpret Community Ideology",
        template=(
            "Given this community ideology vector:\n\n{ideology_vector}\n\n"
            "Describe the community's core values in one or two plain sentences."
        ),
        variables=("ideology_vector",),
        model=DEFAULT_MODEL,
        temperature=0.4,
    ),
    "community.polarization": PromptDefinition(
        name="Analyze Community Polarization",
        template=(
            "The community has this polarization profile:\n\n{polarization_data}\n\n"
            "Explain the main divisions in two or three sentences."
        ),
        variables=("polarization_data",),
        model=DEFAULT_MODEL,
        temperature=0.3,
    ),
}
