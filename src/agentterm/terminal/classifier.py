"""Name and metadata heuristics that tell agent terminals from plain shells."""

from __future__ import annotations

import logging as py_logging
from dataclasses import dataclass

from agentterm.terminal.models import CreationMetadata

logger = py_logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationPatterns:
    agent_patterns: frozenset[str]
    shell_exclusions: frozenset[str]
    agent_env_vars: tuple[str, ...]


DEFAULT_PATTERNS = ClassificationPatterns(
    agent_patterns=frozenset(
        {
            "copilot",
            "agent",
            "@workspace",
            "@terminal",
            "github copilot",
            "ai assistant",
            "chat participant",
        }
    ),
    shell_exclusions=frozenset({"zsh", "bash", "cmd", "powershell", "fish", "sh"}),
    agent_env_vars=("COPILOT_AGENT", "GITHUB_COPILOT", "AI_ASSISTANT"),
)


def _normalize(name: str) -> str:
    return name.lower().strip()


def is_standard_shell(name: str, *, patterns: ClassificationPatterns = DEFAULT_PATTERNS) -> bool:
    """Exact or prefix match against the shell exclusions."""
    normalized = _normalize(name)
    return any(
        normalized == pattern or normalized.startswith(pattern) for pattern in patterns.shell_exclusions
    )


def matches_agent_pattern(name: str, *, patterns: ClassificationPatterns = DEFAULT_PATTERNS) -> bool:
    """Substring match against the agent patterns."""
    normalized = _normalize(name)
    return any(pattern in normalized for pattern in patterns.agent_patterns)


def has_agent_env(metadata: CreationMetadata | None, *, patterns: ClassificationPatterns = DEFAULT_PATTERNS) -> bool:
    if metadata is None or not metadata.env:
        return False
    return any(metadata.env.get(key) for key in patterns.agent_env_vars)


def classify(
    name: str,
    metadata: CreationMetadata | None = None,
    *,
    patterns: ClassificationPatterns = DEFAULT_PATTERNS,
) -> bool:
    """Return True when the terminal looks like it was created by an agent.

    Shell exclusions on either the display name or the override name win over
    everything else. Agent env vars can only turn a verdict on, and are only
    consulted once both names passed the exclusion checks.
    """
    if is_standard_shell(name, patterns=patterns):
        logger.debug("classify name=%r verdict=standard reason=shell-exclusion", name)
        return False

    verdict = matches_agent_pattern(name, patterns=patterns)

    override = metadata.name if metadata is not None else ""
    if override:
        if is_standard_shell(override, patterns=patterns):
            logger.debug("classify name=%r override=%r verdict=standard reason=shell-exclusion", name, override)
            return False
        if matches_agent_pattern(override, patterns=patterns):
            verdict = True

    if has_agent_env(metadata, patterns=patterns):
        logger.debug("classify name=%r reason=agent-env", name)
        verdict = True

    logger.debug("classify name=%r verdict=%s", name, "agent" if verdict else "standard")
    return verdict
