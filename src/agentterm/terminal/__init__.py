"""Terminal classification domain package."""

from .classifier import (
    DEFAULT_PATTERNS,
    ClassificationPatterns,
    classify,
    has_agent_env,
    is_standard_shell,
    matches_agent_pattern,
)
from .models import ClassificationState, CreationMetadata, TerminalHandle, TerminalSession
from .monitor import MonitorEvent, TerminalMonitor
from .registry import SessionRegistry

__all__ = [
    "ClassificationPatterns",
    "ClassificationState",
    "classify",
    "CreationMetadata",
    "DEFAULT_PATTERNS",
    "has_agent_env",
    "is_standard_shell",
    "matches_agent_pattern",
    "MonitorEvent",
    "SessionRegistry",
    "TerminalHandle",
    "TerminalMonitor",
    "TerminalSession",
]
