"""Identity-keyed tracking of sessions classified as agent terminals."""

from __future__ import annotations

import weakref

from agentterm.terminal.models import TerminalHandle


class SessionRegistry:
    """In-memory set of agent sessions for the current run.

    Keys are object identities, never names. Only weak references are held,
    so a session the host has dropped disappears even if no close event ever
    reached the registry.
    """

    def __init__(self) -> None:
        self._sessions: weakref.WeakValueDictionary[int, TerminalHandle] = weakref.WeakValueDictionary()

    def add(self, session: TerminalHandle) -> None:
        self._sessions[id(session)] = session

    def remove(self, session: TerminalHandle) -> None:
        if self.has(session):
            del self._sessions[id(session)]

    def has(self, session: TerminalHandle) -> bool:
        return self._sessions.get(id(session)) is session

    def __contains__(self, session: object) -> bool:
        return self._sessions.get(id(session)) is session

    def __len__(self) -> int:
        return len(self._sessions)
