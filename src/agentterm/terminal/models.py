"""Terminal session domain models read by the classification core."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class ClassificationState(str, Enum):
    AGENT = "agent"
    STANDARD = "standard"


@dataclass(frozen=True)
class CreationMetadata:
    name: str = ""
    env: Mapping[str, str] = field(default_factory=dict)


class TerminalHandle(Protocol):
    """Host-owned terminal session as seen by the core.

    ``process_id`` is ``None`` when the host has no process yet, otherwise an
    awaitable that resolves to the shell pid. It may never resolve.
    """

    name: str
    creation_metadata: CreationMetadata | None

    @property
    def process_id(self) -> Awaitable[int] | None: ...


class TerminalSession:
    """Asyncio-backed terminal handle for hosts without their own session type.

    Equality and hashing are identity based, so two sessions sharing a name
    stay distinct.
    """

    def __init__(
        self,
        name: str,
        *,
        creation_metadata: CreationMetadata | None = None,
        process_id: int | None = None,
    ) -> None:
        self.name = name
        self.creation_metadata = creation_metadata
        self._initial_pid = process_id
        self._pid_future: asyncio.Future[int] | None = None

    def __repr__(self) -> str:
        return f"TerminalSession(name={self.name!r})"

    @property
    def process_id(self) -> asyncio.Future[int]:
        if self._pid_future is None:
            self._pid_future = asyncio.get_running_loop().create_future()
            if self._initial_pid is not None:
                self._pid_future.set_result(self._initial_pid)
        return self._pid_future

    def resolve_process_id(self, pid: int) -> None:
        future = self.process_id
        if not future.done():
            future.set_result(pid)

    def fail_process_id(self, error: BaseException) -> None:
        future = self.process_id
        if not future.done():
            future.set_exception(error)
