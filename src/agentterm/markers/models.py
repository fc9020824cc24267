"""Persisted marker record and store result types."""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MARKER_PREFIX = ".vscode_copilot_agent_"


class MarkerRecord(BaseModel):
    """Wire format of a marker file; field aliases are the on-disk keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_agent_session: Literal[True] = Field(default=True, alias="isAgentSession")
    terminal_mode: Literal["agent"] = Field(default="agent", alias="terminalMode")
    process_id: int = Field(alias="processId", gt=0)
    terminal_name: str = Field(alias="terminalName")
    timestamp: int = Field(ge=0)

    @classmethod
    def for_session(cls, process_id: int, terminal_name: str, *, now: float | None = None) -> MarkerRecord:
        seconds = time.time() if now is None else now
        return cls(process_id=process_id, terminal_name=terminal_name, timestamp=int(seconds * 1000))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class MarkerResult:
    ok: bool
    path: Path
    error: str = ""


@dataclass(frozen=True)
class MarkerEntry:
    filename: str
    record: MarkerRecord | None = None
    error: str = ""

    @property
    def readable(self) -> bool:
        return self.record is not None


@dataclass
class MarkerListing:
    entries: list[MarkerEntry] = field(default_factory=list)
    error: str = ""

    def __iter__(self) -> Iterator[MarkerEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def ok(self) -> bool:
        return not self.error

    def records(self) -> list[MarkerRecord]:
        return [entry.record for entry in self.entries if entry.record is not None]
