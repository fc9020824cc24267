"""Lifecycle event orchestration between the host, classifier and marker store."""

from __future__ import annotations

import asyncio
import logging as py_logging
import time
from collections import deque
from collections.abc import Awaitable, Callable, Coroutine, Iterable
from dataclasses import dataclass
from typing import Any

from agentterm.markers import MarkerRecord, MarkerStore
from agentterm.terminal.classifier import classify
from agentterm.terminal.models import ClassificationState, CreationMetadata, TerminalHandle
from agentterm.terminal.registry import SessionRegistry

logger = py_logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.2
DEFAULT_MAX_EVENTS = 1000

Classifier = Callable[[str, CreationMetadata | None], bool]


@dataclass(frozen=True)
class MonitorEvent:
    session: str
    step: str
    message: str


class TerminalMonitor:
    """Classifies host terminals and keeps their marker files in step.

    Newly opened sessions are classified after ``settle_delay`` seconds so the
    host can finish populating name and pid. Scheduled work is never
    cancelled: a session that closes before its delay elapses may still get a
    marker, which the next sweep removes.
    """

    def __init__(
        self,
        store: MarkerStore,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        classifier: Classifier = classify,
        registry: SessionRegistry | None = None,
        clock: Callable[[], float] = time.time,
        max_events: int = DEFAULT_MAX_EVENTS,
    ) -> None:
        self.store = store
        self.settle_delay = settle_delay
        self.registry = registry if registry is not None else SessionRegistry()
        self._classifier = classifier
        self._clock = clock
        self._tasks: set[asyncio.Task[None]] = set()
        self._events: deque[MonitorEvent] = deque(maxlen=max_events)

    def events(self) -> list[MonitorEvent]:
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()
        logger.info("monitor-event session=* step=clear-events message=Monitor events cleared.")

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def start(self, existing_sessions: Iterable[TerminalHandle] = ()) -> None:
        try:
            removed = self.store.remove_all()
            self._record("*", "startup-sweep", f"Removed {removed} stale marker(s).")
        except Exception:
            logger.exception("Startup sweep failed")
        for session in list(existing_sessions):
            try:
                self._record(session.name, "existing", "Checking pre-existing terminal.")
                self.classify_session(session)
            except Exception:
                logger.exception("Failed to process existing terminal %r", getattr(session, "name", ""))

    def stop(self) -> int:
        try:
            removed = self.store.remove_all()
        except Exception:
            logger.exception("Shutdown sweep failed")
            return 0
        self._record("*", "shutdown-sweep", f"Removed {removed} marker(s).")
        return removed

    def handle_opened(self, session: TerminalHandle) -> None:
        try:
            self._record(session.name, "open", f"Scheduled classification in {self.settle_delay}s.")
            self._spawn(self._classify_after_delay(session))
        except Exception:
            logger.exception("Failed to handle opened terminal")

    def handle_closed(self, session: TerminalHandle) -> None:
        try:
            if not self.registry.has(session):
                return
            self.registry.remove(session)
            self._record(session.name, "close", "Agent terminal closed.")
            self._spawn(self._remove_marker(session))
        except Exception:
            logger.exception("Failed to handle closed terminal")

    def classify_session(self, session: TerminalHandle) -> ClassificationState:
        """Classify now, register agent sessions and schedule their marker write."""
        is_agent = self._classifier(session.name, session.creation_metadata)
        if not is_agent:
            self.registry.remove(session)
            self._record(session.name, "classify-standard", "Standard terminal.")
            return ClassificationState.STANDARD
        self.registry.add(session)
        self._record(session.name, "classify-agent", "Agent terminal detected.")
        self.schedule_marker_write(session)
        return ClassificationState.AGENT

    def schedule_marker_write(self, session: TerminalHandle) -> None:
        self._spawn(self._write_marker(session))

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for scheduled work; tasks still pending after ``timeout`` keep running."""
        while self._tasks:
            pending = set(self._tasks)
            _, still_pending = await asyncio.wait(pending, timeout=timeout)
            if still_pending:
                return

    async def _classify_after_delay(self, session: TerminalHandle) -> None:
        await asyncio.sleep(self.settle_delay)
        self._record(session.name, "classify", "Processing terminal creation.")
        self.classify_session(session)

    async def _write_marker(self, session: TerminalHandle) -> None:
        pid = await self._resolve_pid(session, "write")
        if pid is None:
            return
        record = MarkerRecord.for_session(pid, session.name, now=self._clock())
        result = self.store.write(pid, record)
        if result.ok:
            self._record(session.name, "marker-write", f"Created marker for PID {pid}.")
        else:
            self._record(session.name, "marker-write-failed", result.error)

    async def _remove_marker(self, session: TerminalHandle) -> None:
        pid = await self._resolve_pid(session, "remove")
        if pid is None:
            return
        result = self.store.remove(pid)
        if result.ok:
            self._record(session.name, "marker-remove", f"Removed marker for PID {pid}.")
        else:
            self._record(session.name, "marker-remove-failed", result.error)

    async def _resolve_pid(self, session: TerminalHandle, purpose: str) -> int | None:
        pending: Awaitable[int] | None = session.process_id
        if pending is None:
            self._record(session.name, f"{purpose}-skipped", "Process id not available.")
            return None
        try:
            pid = await pending
        except Exception as exc:
            self._record(session.name, f"{purpose}-skipped", f"Process id resolution failed: {exc}")
            return None
        if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
            self._record(session.name, f"{purpose}-skipped", f"Invalid process id: {pid!r}")
            return None
        return pid

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Monitor task failed", exc_info=error)

    def _record(self, session: str, step: str, message: str) -> None:
        self._events.append(MonitorEvent(session=session, step=step, message=message))
        logger.info("monitor-event session=%s step=%s message=%s", session, step, message)
