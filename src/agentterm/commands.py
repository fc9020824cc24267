"""Host command actions operating on the active terminal."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from agentterm.markers import MarkerListing
from agentterm.terminal.models import ClassificationState, TerminalHandle
from agentterm.terminal.monitor import TerminalMonitor

logger = py_logging.getLogger(__name__)

DETECT_COMMAND = "agentterm.detectAgent"
CREATE_MARKER_COMMAND = "agentterm.createMarker"
SHOW_STATUS_COMMAND = "agentterm.showStatus"


class NotificationLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


ActiveSessionProvider = Callable[[], TerminalHandle | None]

_NO_ACTIVE = Notification(NotificationLevel.WARNING, "No active terminal found")


class CommandSurface:
    def __init__(self, monitor: TerminalMonitor, active_session: ActiveSessionProvider) -> None:
        self.monitor = monitor
        self._active_session = active_session

    def handlers(self) -> dict[str, Callable[[], Notification]]:
        return {
            DETECT_COMMAND: self.detect_active,
            CREATE_MARKER_COMMAND: self.create_marker_for_active,
            SHOW_STATUS_COMMAND: self.show_marker_status,
        }

    def detect_active(self) -> Notification:
        session = self._active_session()
        if session is None:
            return _NO_ACTIVE
        try:
            state = self.monitor.classify_session(session)
        except Exception as exc:
            logger.exception("Detection failed for %r", session.name)
            return Notification(NotificationLevel.ERROR, f"Failed to detect terminal: {exc}")
        if state == ClassificationState.AGENT:
            return Notification(NotificationLevel.INFO, "Agent terminal detected and marker file created")
        return Notification(NotificationLevel.INFO, "Terminal is not from an agent")

    def create_marker_for_active(self) -> Notification:
        """Write a marker without classifying or registering the session."""
        session = self._active_session()
        if session is None:
            return _NO_ACTIVE
        try:
            self.monitor.schedule_marker_write(session)
        except Exception as exc:
            logger.exception("Manual marker creation failed for %r", session.name)
            return Notification(NotificationLevel.ERROR, f"Failed to create marker file: {exc}")
        return Notification(NotificationLevel.INFO, "Marker file created manually for active terminal")

    def show_marker_status(self) -> Notification:
        listing = self.monitor.store.list_all()
        if not listing.ok:
            return Notification(NotificationLevel.ERROR, f"Failed to check marker files: {listing.error}")
        if not listing.entries:
            return Notification(NotificationLevel.INFO, "No agent marker files found")
        return Notification(NotificationLevel.INFO, format_status(listing))


def format_status(listing: MarkerListing) -> str:
    parts = []
    for entry in listing:
        if entry.record is not None:
            parts.append(f"PID {entry.record.process_id}: {entry.record.terminal_name}")
        else:
            parts.append(f"{entry.filename}: (unreadable)")
    return f"Agent marker files ({len(listing)}): {', '.join(parts)}"
