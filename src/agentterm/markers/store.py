"""Process-keyed marker files in a shared directory.

Every operation here reports failures through return values and logs; none of
them raise once the store is constructed.
"""

from __future__ import annotations

import logging as py_logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from agentterm.errors import AgentTermError, ExitCode
from agentterm.markers.models import (
    DEFAULT_MARKER_PREFIX,
    MarkerEntry,
    MarkerListing,
    MarkerRecord,
    MarkerResult,
)

logger = py_logging.getLogger(__name__)


def validate_prefix(prefix: str) -> str:
    if not prefix or "/" in prefix or "\\" in prefix or prefix in {".", ".."}:
        raise AgentTermError(
            f"Invalid marker prefix: {prefix!r}",
            code=ExitCode.VALIDATION_ERROR,
            hint="Use a non-empty file name prefix without path separators.",
        )
    return prefix


class MarkerStore:
    def __init__(self, directory: str | Path | None = None, *, prefix: str = DEFAULT_MARKER_PREFIX) -> None:
        self.directory = Path(directory).expanduser() if directory else Path(tempfile.gettempdir())
        self.prefix = validate_prefix(prefix)

    def path_for(self, process_id: int) -> Path:
        return self.directory / f"{self.prefix}{process_id}"

    def write(self, process_id: int, record: MarkerRecord) -> MarkerResult:
        path = self.path_for(process_id)
        if isinstance(process_id, bool) or not isinstance(process_id, int) or process_id <= 0:
            logger.warning("marker-event pid=%s step=write-rejected reason=invalid-pid", process_id)
            return MarkerResult(ok=False, path=path, error=f"Invalid process id: {process_id!r}")
        try:
            path.write_text(record.to_json(), encoding="utf-8")
        except OSError as exc:
            logger.error("marker-event pid=%s step=write-failed path=%s error=%s", process_id, path, exc)
            return MarkerResult(ok=False, path=path, error=str(exc))
        logger.info("marker-event pid=%s step=write path=%s", process_id, path)
        return MarkerResult(ok=True, path=path)

    def remove(self, process_id: int) -> MarkerResult:
        path = self.path_for(process_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("marker-event pid=%s step=remove-missing path=%s", process_id, path)
            return MarkerResult(ok=True, path=path)
        except OSError as exc:
            logger.error("marker-event pid=%s step=remove-failed path=%s error=%s", process_id, path, exc)
            return MarkerResult(ok=False, path=path, error=str(exc))
        logger.info("marker-event pid=%s step=remove path=%s", process_id, path)
        return MarkerResult(ok=True, path=path)

    def remove_all(self) -> int:
        """Delete every file matching the prefix and return how many went away.

        Liveness of the pid is not checked; a failed unlink is logged and the
        sweep moves on to the next file.
        """
        try:
            names = self._marker_names()
        except OSError as exc:
            logger.error("marker-event pid=* step=sweep-failed dir=%s error=%s", self.directory, exc)
            return 0

        removed = 0
        for name in names:
            path = self.directory / name
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.error("marker-event pid=* step=sweep-remove-failed path=%s error=%s", path, exc)
                continue
            removed += 1
            logger.debug("marker-event pid=* step=sweep-remove path=%s", path)
        logger.info("marker-event pid=* step=sweep dir=%s removed=%s", self.directory, removed)
        return removed

    def list_all(self) -> MarkerListing:
        try:
            names = self._marker_names()
        except OSError as exc:
            logger.error("marker-event pid=* step=list-failed dir=%s error=%s", self.directory, exc)
            return MarkerListing(error=str(exc))
        return MarkerListing(entries=[self._read_entry(name) for name in names])

    def read(self, process_id: int) -> MarkerRecord | None:
        entry = self._read_entry(self.path_for(process_id).name)
        return entry.record

    def _marker_names(self) -> list[str]:
        return sorted(
            name
            for name in os.listdir(self.directory)
            if name.startswith(self.prefix) and (self.directory / name).is_file()
        )

    def _read_entry(self, name: str) -> MarkerEntry:
        path = self.directory / name
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return MarkerEntry(filename=name, error="missing")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("marker-event pid=* step=read-failed path=%s error=%s", path, exc)
            return MarkerEntry(filename=name, error=str(exc))
        try:
            record = MarkerRecord.model_validate_json(content)
        except ValidationError as exc:
            logger.warning("marker-event pid=* step=parse-failed path=%s errors=%s", path, exc.error_count())
            return MarkerEntry(filename=name, error="unreadable")
        return MarkerEntry(filename=name, record=record)
