"""XDG config loading for marker location and monitor timing."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from agentterm.errors import AgentTermError, ExitCode
from agentterm.logging import LOG_LEVELS, normalize_level
from agentterm.markers import DEFAULT_MARKER_PREFIX, MarkerStore, validate_prefix
from agentterm.terminal.monitor import TerminalMonitor

DEFAULT_CONFIG_PATH = Path("~/.config/agentterm/config.toml").expanduser()
DEFAULT_SETTLE_DELAY_MS = 200
MAX_SETTLE_DELAY_MS = 10_000
MARKER_DIR_ENV = "AGENTTERM_MARKER_DIR"


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    marker_dir: str = ""
    marker_prefix: str = DEFAULT_MARKER_PREFIX
    settle_delay_ms: int = Field(default=DEFAULT_SETTLE_DELAY_MS, ge=0, le=MAX_SETTLE_DELAY_MS)
    log_level: str = "INFO"

    @field_validator("marker_prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        try:
            return validate_prefix(value)
        except AgentTermError as exc:
            raise ValueError(exc.message) from exc

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = normalize_level(value)
        if normalized not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return normalized

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    marker_dir = raw.get("marker_dir", cfg.marker_dir)
    if isinstance(marker_dir, str):
        cfg.marker_dir = marker_dir.strip()

    marker_prefix = raw.get("marker_prefix", cfg.marker_prefix)
    if isinstance(marker_prefix, str):
        try:
            cfg.marker_prefix = marker_prefix
        except ValueError:
            pass

    settle_delay_ms = raw.get("settle_delay_ms", cfg.settle_delay_ms)
    if (
        isinstance(settle_delay_ms, int)
        and not isinstance(settle_delay_ms, bool)
        and 0 <= settle_delay_ms <= MAX_SETTLE_DELAY_MS
    ):
        cfg.settle_delay_ms = settle_delay_ms

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str) and normalize_level(log_level) in LOG_LEVELS:
        cfg.log_level = log_level

    return cfg


def _apply_env(cfg: AppConfig) -> AppConfig:
    env_dir = os.getenv(MARKER_DIR_ENV, "").strip()
    if env_dir:
        cfg.marker_dir = env_dir
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env(AppConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _apply_env(AppConfig())
    if not isinstance(raw, dict):
        return _apply_env(AppConfig())
    return _apply_env(_sanitize(raw))


def resolve_marker_dir(config: AppConfig) -> Path:
    if config.marker_dir:
        return Path(config.marker_dir).expanduser()
    return Path(tempfile.gettempdir())


def build_store(config: AppConfig) -> MarkerStore:
    directory = resolve_marker_dir(config)
    if directory.exists() and not directory.is_dir():
        raise AgentTermError(
            f"Marker directory is not a directory: {directory}",
            code=ExitCode.CONFIG_ERROR,
            hint=f"Point marker_dir or {MARKER_DIR_ENV} at a directory.",
        )
    return MarkerStore(directory, prefix=config.marker_prefix)


def build_monitor(config: AppConfig, *, store: MarkerStore | None = None) -> TerminalMonitor:
    resolved = store if store is not None else build_store(config)
    return TerminalMonitor(resolved, settle_delay=config.settle_delay)
