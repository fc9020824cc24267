from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from agentterm.config import (
    MARKER_DIR_ENV,
    AppConfig,
    build_monitor,
    build_store,
    load_config,
    resolve_marker_dir,
)
from agentterm.errors import AgentTermError, ExitCode
from agentterm.markers import DEFAULT_MARKER_PREFIX


@pytest.fixture(autouse=True)
def _clear_marker_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(MARKER_DIR_ENV, raising=False)


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "config.toml")

    assert cfg.marker_dir == ""
    assert cfg.marker_prefix == DEFAULT_MARKER_PREFIX
    assert cfg.settle_delay_ms == 200
    assert cfg.settle_delay == pytest.approx(0.2)
    assert cfg.log_level == "INFO"


def test_load_reads_valid_values(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'marker_dir = "/var/run/agents"\n'
        'marker_prefix = ".agent_marker_"\n'
        "settle_delay_ms = 500\n"
        'log_level = "debug"\n',
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.marker_dir == "/var/run/agents"
    assert cfg.marker_prefix == ".agent_marker_"
    assert cfg.settle_delay_ms == 500
    assert cfg.log_level == "DEBUG"


def test_invalid_values_fall_back_field_by_field(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'marker_dir = "/tmp/agents"\n'
        'marker_prefix = "bad/prefix"\n'
        "settle_delay_ms = -5\n"
        'log_level = "loud"\n',
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.marker_dir == "/tmp/agents"
    assert cfg.marker_prefix == DEFAULT_MARKER_PREFIX
    assert cfg.settle_delay_ms == 200
    assert cfg.log_level == "INFO"


def test_malformed_toml_returns_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("marker_dir = [unterminated", encoding="utf-8")

    assert load_config(path) == AppConfig()


def test_env_overrides_marker_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(MARKER_DIR_ENV, str(tmp_path / "env-markers"))

    cfg = load_config(tmp_path / "missing.toml")

    assert cfg.marker_dir == str(tmp_path / "env-markers")


def test_assignment_is_validated() -> None:
    cfg = AppConfig()

    with pytest.raises(ValueError):
        cfg.settle_delay_ms = 20_000
    with pytest.raises(ValueError):
        cfg.marker_prefix = ""


def test_resolve_marker_dir_defaults_to_temp_dir() -> None:
    assert resolve_marker_dir(AppConfig()) == Path(tempfile.gettempdir())


def test_build_store_uses_config(tmp_path: Path) -> None:
    store = build_store(AppConfig(marker_dir=str(tmp_path), marker_prefix=".x_"))

    assert store.directory == tmp_path
    assert store.prefix == ".x_"


def test_build_store_rejects_file_as_directory(tmp_path: Path) -> None:
    target = tmp_path / "file"
    target.write_text("", encoding="utf-8")

    with pytest.raises(AgentTermError) as exc:
        build_store(AppConfig(marker_dir=str(target)))

    assert exc.value.code == ExitCode.CONFIG_ERROR


def test_build_monitor_uses_configured_settle_delay(tmp_path: Path) -> None:
    cfg = AppConfig(marker_dir=str(tmp_path), settle_delay_ms=750)

    monitor = build_monitor(cfg)

    assert monitor.settle_delay == pytest.approx(0.75)
    assert monitor.store.directory == tmp_path


def test_build_monitor_accepts_explicit_store(tmp_path: Path) -> None:
    store = build_store(AppConfig(marker_dir=str(tmp_path), marker_prefix=".y_"))

    monitor = build_monitor(AppConfig(settle_delay_ms=0), store=store)

    assert monitor.store is store
    assert monitor.settle_delay == 0
