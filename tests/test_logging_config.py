from __future__ import annotations

import logging as py_logging
from pathlib import Path

import pytest

import agentterm.logging as at_logging


@pytest.fixture(autouse=True)
def _clean_logging_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(at_logging.LOG_LEVEL_ENV, raising=False)
    monkeypatch.delenv(at_logging.STATE_HOME_ENV, raising=False)


def test_default_log_path_is_expanded() -> None:
    path = at_logging.default_log_path()

    assert path.is_absolute()
    assert path.name == "agentterm.log"


def test_default_log_path_follows_xdg_state_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(at_logging.STATE_HOME_ENV, str(tmp_path))

    assert at_logging.default_log_path() == tmp_path / "agentterm" / "agentterm.log"


def test_relative_xdg_state_home_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(at_logging.STATE_HOME_ENV, "relative/state")

    assert at_logging.default_log_path().is_absolute()


def test_warning_alias_maps_to_warning_level() -> None:
    logger = at_logging.configure_logging("warning")

    assert logger.level == at_logging.LOG_LEVELS["WARN"]


def test_unknown_log_level_falls_back_to_info() -> None:
    logger = at_logging.configure_logging("not-a-level")

    assert logger.level == py_logging.INFO


def test_env_level_overrides_requested_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(at_logging.LOG_LEVEL_ENV, "debug")

    logger = at_logging.configure_logging("ERROR")

    assert logger.level == py_logging.DEBUG


def test_invalid_env_level_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(at_logging.LOG_LEVEL_ENV, "chatty")

    logger = at_logging.configure_logging("ERROR")

    assert logger.level == py_logging.ERROR


def test_configure_logging_resets_existing_handlers() -> None:
    logger = at_logging.configure_logging("INFO")
    assert len(logger.handlers) == 1

    logger = at_logging.configure_logging("INFO")

    assert len(logger.handlers) == 1


def test_configure_logging_adds_debug_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "agentterm.log"

    logger = at_logging.configure_logging("ERROR", log_file=log_file)
    file_handlers = [handler for handler in logger.handlers if isinstance(handler, py_logging.FileHandler)]

    assert len(file_handlers) == 1
    assert file_handlers[0].level == py_logging.DEBUG
    assert log_file.exists()


def test_reconfigure_closes_previous_file_handler(tmp_path: Path) -> None:
    logger = at_logging.configure_logging("INFO", log_file=tmp_path / "first.log")
    previous = [handler for handler in logger.handlers if isinstance(handler, py_logging.FileHandler)][0]

    at_logging.configure_logging("INFO")

    assert previous.stream is None


def test_configure_logging_ignores_file_handler_oserror(monkeypatch, tmp_path: Path) -> None:
    at_logging.configure_logging("INFO", log_file=tmp_path / "existing.log")

    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(at_logging.py_logging, "FileHandler", raise_os_error)

    logger = at_logging.configure_logging("INFO", log_file=tmp_path / "nope" / "agentterm.log")

    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]) is py_logging.StreamHandler
