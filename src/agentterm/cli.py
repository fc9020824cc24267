"""Command-line query path over the marker store."""

from __future__ import annotations

import argparse
import json
import logging as py_logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .config import AppConfig, build_store, load_config
from .errors import AgentTermError, ExitCode, user_facing_error
from .logging import configure_logging, default_log_path, normalize_level
from .markers import MarkerListing, MarkerStore
from .terminal import CreationMetadata, classify

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _pid_type(value: str) -> int:
    try:
        pid = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("PID must be an integer") from exc
    if pid <= 0:
        raise argparse.ArgumentTypeError("PID must be positive")
    return pid


def _env_pair_type(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError("--env must look like KEY=VALUE")
    return key.strip(), val


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agentterm")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--marker-dir", type=Path, default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    commands = parser.add_subparsers(dest="command", required=True)

    status = commands.add_parser("status", help="List agent marker files")
    status.add_argument("--json", action="store_true", help="Print records as a JSON array")

    check = commands.add_parser("check", help="Exit 0 if PID belongs to an agent terminal")
    check.add_argument("pid", type=_pid_type)

    commands.add_parser("sweep", help="Remove every agent marker file")

    classify_cmd = commands.add_parser("classify", help="Classify a terminal name")
    classify_cmd.add_argument("name")
    classify_cmd.add_argument("--override-name", default="")
    classify_cmd.add_argument("--env", type=_env_pair_type, action="append", default=[])
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_store(namespace: argparse.Namespace, config: AppConfig) -> MarkerStore:
    if namespace.marker_dir is not None:
        config.marker_dir = str(namespace.marker_dir)
    return build_store(config)


def _print_listing(listing: MarkerListing, *, as_json: bool) -> None:
    if as_json:
        payload: list[dict[str, object]] = []
        for entry in listing:
            if entry.record is not None:
                payload.append(entry.record.to_dict())
            else:
                payload.append({"file": entry.filename, "error": entry.error})
        print(json.dumps(payload))
        return
    for entry in listing:
        if entry.record is not None:
            record = entry.record
            print(f"pid={record.process_id} name={record.terminal_name} timestamp={record.timestamp}")
        else:
            print(f"{entry.filename} unreadable: {entry.error}")


def run_status(store: MarkerStore, *, as_json: bool = False) -> int:
    listing = store.list_all()
    if not listing.ok:
        raise AgentTermError(
            f"Failed to list marker files in {store.directory}",
            code=ExitCode.STORE_ERROR,
            hint=listing.error,
        )
    _print_listing(listing, as_json=as_json)
    return int(ExitCode.SUCCESS)


def run_check(store: MarkerStore, pid: int) -> int:
    if store.read(pid) is None:
        print("standard")
        return int(ExitCode.NOT_AGENT)
    print("agent")
    return int(ExitCode.SUCCESS)


def run_sweep(store: MarkerStore) -> int:
    print(store.remove_all())
    return int(ExitCode.SUCCESS)


def run_classify(name: str, *, override_name: str = "", env: Sequence[tuple[str, str]] = ()) -> int:
    metadata = None
    if override_name or env:
        metadata = CreationMetadata(name=override_name, env=dict(env))
    print("agent" if classify(name, metadata) else "standard")
    return int(ExitCode.SUCCESS)


def run_cli_flow(namespace: argparse.Namespace, config: AppConfig) -> int:
    if namespace.command == "classify":
        return run_classify(namespace.name, override_name=namespace.override_name, env=namespace.env)
    store = resolve_store(namespace, config)
    if namespace.command == "status":
        return run_status(store, as_json=namespace.json)
    if namespace.command == "check":
        return run_check(store, namespace.pid)
    if namespace.command == "sweep":
        return run_sweep(store)
    raise AgentTermError(
        f"Unknown command: {namespace.command}",
        code=ExitCode.INVALID_ARGS,
        hint="Run agentterm --help.",
    )


def main(argv: Sequence[str] | None = None) -> int:
    log_path = default_log_path()
    logger = configure_logging(level="WARN", log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level or config.log_level, log_file=log_path)

    try:
        logger.debug("Running command %s", namespace.command)
        return run_cli_flow(namespace, config)
    except AgentTermError as exc:
        logger.error(
            "Handled AgentTermError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
