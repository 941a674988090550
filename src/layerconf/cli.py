"""
Command line inspector for layered configuration.

Builds a store from the sources given on the command line and prints the
merged tree, a single key or the source list. ``watch`` keeps the store
reloading and prints every change until interrupted.
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import signal
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from .builder import ConfigBuilder
from .core.contracts import MISSING, ConfigTree
from .core.errors import ConfigError
from .core.store import ConfigStore
from .core.tree import assign
from .core.value import format_duration
from .sources.coerce import infer_scalar
from .sources.dotenv import DOTENV_BOOLEANS

LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

EXIT_OK = 0
EXIT_MISSING_KEY = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(level: str) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)


def _json_default(value: Any) -> Any:
    if isinstance(value, dt.timedelta):
        return format_duration(value)
    if value is MISSING:
        return None
    return str(value)


def _dumps(value: Any) -> str:
    return json.dumps(value, indent=2, sort_keys=True, default=_json_default)


def parse_overrides(pairs: Sequence[str]) -> ConfigTree:
    """Turn ``KEY=VALUE`` pairs into a tree; dotted keys nest."""
    overrides: ConfigTree = {}
    for pair in pairs:
        key, separator, value = pair.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"Invalid override {pair!r}; expected KEY=VALUE")
        assign(overrides, key.strip(), infer_scalar(value.strip(), DOTENV_BOOLEANS))
    return overrides


def build_store(args: argparse.Namespace, *, reload_interval: float | None = None) -> ConfigStore:
    builder = ConfigBuilder()
    if args.env_prefix is not None:
        builder.from_env(args.env_prefix)
    for path in args.dotenv:
        builder.from_dotenv(path)
    for path in args.file:
        builder.from_file(path)
    if args.overrides:
        builder.from_map(parse_overrides(args.overrides), "cli")
    if args.require_env:
        builder.require_env(*args.require_env)
    if reload_interval is not None:
        builder.with_on_change(_print_change).with_auto_reload(reload_interval)
    return builder.build()


def _print_change(key: str, value: Any) -> None:
    rendered = "<removed>" if value is MISSING else json.dumps(value, default=_json_default)
    print(f"{key} = {rendered}", flush=True)


def _cmd_show(store: ConfigStore, args: argparse.Namespace) -> int:
    print(_dumps(store.all_settings()))
    return EXIT_OK


def _cmd_get(store: ConfigStore, args: argparse.Namespace) -> int:
    value = store.get(args.key)
    if not value.is_set():
        LOGGER.error("Key %s is not set.", args.key)
        return EXIT_MISSING_KEY
    raw = value.raw
    if isinstance(raw, dict | list):
        print(_dumps(raw))
    else:
        print(value.as_string_default(str(raw)))
    return EXIT_OK


def _cmd_sources(store: ConfigStore, args: argparse.Namespace) -> int:
    for entry in store.describe_sources():
        print(f"{entry['priority']:>4}  {entry['name']}")
    return EXIT_OK


def _wait_for_shutdown(stop_event: threading.Event) -> None:
    def _request_shutdown(signum: int, _frame: Any) -> None:
        if not stop_event.is_set():
            LOGGER.info("Received %s - stopping watch.", signal.Signals(signum).name)
            stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(sig, _request_shutdown)
        except ValueError:  # pragma: no cover - not on the main thread
            LOGGER.debug("Cannot install handler for %s outside the main thread", sig)
    stop_event.wait()


def _cmd_watch(store: ConfigStore, args: argparse.Namespace) -> int:
    LOGGER.info(
        "Watching %d source(s); reloading every %ss. Press Ctrl+C to stop.",
        len(store.sources),
        args.interval,
    )
    _wait_for_shutdown(threading.Event())
    return EXIT_OK


COMMANDS = {
    "show": _cmd_show,
    "get": _cmd_get,
    "sources": _cmd_sources,
    "watch": _cmd_watch,
}


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect layered configuration.")
    parser.add_argument(
        "--env-prefix",
        default=None,
        metavar="PREFIX",
        help="Include environment variables starting with PREFIX ('' for all).",
    )
    parser.add_argument(
        "--dotenv",
        action="append",
        default=[],
        type=Path,
        metavar="PATH",
        help="Dotenv file to load (repeatable).",
    )
    parser.add_argument(
        "--file",
        action="append",
        default=[],
        type=Path,
        metavar="PATH",
        help="YAML/TOML/JSON/INI settings file to load (repeatable).",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Explicit override with the highest priority (repeatable).",
    )
    parser.add_argument(
        "--require-env",
        action="append",
        default=[],
        metavar="NAME",
        help="Environment variable that must be set (repeatable).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Python logging level (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("show", help="Print the merged configuration as JSON.")
    get_parser = subparsers.add_parser("get", help="Print the value of one dotted key.")
    get_parser.add_argument("key")
    subparsers.add_parser("sources", help="List sources in application order.")
    watch_parser = subparsers.add_parser("watch", help="Reload periodically and print changes.")
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=5.0,
        help="Seconds between reloads (default: 5).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    reload_interval = args.interval if args.command == "watch" else None
    try:
        store = build_store(args, reload_interval=reload_interval)
    except ConfigError as exc:
        LOGGER.error("Configuration failed: %s", exc)
        return EXIT_CONFIG_ERROR
    except ValueError as exc:
        LOGGER.error("Invalid arguments: %s", exc)
        return EXIT_CONFIG_ERROR
    with store:
        try:
            return COMMANDS[args.command](store, args)
        except KeyboardInterrupt:
            LOGGER.info("Interrupted by user.")
            return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())


__all__ = ["build_store", "main", "parse_args", "parse_overrides"]
