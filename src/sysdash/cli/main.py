"""
Command-line interface for the sysdash monitoring dashboard.

This module provides the main CLI entry point, with one subcommand per
process role: the broadcasting server, a headless watching client, and an
export of the client's durable buffer.
"""

import argparse
import asyncio
import dataclasses
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from ..client.connection import MetricsStreamClient
from ..client.notifications import DesktopNotifier
from ..client.store import DashboardStore
from ..config import get_config, set_config_path
from ..config.validators import validate_server_config
from ..models.config import AppConfig
from ..models.metrics import parse_timestamp
from ..server.app import create_app
from ..storage.settings import JsonSettingsStore
from ..storage.timeseries import MetricsBuffer
from ..validation import ValidationError, handle_cli_error

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sysdash",
        description="Real-time system monitoring dashboard: server, client and history export.",
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml (defaults to conf/config.toml).")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the metrics broadcasting server.")
    serve.add_argument("--host", type=str, help="Bind address (overrides [server].host).")
    serve.add_argument("--port", type=int, help="Bind port (overrides [server].port).")
    serve.add_argument(
        "--interval",
        type=float,
        help="Seconds between broadcast ticks (overrides [server].update_interval_seconds).",
    )

    watch = subparsers.add_parser("watch", help="Connect to a server and record metrics and alerts.")
    watch.add_argument("--url", type=str, help="Stream URL (overrides [client].server_url).")
    watch.add_argument("--no-persist", action="store_true", help="Do not write samples to the durable buffer.")

    export = subparsers.add_parser("export", help="Export recorded samples from the durable buffer.")
    export.add_argument("--format", choices=["json", "csv"], default="json", help="Output format (default: json).")
    export.add_argument("--since", type=str, help="ISO-8601 lower bound (inclusive).")
    export.add_argument("--until", type=str, help="ISO-8601 upper bound (inclusive).")
    export.add_argument("--output", "-o", type=Path, help="Write to this file instead of stdout.")

    return parser


def apply_server_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """
    Return a copy of ``config`` with the serve flags applied and validated.

    Raises:
        ValidationError: If an override is out of range
    """
    server_data = dataclasses.asdict(config.server)
    if args.host is not None:
        server_data["host"] = args.host
    if args.port is not None:
        server_data["port"] = args.port
    if args.interval is not None:
        server_data["update_interval_seconds"] = args.interval
    return dataclasses.replace(config, server=validate_server_config(server_data))


def run_serve(config: AppConfig, args: argparse.Namespace) -> None:
    config = apply_server_overrides(config, args)
    app = create_app(config)
    logger.info(
        f"Serving on {config.server.host}:{config.server.port} "
        f"(interval: {config.server.update_interval_seconds}s)"
    )
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=args.log_level.lower(),
    )


def build_store(config: AppConfig, persist: bool = True) -> DashboardStore:
    """Wire a DashboardStore to on-disk settings, the durable buffer and desktop notifications."""
    settings = JsonSettingsStore(config.client.data_dir / SETTINGS_FILE_NAME)
    return DashboardStore(
        settings=settings,
        buffer=MetricsBuffer(config=config.storage),
        notifier=DesktopNotifier(),
        history_size=config.client.history_size,
        max_alerts=config.client.max_alerts,
        persistence_enabled=persist and config.storage.persistence_enabled,
    )


async def watch(config: AppConfig, url: Optional[str] = None, persist: bool = True) -> None:
    store = build_store(config, persist)
    if store.persistence_enabled:
        await store.init_persistence()

    client = MetricsStreamClient(
        url or config.client.server_url,
        store,
        reconnect_delay=config.client.reconnect_delay_seconds,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    client.start()
    logger.info(f"Watching {client.url} (persistence: {store.persistence_enabled})")
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutdown requested, closing the stream")
        await client.stop()
        await store.close()
        logger.info(f"Final state: {store.state()}")


async def export(config: AppConfig, format: str, since=None, until=None) -> str:
    buffer = MetricsBuffer(config=config.storage)
    if not await buffer.initialize():
        raise RuntimeError(f"Durable buffer at {config.storage.path} could not be opened")
    try:
        return await buffer.export(format, since=since, until=until)
    finally:
        await buffer.close()


def run_export(config: AppConfig, args: argparse.Namespace) -> None:
    try:
        since = parse_timestamp(args.since) if args.since else None
        until = parse_timestamp(args.until) if args.until else None
    except ValueError as e:
        handle_cli_error(error=e, context="parsing --since/--until", exit_code=2, logger=logger)

    output = asyncio.run(export(config, args.format, since=since, until=until))
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output + "\n", encoding="utf-8")
        logger.info(f"Exported {args.format.upper()} to {args.output}")
    else:
        sys.stdout.write(output + "\n")


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for sysdash.

    Raises:
        SystemExit: On configuration errors, validation failures or a buffer
            that cannot be opened.
    """
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    if args.config:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except Exception as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    try:
        if args.command == "serve":
            run_serve(app_config, args)
        elif args.command == "watch":
            asyncio.run(watch(app_config, url=args.url, persist=not args.no_persist))
        elif args.command == "export":
            run_export(app_config, args)
    except ValidationError as e:
        handle_cli_error(error=e, context=f"{args.command} arguments", exit_code=2, logger=logger)
    except RuntimeError as e:
        handle_cli_error(error=e, context=args.command, exit_code=1, logger=logger)


if __name__ == "__main__":
    main_cli()
