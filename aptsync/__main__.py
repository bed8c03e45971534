"""Command-line interface for aptsync."""

import argparse
import signal
import sys
from typing import List, Optional

import yaml

from . import __version__
from .common.config import SyncConfig, default_config_path, load_typed_config, resolve_defaults
from .common.errors import AptSyncError
from .common.logger import get_logger, setup_logger
from .repos import ChangeMonitor, PoolEventStream, RepoLayout, SyncPipeline
from .tools import HostProbe, ToolSet

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aptsync",
        description="Rebuild, sign and publish a Debian package repository.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Configuration file (default: {default_config_path()})",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sync", help="Synchronize the repository once")
    subparsers.add_parser("watch", help="Synchronize whenever the pool changes")
    subparsers.add_parser("init", help="Create the pool and metadata directories")
    return parser


def cmd_sync(config: SyncConfig, tools: ToolSet) -> int:
    result = SyncPipeline(config, tools).run()
    if result.commit_message:
        print(result.commit_message)
    return 0


def cmd_watch(config: SyncConfig, tools: ToolSet) -> int:
    pipeline = SyncPipeline(config, tools)
    pipeline.validate()

    with PoolEventStream(pipeline.layout.pool) as stream:
        monitor = ChangeMonitor(
            stream,
            pipeline.on_change,
            debounce_seconds=config.monitor.debounce_seconds,
        )

        def _shutdown(signum, frame):
            logger.info(f"Received signal {signum}; stopping")
            monitor.stop()

        signal.signal(signal.SIGTERM, _shutdown)
        signal.signal(signal.SIGINT, _shutdown)

        runs = monitor.run()

    logger.info(f"Monitor stopped after {runs} synchronization(s)")
    return 0


def cmd_init(config: SyncConfig, tools: ToolSet) -> int:
    layout = RepoLayout.from_config(config.repository)
    for directory in layout.create():
        logger.info(f"Created {directory}")
    return 0


COMMANDS = {
    "sync": cmd_sync,
    "watch": cmd_watch,
    "init": cmd_init,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the aptsync CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = load_typed_config(args.config)
    except (FileNotFoundError, TypeError, yaml.YAMLError, AptSyncError) as e:
        print(f"aptsync: {e}", file=sys.stderr)
        return 1

    setup_logger(
        "aptsync",
        log_dir=config.logging.dir,
        level=args.log_level or config.logging.level,
        syslog=config.logging.syslog,
    )

    tools = ToolSet.system(gpg_binary=config.signing.gpg_binary, timeout=config.tool_timeout)

    try:
        config = resolve_defaults(config, HostProbe(tools.vcs))
        return COMMANDS[args.command](config, tools)
    except AptSyncError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
