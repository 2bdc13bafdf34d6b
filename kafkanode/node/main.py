#!/usr/bin/env python3
"""
Main entry point for running a kafkanode process.

Usage:
    # Under the Maelstrom harness
    maelstrom test -w kafka --bin "$(which kafkanode)" --node-count 1 --time-limit 20

    # Directly, with strict commit validation
    python -m kafkanode.node.main --commit-policy strict
"""

import argparse
import asyncio
import sys
from typing import Optional, TextIO

from kafkanode.core.log import CommitPolicy, LogStore
from kafkanode.node.runtime import NodeRuntime
from kafkanode.service import BroadcastService, EchoService, LogDispatcher, PollErrorMode
from kafkanode.utils.config import COMMIT_POLICIES, LOG_FORMATS, POLL_ERROR_MODES, Config
from kafkanode.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='kafkanode - a Maelstrom node serving echo, broadcast and log requests'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to a YAML configuration file'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: from configuration, INFO)'
    )

    parser.add_argument(
        '--log-format',
        type=str,
        default=None,
        choices=list(LOG_FORMATS),
        help='Log output format (default: from configuration, console)'
    )

    parser.add_argument(
        '--commit-policy',
        type=str,
        default=None,
        choices=list(COMMIT_POLICIES),
        help='Offset commit validation (default: from configuration, permissive)'
    )

    parser.add_argument(
        '--poll-error-mode',
        type=str,
        default=None,
        choices=list(POLL_ERROR_MODES),
        help='Poll failure policy (default: from configuration, all_or_nothing)'
    )

    return parser.parse_args(argv)


def load_config(args) -> Config:
    """Build configuration, with command-line flags taking precedence."""
    config = Config(args.config)

    if args.log_level:
        config.set("logging.level", args.log_level)
    if args.log_format:
        config.set("logging.format", args.log_format)
    if args.commit_policy:
        config.set("store.commit_policy", args.commit_policy)
    if args.poll_error_mode:
        config.set("dispatcher.poll_error_mode", args.poll_error_mode)

    config.validate()
    return config


def build_node(
    config: Config,
    input_stream: Optional[TextIO] = None,
    output_stream: Optional[TextIO] = None,
) -> NodeRuntime:
    """
    Wire the store, services and runtime together.

    Args:
        config: Node configuration
        input_stream: Message source (default: stdin)
        output_stream: Message destination (default: stdout)

    Returns:
        Runtime with every request family registered
    """
    store = LogStore(commit_policy=CommitPolicy(config.get("store.commit_policy")))
    dispatcher = LogDispatcher(
        store,
        poll_error_mode=PollErrorMode(config.get("dispatcher.poll_error_mode")),
    )

    runtime = NodeRuntime(input_stream=input_stream, output_stream=output_stream)
    runtime.register_routes(EchoService().routes())
    runtime.register_routes(BroadcastService().routes())
    runtime.register_routes(dispatcher.routes())

    return runtime


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        print(f"kafkanode: invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(
        log_level=config.get("logging.level"),
        log_format=config.get("logging.format"),
        log_output=config.get("logging.output"),
    )

    logger.info(
        "Starting kafkanode",
        commit_policy=config.get("store.commit_policy"),
        poll_error_mode=config.get("dispatcher.poll_error_mode"),
    )

    runtime = build_node(config)

    try:
        asyncio.run(runtime.run())

    except KeyboardInterrupt:
        logger.info("Received interrupt signal")

    except Exception as e:
        logger.error("Node error", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
