"""Command-line interface for the printer queue bot.

WHY: Operators need one command to run the bot and a couple of small
tools for the snapshot file: check that it will load before a restart,
and blank it when the line should start over.

HOW: argparse with three subcommands:
  serve: bootstrap the bot and run it over HTTP (uvicorn) or Socket Mode
  check: parse a snapshot file and print its entries
  clear: blank a snapshot file in place
Logging is configured once here. Status output for the file tools goes
to stderr; the entry listing from ``check`` goes to stdout.

RULES:
- A malformed or unopenable snapshot makes ``serve`` exit with status 1
  before any Slack call; the queue is never started from a file it
  cannot trust
- Missing configuration, or a bot user ID that auth.test cannot supply,
  exits with status 2 and the ValueError message
- ``clear`` and ``check`` need no Slack credentials
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from print_queue import __version__
from print_queue.config import load_config, require_transport_secrets
from print_queue.core.persistence import PersistenceStore, SnapshotFormatError, load_queue

logger = logging.getLogger(__name__)

EXIT_SNAPSHOT_ERROR = 1
EXIT_CONFIG_ERROR = 2


def _status(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the bot until interrupted.

    HOW: Builds the config, checks the secret for the chosen transport,
    bootstraps the Bolt app and hands it to uvicorn or Socket Mode.
    """
    from print_queue.slack.bot import bootstrap, run_socket_mode

    try:
        config = load_config(
            queue_file=args.queue_file,
            host=args.host,
            port=args.port,
        )
        require_transport_secrets(config, socket_mode=args.socket_mode)
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    try:
        app, interpreter = bootstrap(config, socket_mode=args.socket_mode)
    except SnapshotFormatError as exc:
        logger.critical("Refusing to start with a corrupt queue snapshot: %s", exc)
        return EXIT_SNAPSHOT_ERROR
    except OSError as exc:
        logger.critical("Cannot open queue snapshot: %s", exc)
        return EXIT_SNAPSHOT_ERROR
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    if args.socket_mode:
        run_socket_mode(app, config)
    else:
        from print_queue.server.app import create_server, serve

        serve(create_server(app, interpreter), config)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    path = Path(args.file)
    try:
        queue = load_queue(path)
    except FileNotFoundError:
        _status("No such file: {}".format(path))
        return EXIT_SNAPSHOT_ERROR
    except SnapshotFormatError as exc:
        _status("Invalid snapshot: {}".format(exc))
        return EXIT_SNAPSHOT_ERROR

    for index, user in enumerate(queue):
        print("{}\t{}".format(index, user))
    _status("{}: {} entries, OK".format(path, len(queue)))
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.exists():
        _status("No such file: {}".format(path))
        return EXIT_SNAPSHOT_ERROR
    with PersistenceStore(path) as store:
        store.clear()
    _status("Cleared {}".format(path))
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="print-queue",
        description="Slack bot that keeps the waiting line for the 3D printer.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the bot.")
    serve.add_argument(
        "--queue-file",
        help="Snapshot file for crash recovery (default: $QUEUE_FILE; empty disables).",
    )
    serve.add_argument("--host", help="HTTP bind address (default: $QUEUE_HOST or 127.0.0.1).")
    serve.add_argument("--port", type=int, help="HTTP port (default: $QUEUE_PORT or 3152).")
    serve.add_argument(
        "--socket-mode", action="store_true",
        help="Connect over Socket Mode instead of serving HTTP (needs SLACK_APP_TOKEN).",
    )
    serve.set_defaults(func=cmd_serve)

    check = subparsers.add_parser("check", help="Validate a queue snapshot file.")
    check.add_argument("file", help="Path to the snapshot file.")
    check.set_defaults(func=cmd_check)

    clear = subparsers.add_parser("clear", help="Blank a queue snapshot file in place.")
    clear.add_argument("file", help="Path to the snapshot file.")
    clear.set_defaults(func=cmd_clear)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    sys.exit(args.func(args))
