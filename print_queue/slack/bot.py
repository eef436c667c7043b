"""Slack bot: Bolt app setup, mention handling, and startup tasks.

WHY: The queue logic knows nothing about Slack. This module is the glue:
it receives app_mention events from Slack, feeds them to the command
interpreter one at a time, and posts the reply back to the channel. It
also does the one-off startup work (resolve the bot's own ID, load the
user directory, say hello in the announcement channel).

HOW: Uses slack-bolt. create_app() builds the App and registers the
handlers. bootstrap() wires config → snapshot → directory → interpreter
→ app. Events arrive either over HTTP (print_queue.server.app) or over
Socket Mode (run_socket_mode) and reach the same handlers.

RULES:
- Every command runs under one threading.Lock (queue + snapshot write)
- Slack API failures are logged, never raised into Bolt's worker threads
- A malformed snapshot aborts bootstrap before any Slack call is made
- Plain message events are acknowledged and ignored; commands arrive as
  app_mention events so a mention is never answered twice
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from print_queue.config import BotConfig
from print_queue.core.commands import CommandInterpreter
from print_queue.core.persistence import open_queue
from print_queue.core.queue import Queue
from print_queue.core.users import UserDirectory
from print_queue.slack.messages import STARTUP_GREETING

logger = logging.getLogger(__name__)

# Page size for users.list / conversations.list
_PAGE_LIMIT = 200


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_app(config: BotConfig, socket_mode: bool = False) -> App:
    """Create the Slack Bolt app (no handlers yet).

    RULES:
    - HTTP mode verifies request signatures with config.signing_secret
    - Socket Mode has no signed HTTP requests, so verification is off
    """
    return App(
        token=config.bot_token,
        signing_secret=config.signing_secret or None,
        request_verification_enabled=not socket_mode,
    )


def register_handlers(
    app: App,
    interpreter: CommandInterpreter,
    lock: Optional[threading.Lock] = None,
) -> threading.Lock:
    """Attach the event listeners and return the lock guarding the queue."""
    lock = lock or threading.Lock()
    app.event("app_mention")(make_mention_handler(interpreter, lock))
    app.event("message")(handle_plain_message)
    return lock


def make_mention_handler(
    interpreter: CommandInterpreter,
    lock: threading.Lock,
) -> Callable[..., None]:
    """Build the app_mention listener bound to one interpreter.

    WHY: Bolt injects listener arguments by parameter name, so the
    interpreter and lock are captured in a closure rather than passed.
    """

    def handle_app_mention(event: Dict[str, Any], say: Any, logger: Any) -> None:
        with lock:
            reply = interpreter.handle_event(event)
        if reply is None:
            return
        try:
            say(text=reply.text, channel=reply.channel)
        except Exception:
            logger.exception("Failed to post reply in %s", reply.channel)

    return handle_app_mention


def handle_plain_message(event: Dict[str, Any], logger: Any) -> None:
    """Acknowledge non-mention messages (no-op)."""
    logger.debug("Ignoring message event in %s", event.get("channel"))


# ---------------------------------------------------------------------------
# Startup helpers
# ---------------------------------------------------------------------------


def resolve_bot_user_id(client: Any) -> str:
    """Ask Slack who we are (``auth.test``) and return our user ID."""
    response = client.auth_test()
    user_id = response.get("user_id", "")
    if not user_id:
        raise ValueError("auth.test did not return the bot's user_id")
    return user_id


def _paginate(method: Callable[..., Any], key: str, **kwargs: Any) -> Iterator[Dict[str, Any]]:
    cursor = None  # type: Optional[str]
    while True:
        if cursor:
            kwargs["cursor"] = cursor
        response = method(limit=_PAGE_LIMIT, **kwargs)
        for item in response.get(key, []):
            yield item
        cursor = (response.get("response_metadata") or {}).get("next_cursor")
        if not cursor:
            return


def member_to_record(member: Dict[str, Any]) -> Tuple[str, Optional[str], Optional[str]]:
    """Flatten a ``users.list`` member into an (id, real_name, handle) triple."""
    profile = member.get("profile") or {}
    real_name = member.get("real_name") or profile.get("real_name") or None
    return member.get("id", ""), real_name, member.get("name") or None


def load_directory(client: Any) -> UserDirectory:
    """Populate a UserDirectory from ``users.list``.

    WHY: The queue listing should show names, but a directory failure
    must not stop the bot; it then shows raw user IDs instead.

    RULES:
    - Walks every page of users.list
    - Deleted users are skipped
    - On any API error, logs and returns whatever was loaded so far
    """
    records = []  # type: List[Tuple[str, Optional[str], Optional[str]]]
    try:
        for member in _paginate(client.users_list, "members"):
            if member.get("deleted"):
                continue
            records.append(member_to_record(member))
    except Exception:
        logger.exception("Failed to load the Slack user directory")
    return UserDirectory.from_records(records)


def find_channel_id(client: Any, channel_name: str) -> Optional[str]:
    for channel in _paginate(client.conversations_list, "channels", exclude_archived=True):
        if channel.get("name") == channel_name:
            return channel.get("id")
    return None


def announce_startup(client: Any, channel_name: str) -> bool:
    """Post the startup greeting in the announcement channel.

    Returns True if the greeting was posted.
    """
    if not channel_name:
        return False
    try:
        channel_id = find_channel_id(client, channel_name)
        if channel_id is None:
            logger.warning("Announcement channel #%s not found", channel_name)
            return False
        client.chat_postMessage(channel=channel_id, text=STARTUP_GREETING)
    except Exception:
        logger.exception("Failed to post startup greeting in #%s", channel_name)
        return False
    return True


def build_queue(config: BotConfig) -> Queue:
    """Load (or create) the queue described by config.queue_file."""
    if config.queue_file is None:
        logger.info("No QUEUE_FILE configured, the queue lives in memory only")
        return Queue()
    return open_queue(config.queue_file)


def bootstrap(
    config: BotConfig,
    socket_mode: bool = False,
) -> Tuple[App, CommandInterpreter]:
    """Wire up everything the running bot needs.

    HOW: Load the snapshot first (fatal errors surface before any network
    call), then create the app, resolve the bot mention, load the
    directory, register handlers and greet the channel.

    RULES:
    - Raises SnapshotFormatError for a malformed snapshot
    - Raises ValueError if the bot's user ID cannot be determined
    """
    queue = build_queue(config)

    app = create_app(config, socket_mode=socket_mode)

    if not config.bot_user_id:
        config = config.with_bot_user_id(resolve_bot_user_id(app.client))
    logger.info("Responding to mentions of %s", config.bot_mention)

    queue.directory = load_directory(app.client)

    interpreter = CommandInterpreter(queue, config)
    register_handlers(app, interpreter)

    announce_startup(app.client, config.announce_channel)
    return app, interpreter


# ---------------------------------------------------------------------------
# Socket Mode entry point
# ---------------------------------------------------------------------------


def run_socket_mode(app: App, config: BotConfig) -> None:
    """Run the bot over a Socket Mode WebSocket (no public URL needed).

    RULES:
    - Requires config.app_token (SLACK_APP_TOKEN)
    - Blocks on SocketModeHandler.start()
    """
    logger.info("Starting Slack bot in Socket Mode...")
    handler = SocketModeHandler(app, config.app_token)
    handler.start()
