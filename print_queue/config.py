"""Configuration: .env loading, defaults, and the BotConfig dataclass.

WHY: Tokens are secrets and deployment details (port, snapshot path,
announcement channel) change between machines. They belong in the
environment, not in source, and the rest of the code should receive
them as one explicit object instead of reading globals.

HOW: python-dotenv loads the .env file on import. String defaults are read
with os.getenv at module level; QUEUE_PORT is parsed only by
load_config(), so a bad value cannot break the snapshot tools.
load_config() combines them with any overrides into a frozen BotConfig
that is passed to the interpreter, the Slack app and the server.

RULES:
- SLACK_BOT_TOKEN is always required
- SLACK_SIGNING_SECRET is required for HTTP mode, SLACK_APP_TOKEN for
  Socket Mode; require_transport_secrets() checks the right one
- An empty QUEUE_FILE disables persistence
- The bot mention is "<@{QUEUE_BOT_USER_ID}>" when the ID is known;
  otherwise it is resolved from auth.test at startup
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_HOST = os.getenv("QUEUE_HOST", "127.0.0.1")
DEFAULT_PORT = 3152
DEFAULT_ANNOUNCE_CHANNEL = os.getenv("QUEUE_ANNOUNCE_CHANNEL", "botspam")
DEFAULT_QUEUE_FILE = os.getenv("QUEUE_FILE", "")

# Path of the Events API endpoint, as configured in the Slack app settings
EVENTS_PATH = "/slack/events"


@dataclass(frozen=True)
class BotConfig:
    """Everything the bot needs to know about its deployment.

    RULES:
    - bot_user_id: the bot's own Slack user ID, "" until resolved
    - queue_file: snapshot path, or None for a memory-only queue
    - announce_channel: channel name (without '#') for the startup greeting
    """

    bot_token: str = ""
    signing_secret: str = ""
    app_token: str = ""
    bot_user_id: str = ""
    announce_channel: str = DEFAULT_ANNOUNCE_CHANNEL
    queue_file: Optional[Path] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def bot_mention(self) -> str:
        """The literal that must prefix a command, e.g. ``<@U0BOT>``."""
        if not self.bot_user_id:
            return ""
        return "<@{}>".format(self.bot_user_id)

    def with_bot_user_id(self, bot_user_id: str) -> "BotConfig":
        return replace(self, bot_user_id=bot_user_id)


def _port_from_env() -> int:
    raw = os.getenv("QUEUE_PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        raise ValueError("QUEUE_PORT must be an integer, got {!r}".format(raw)) from None


def load_config(
    queue_file: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> BotConfig:
    """Build a BotConfig from the environment plus CLI overrides.

    RULES:
    - Raises ValueError if SLACK_BOT_TOKEN is missing or empty
    - Raises ValueError if QUEUE_PORT is set but not an integer
    - Explicit arguments win over environment values (port 0 included)
    """
    bot_token = os.getenv("SLACK_BOT_TOKEN", "").strip()
    if not bot_token:
        raise ValueError(
            "Slack bot token not configured. "
            "Add SLACK_BOT_TOKEN to the environment or the .env file."
        )

    file_setting = queue_file if queue_file is not None else DEFAULT_QUEUE_FILE

    return BotConfig(
        bot_token=bot_token,
        signing_secret=os.getenv("SLACK_SIGNING_SECRET", "").strip(),
        app_token=os.getenv("SLACK_APP_TOKEN", "").strip(),
        bot_user_id=os.getenv("QUEUE_BOT_USER_ID", "").strip(),
        announce_channel=DEFAULT_ANNOUNCE_CHANNEL.lstrip("#"),
        queue_file=Path(file_setting) if file_setting else None,
        host=host or DEFAULT_HOST,
        port=port if port is not None else _port_from_env(),
    )


def require_transport_secrets(config: BotConfig, socket_mode: bool) -> None:
    """Raise ValueError if the secret for the chosen transport is missing."""
    if socket_mode and not config.app_token:
        raise ValueError("SLACK_APP_TOKEN environment variable is required for Socket Mode")
    if not socket_mode and not config.signing_secret:
        raise ValueError("SLACK_SIGNING_SECRET environment variable is required")
