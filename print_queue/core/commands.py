"""Command interpreter: chat text in, queue operation, reply text out.

WHY: Users talk to the bot in free text (``@Queue add``). Something has
to turn that text into exactly one queue operation and one reply, and
translate every queue outcome, including a stale backup, into words.

HOW: handle_event() filters a Slack event down to (user, text, channel)
and calls handle(). handle() strips the leading bot mention, takes the
first word as the command and dispatches through a dict of bound
methods. Each branch calls the Queue and builds its reply from
print_queue.slack.messages.

RULES:
- One incoming message → at most one queue mutation → one reply
- The mention is matched case-insensitively at the start of the text
- Command words are case-insensitive; extra words after them are ignored
- Persistence failures still report the logical success, plus a warning
- Not thread-safe; the transport serializes calls
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from print_queue.config import BotConfig
from print_queue.core.queue import AddStatus, Queue, RemoveOutcome, RemoveStatus
from print_queue.core.users import UserID
from print_queue.slack import messages

logger = logging.getLogger(__name__)

# Event types that can carry a command for the bot
_COMMAND_EVENT_TYPES = frozenset({"app_mention", "message"})


@dataclass(frozen=True)
class Reply:
    """A message to post back: plain text for one channel."""

    channel: str
    text: str


class CommandInterpreter:
    """Dispatches bot commands to a Queue and words the result."""

    def __init__(self, queue: Queue, config: BotConfig) -> None:
        self.queue = queue
        self.config = config
        self._handlers: Dict[str, Callable[[UserID], str]] = {
            messages.CMD_ADD: self._add,
            messages.CMD_DONE: self._done,
            messages.CMD_CANCEL: self._cancel,
            messages.CMD_SHOW: self._show,
            messages.CMD_HELP: self._help,
        }

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    def handle_event(self, event: Mapping[str, Any]) -> Optional[Reply]:
        """Turn a Slack event into a Reply, or None if it isn't for us.

        WHY: The transport should not need to know which events matter.
        It hands over every message-like event and posts whatever comes
        back.

        RULES:
        - Only app_mention and plain message events are considered
        - Messages from bots or with a subtype (edits, joins, ...) are ignored
        - The text must start with the bot mention; a mention later in the
          text is conversation, not a command
        - User and channel must be present
        """
        if event.get("type") not in _COMMAND_EVENT_TYPES:
            return None
        if event.get("subtype") or event.get("bot_id"):
            return None

        user = event.get("user")
        channel = event.get("channel")
        text = event.get("text") or ""
        if not user or not channel:
            return None
        if not self.mentions_bot(text, event.get("type")):
            return None

        return Reply(channel=channel, text=self.handle(user, text))

    def handle(self, user: UserID, text: str) -> str:
        """Run the command in ``text`` on behalf of ``user``."""
        command_text = strip_mention(text, self.config.bot_mention)
        words = command_text.split()
        command = words[0].lower() if words else ""

        handler = self._handlers.get(command)
        if handler is None:
            logger.info("Unrecognized command %r from %s", command_text, user)
            return messages.format_unrecognized(command_text)

        logger.info("Command %s from %s", command, user)
        return handler(user)

    def mentions_bot(self, text: str, event_type: Optional[str] = None) -> bool:
        mention = self.config.bot_mention
        if not mention:
            # Without a known mention literal only Slack's own tagging counts
            return event_type == "app_mention"
        return text.lstrip().lower().startswith(mention.lower())

    # -----------------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------------

    def _add(self, user: UserID) -> str:
        outcome = self.queue.add(user)
        if outcome.status is AddStatus.NOT_ADMITTED:
            return messages.format_not_admitted(user)

        reply = messages.format_added(user, outcome.position)
        if outcome.status is AddStatus.ADDED_BUT_PERSIST_FAILED:
            reply = messages.with_backup_warning(reply)
        return reply

    def _done(self, user: UserID) -> str:
        outcome = self.queue.remove(user)
        if not outcome.removed:
            return messages.format_not_in_queue(user)
        return self._removal_reply(
            messages.format_done(user, outcome.previous_index), outcome
        )

    def _cancel(self, user: UserID) -> str:
        outcome = self.queue.remove(user)
        if not outcome.removed:
            return messages.format_not_in_queue(user)
        return self._removal_reply(
            messages.format_cancelled(user, outcome.previous_index), outcome
        )

    def _show(self, user: UserID) -> str:
        return messages.format_queue(self.queue.render())

    def _help(self, user: UserID) -> str:
        return messages.format_help()

    def _removal_reply(self, text: str, outcome: RemoveOutcome) -> str:
        if outcome.previous_index == 0:
            text = "{}\n{}".format(
                text, messages.format_next_up(self.queue.peek_first())
            )
        if outcome.status is RemoveStatus.REMOVED_BUT_PERSIST_FAILED:
            text = messages.with_backup_warning(text)
        return text


def strip_mention(text: str, mention: str) -> str:
    """Drop a leading bot mention (any case) and surrounding whitespace."""
    text = text.strip()
    if mention and text[: len(mention)].lower() == mention.lower():
        text = text[len(mention):]
    return text.strip()
