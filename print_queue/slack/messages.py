"""Reply text for every command the bot understands.

WHY: The command interpreter decides what happened; this module decides
how to say it. Keeping the wording in one place makes it easy to adjust
the bot's voice without touching queue logic, and lets tests assert on
the same strings the bot sends.

HOW: Plain functions returning Slack mrkdwn strings. Users are mentioned
with Slack's ``<@UXXXXXXXX>`` syntax so Slack renders and notifies them.

RULES:
- All functions return str (plain text, sent verbatim via chat.postMessage)
- Positions shown to users are the 0-based queue indexes
- Backup warnings are appended to, never substituted for, the success text
"""

from __future__ import annotations

from typing import Optional

# Command words, in the order they are listed in help text
CMD_ADD = "add"
CMD_DONE = "done"
CMD_CANCEL = "cancel"
CMD_SHOW = "show"
CMD_HELP = "help"

COMMANDS = (CMD_ADD, CMD_DONE, CMD_CANCEL, CMD_SHOW, CMD_HELP)

STARTUP_GREETING = "I'm baaack!"

_BACKUP_WARNING = (
    "Sorry, I couldn't update my backup file, so if I restart I may forget "
    "this change. The queue itself is up to date."
)


def mention(user_id: str) -> str:
    return "<@{}>".format(user_id)


def with_backup_warning(text: str) -> str:
    return "{}\n{}".format(text, _BACKUP_WARNING)


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


def format_added(user_id: str, position: int) -> str:
    return "Okay {}, I have added you to the queue at position {}".format(
        mention(user_id), position
    )


def format_not_admitted(user_id: str) -> str:
    return (
        "Sorry {}, you are already at the back of the queue. "
        "Wait for someone else to join before adding yourself again."
    ).format(mention(user_id))


# ---------------------------------------------------------------------------
# done / cancel
# ---------------------------------------------------------------------------


def format_done(user_id: str, previous_index: int) -> str:
    if previous_index == 0:
        return "Okay {}, you have been removed from the front of the queue".format(
            mention(user_id)
        )
    return "Okay {}, I have removed your spot at position {}".format(
        mention(user_id), previous_index
    )


def format_cancelled(user_id: str, previous_index: int) -> str:
    return "Okay {}, I have taken you out of the queue (you were at position {})".format(
        mention(user_id), previous_index
    )


def format_next_up(next_user: Optional[str]) -> str:
    """Follow-up line after the head of the line leaves."""
    if next_user is None:
        return "Nobody is next in line. The printer is free!"
    return "{}, you're up next!".format(mention(next_user))


def format_not_in_queue(user_id: str) -> str:
    return "{}, you weren't in the queue to begin with".format(mention(user_id))


# ---------------------------------------------------------------------------
# show / help / fallback
# ---------------------------------------------------------------------------


def format_queue(listing: str) -> str:
    if not listing:
        return "The queue is empty"
    return "Here is the queue:\n{}".format(listing)


def format_help() -> str:
    return "\n".join([
        "Mention me followed by one of these commands:",
        "*{}*: join the back of the queue".format(CMD_ADD),
        "*{}*: you are finished, leave your earliest spot in the queue".format(CMD_DONE),
        "*{}*: give up your earliest spot without printing".format(CMD_CANCEL),
        "*{}*: list everyone who is waiting".format(CMD_SHOW),
        "*{}*: show this message".format(CMD_HELP),
    ])


def format_unrecognized(command: str) -> str:
    options = ", ".join(COMMANDS[:-1]) + ", and " + COMMANDS[-1]
    if not command:
        return "You didn't give me a command. Your options are: {}".format(options)
    return "Unrecognized command {!r}. Your options are: {}".format(command, options)
