"""Shared test fixtures for the print_queue test suite.

WHY: Most test modules need the same handful of Slack users, a user
directory for them, a bot config with a known mention literal, and an
interpreter wired to a fresh queue.

HOW: Plain pytest fixtures. User IDs are fixed strings shaped like real
Slack IDs so rendered output is easy to assert on.

RULES:
- Every fixture returns a fresh object (no shared mutable state)
- BOT_ID is the bot's own user ID; BOT_MENTION is "<@BOT_ID>"
- Snapshot files live under pytest's tmp_path
"""

from __future__ import annotations

import pytest

from print_queue.config import BotConfig
from print_queue.core.commands import CommandInterpreter
from print_queue.core.queue import Queue
from print_queue.core.users import UserDirectory

ALICE = "UA8RXUPSP"
BOB = "UNB2LMZRP"
CAROL = "UN480W9ND"
DAVE = "U0DAVE000"  # not in the directory

BOT_ID = "UQUEUEBOT"
BOT_MENTION = "<@{}>".format(BOT_ID)


@pytest.fixture
def directory():
    """Directory with full info for Alice, name-only Bob, handle-only Carol."""
    return UserDirectory.from_records([
        (ALICE, "Alice Anderson", "alice"),
        (BOB, "Bob Brown", None),
        (CAROL, None, "carol"),
    ])


@pytest.fixture
def config():
    return BotConfig(
        bot_token="xoxb-test",
        signing_secret="secret",
        bot_user_id=BOT_ID,
    )


@pytest.fixture
def queue(directory):
    return Queue(directory=directory)


@pytest.fixture
def interpreter(queue, config):
    return CommandInterpreter(queue, config)


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "queue.txt"
