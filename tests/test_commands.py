"""Tests for the command interpreter and its replies.

WHY: The interpreter is where chat text becomes queue mutations. A
mis-parsed mention or a wrong reply would either change the line when
nobody asked, or tell people the wrong thing about their place.

HOW: Tests drive CommandInterpreter.handle() and handle_event() with the
text Slack would deliver ("<@BOT> add") and assert on the queue and the
reply strings from print_queue.slack.messages.
  - TestMentionParsing: mention stripping, case, whitespace
  - TestAddCommand / TestDoneCommand / TestCancelCommand
  - TestShowAndHelp: listing and usage text
  - TestPersistFailureReplies: degraded-mode warnings
  - TestHandleEvent: which Slack events produce a reply

RULES:
- Uses the conftest interpreter (in-memory queue, known bot ID)
- Stores that fail are MagicMocks raising OSError
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import ALICE, BOB, BOT_ID, BOT_MENTION, CAROL
from print_queue.config import BotConfig
from print_queue.core.commands import CommandInterpreter, Reply, strip_mention
from print_queue.core.queue import Queue
from print_queue.slack import messages


def _say(interpreter, user, command):
    return interpreter.handle(user, "{} {}".format(BOT_MENTION, command))


# ---------------------------------------------------------------------------
# TestMentionParsing
# ---------------------------------------------------------------------------


class TestMentionParsing:
    def test_strips_leading_mention(self):
        assert strip_mention("<@UQUEUEBOT> add", BOT_MENTION) == "add"

    def test_mention_match_is_case_insensitive(self):
        assert strip_mention("<@uqueuebot>   show  ", BOT_MENTION) == "show"

    def test_leading_whitespace_before_mention(self):
        assert strip_mention("   <@UQUEUEBOT> help", BOT_MENTION) == "help"

    def test_mention_elsewhere_is_kept(self):
        assert strip_mention("hey <@UQUEUEBOT> add", BOT_MENTION) == "hey <@UQUEUEBOT> add"

    def test_command_word_is_case_insensitive(self, interpreter):
        _say(interpreter, ALICE, "ADD")
        assert interpreter.queue.entries() == [ALICE]

    def test_extra_words_are_ignored(self, interpreter):
        _say(interpreter, ALICE, "add please")
        assert interpreter.queue.entries() == [ALICE]

    def test_unrecognized_command_lists_options(self, interpreter):
        reply = _say(interpreter, ALICE, "print now")
        assert reply == messages.format_unrecognized("print now")
        for command in messages.COMMANDS:
            assert command in reply
        assert len(interpreter.queue) == 0

    def test_bare_mention_is_unrecognized(self, interpreter):
        reply = interpreter.handle(ALICE, BOT_MENTION)
        assert "didn't give me a command" in reply


# ---------------------------------------------------------------------------
# TestAddCommand
# ---------------------------------------------------------------------------


class TestAddCommand:
    def test_add_replies_with_position(self, interpreter):
        _say(interpreter, BOB, "add")
        reply = _say(interpreter, ALICE, "add")
        assert reply == messages.format_added(ALICE, 1)
        assert "<@{}>".format(ALICE) in reply

    def test_rejected_add_explains(self, interpreter):
        for user in (BOB, CAROL, ALICE):
            _say(interpreter, user, "add")
        reply = _say(interpreter, ALICE, "add")
        assert reply == messages.format_not_admitted(ALICE)
        assert interpreter.queue.entries() == [BOB, CAROL, ALICE]


# ---------------------------------------------------------------------------
# TestDoneCommand
# ---------------------------------------------------------------------------


class TestDoneCommand:
    def test_done_at_head_names_next_user(self, interpreter):
        _say(interpreter, ALICE, "add")
        _say(interpreter, BOB, "add")
        reply = _say(interpreter, ALICE, "done")
        assert interpreter.queue.entries() == [BOB]
        assert reply.split("\n") == [
            messages.format_done(ALICE, 0),
            messages.format_next_up(BOB),
        ]
        assert "<@{}>".format(BOB) in reply

    def test_done_last_user_says_nobody_next(self, interpreter):
        _say(interpreter, ALICE, "add")
        reply = _say(interpreter, ALICE, "done")
        assert len(interpreter.queue) == 0
        assert messages.format_next_up(None) in reply
        assert "Nobody is next" in reply

    def test_done_not_at_head_removes_earliest_entry(self, interpreter):
        for user in (ALICE, BOB, CAROL, BOB):
            _say(interpreter, user, "add")
        reply = _say(interpreter, BOB, "done")
        assert interpreter.queue.entries() == [ALICE, CAROL, BOB]
        assert reply == messages.format_done(BOB, 1)

    def test_done_when_absent(self, interpreter):
        _say(interpreter, ALICE, "add")
        reply = _say(interpreter, BOB, "done")
        assert reply == messages.format_not_in_queue(BOB)
        assert interpreter.queue.entries() == [ALICE]

    def test_done_on_empty_queue(self, interpreter):
        reply = _say(interpreter, ALICE, "done")
        assert reply == messages.format_not_in_queue(ALICE)


# ---------------------------------------------------------------------------
# TestCancelCommand
# ---------------------------------------------------------------------------


class TestCancelCommand:
    def test_cancel_middle_entry(self, interpreter):
        for user in (ALICE, BOB, CAROL):
            _say(interpreter, user, "add")
        reply = _say(interpreter, BOB, "cancel")
        assert interpreter.queue.entries() == [ALICE, CAROL]
        assert reply == messages.format_cancelled(BOB, 1)

    def test_cancel_at_head_is_allowed_and_names_next(self, interpreter):
        _say(interpreter, ALICE, "add")
        _say(interpreter, BOB, "add")
        reply = _say(interpreter, ALICE, "cancel")
        assert interpreter.queue.entries() == [BOB]
        assert messages.format_next_up(BOB) in reply

    def test_cancel_when_absent(self, interpreter):
        reply = _say(interpreter, CAROL, "cancel")
        assert reply == messages.format_not_in_queue(CAROL)


# ---------------------------------------------------------------------------
# TestShowAndHelp
# ---------------------------------------------------------------------------


class TestShowAndHelp:
    def test_show_empty(self, interpreter):
        assert _say(interpreter, ALICE, "show") == "The queue is empty"

    def test_show_lists_names(self, interpreter):
        _say(interpreter, ALICE, "add")
        _say(interpreter, BOB, "add")
        reply = _say(interpreter, CAROL, "show")
        assert reply == "Here is the queue:\n0. Alice Anderson (alice)\n1. Bob Brown"

    def test_show_does_not_mutate(self, interpreter):
        _say(interpreter, ALICE, "add")
        _say(interpreter, ALICE, "show")
        assert interpreter.queue.entries() == [ALICE]

    def test_help_mentions_every_command(self, interpreter):
        reply = _say(interpreter, ALICE, "help")
        assert reply == messages.format_help()
        for command in messages.COMMANDS:
            assert "*{}*".format(command) in reply


# ---------------------------------------------------------------------------
# TestPersistFailureReplies
# ---------------------------------------------------------------------------


class TestPersistFailureReplies:
    @pytest.fixture
    def failing(self, config, directory):
        store = MagicMock()
        store.save.side_effect = OSError("read-only file system")
        return CommandInterpreter(Queue(store=store, directory=directory), config)

    def test_add_reports_success_and_warns(self, failing):
        reply = _say(failing, ALICE, "add")
        assert reply.startswith(messages.format_added(ALICE, 0))
        assert "backup" in reply
        assert failing.queue.entries() == [ALICE]

    def test_done_reports_success_and_warns(self, failing):
        failing.queue.replay(ALICE)
        failing.queue.replay(BOB)
        reply = _say(failing, ALICE, "done")
        assert reply.startswith(messages.format_done(ALICE, 0))
        assert messages.format_next_up(BOB) in reply
        assert "backup" in reply
        assert failing.queue.entries() == [BOB]

    def test_rejected_add_has_no_warning(self, failing):
        for user in (ALICE, BOB, ALICE):
            failing.queue.replay(user)
        reply = _say(failing, ALICE, "add")
        assert reply == messages.format_not_admitted(ALICE)


# ---------------------------------------------------------------------------
# TestHandleEvent
# ---------------------------------------------------------------------------


class TestHandleEvent:
    def _event(self, **overrides):
        event = {
            "type": "app_mention",
            "user": ALICE,
            "text": "{} add".format(BOT_MENTION),
            "channel": "C0PRINTER",
            "ts": "1700000000.000100",
        }
        event.update(overrides)
        return event

    def test_app_mention_produces_reply(self, interpreter):
        reply = interpreter.handle_event(self._event())
        assert reply == Reply(channel="C0PRINTER", text=messages.format_added(ALICE, 0))

    def test_plain_message_with_mention_produces_reply(self, interpreter):
        reply = interpreter.handle_event(self._event(type="message"))
        assert reply is not None
        assert interpreter.queue.entries() == [ALICE]

    def test_message_without_mention_ignored(self, interpreter):
        assert interpreter.handle_event(self._event(type="message", text="add")) is None
        assert len(interpreter.queue) == 0

    @pytest.mark.parametrize("event_type", ["app_mention", "message"])
    def test_mention_after_other_words_ignored(self, interpreter, event_type):
        text = "hey {} add".format(BOT_MENTION)
        assert interpreter.handle_event(self._event(type=event_type, text=text)) is None
        assert len(interpreter.queue) == 0

    def test_leading_whitespace_before_mention_accepted(self, interpreter):
        text = "  {} add".format(BOT_MENTION)
        assert interpreter.handle_event(self._event(text=text)) is not None
        assert interpreter.queue.entries() == [ALICE]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"type": "reaction_added"},
            {"subtype": "message_changed"},
            {"bot_id": "B123"},
            {"user": None},
            {"channel": ""},
        ],
    )
    def test_irrelevant_events_ignored(self, interpreter, overrides):
        assert interpreter.handle_event(self._event(**overrides)) is None
        assert len(interpreter.queue) == 0

    def test_unknown_bot_id_only_trusts_app_mention(self, queue):
        interpreter = CommandInterpreter(queue, BotConfig(bot_token="xoxb-test"))
        assert interpreter.handle_event(self._event(type="message")) is None
        assert interpreter.handle_event(self._event()) is not None

    def test_config_mention_literal(self, config):
        assert config.bot_mention == "<@{}>".format(BOT_ID)
