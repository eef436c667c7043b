"""Slack integration for the printer queue bot.

WHY: People interact with the queue by mentioning the bot in a Slack
channel. This package connects Slack events to the core command
interpreter and holds the wording of every reply.

HOW: bot.py builds the slack-bolt App and its listeners, loads the user
directory and greets the channel on startup. messages.py holds the
reply text builders used by the interpreter.

RULES:
- Events arrive over HTTP (print_queue.server) or Socket Mode
- SLACK_BOT_TOKEN is always required; see print_queue.config
"""
