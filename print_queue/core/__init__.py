"""Core queue logic for the printer line.

WHY: The queue, its admission rule and its snapshot format are the only
parts of the bot with real invariants. Keeping them free of Slack and HTTP
imports makes them easy to test and reason about.

HOW: users.py maps user IDs to display names, queue.py holds the line,
persistence.py reads and writes the snapshot file, commands.py turns
chat text into queue operations and reply strings.

RULES:
- Nothing in this package performs network I/O
- Snapshot file I/O is the only blocking operation
"""
