"""print-queue: a Slack bot that keeps the line for a shared 3D printer.

WHY: Several people share one printer. Instead of a sign-up sheet, they
@-mention the bot in a channel to join the line, leave it, or see who is
next, and the bot keeps the order for them.

HOW: Three layers, leaves first:
  core:    the queue, its admission rule, the snapshot file and the
           command interpreter (no Slack SDK or HTTP imports)
  slack:   slack-bolt handlers that feed mentions to the interpreter
  server:  the FastAPI app that receives Events API webhooks

RULES:
- One process manages exactly one queue for one channel
- The core never talks to Slack; it returns plain reply strings
"""

__version__ = "0.4.0"
