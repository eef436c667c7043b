"""Slack user directory: user ID → display name lookup.

WHY: Queue entries are opaque Slack user IDs (``UXXXXXXXX``). Listing the
line as raw IDs is unreadable, so the bot resolves each ID to the person's
real name and handle when it renders the queue.

HOW: DisplayInfo holds the optional real name and handle for one user.
UserDirectory is built once from a bulk listing of (id, real_name, handle)
triples and answers lookups from a plain dict.

RULES:
- Populated once at startup, read-only afterwards
- Missing users never raise; display falls back to the raw ID
- Empty strings from Slack are treated the same as missing values
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

# A Slack user ID such as "UA8RXUPSP". Equality is by value only.
UserID = str


@dataclass(frozen=True)
class DisplayInfo:
    """How a single Slack user is shown in queue listings.

    RULES:
    - real_name: the user's full name, or None if Slack has none
    - handle: the user's Slack username, or None
    """

    real_name: Optional[str] = None
    handle: Optional[str] = None


class UserDirectory:
    """Read-only mapping from user ID to DisplayInfo."""

    def __init__(self, entries: Optional[Dict[UserID, DisplayInfo]] = None) -> None:
        self._entries: Dict[UserID, DisplayInfo] = dict(entries or {})

    @classmethod
    def from_records(
        cls,
        records: Iterable[Tuple[UserID, Optional[str], Optional[str]]],
    ) -> "UserDirectory":
        """Build a directory from (id, real_name, handle) triples.

        WHY: The Slack adapter flattens ``users.list`` members into triples
        so this module stays independent of the Slack payload shape.

        RULES:
        - Records with an empty ID are skipped
        - A later record for the same ID replaces the earlier one
        """
        entries: Dict[UserID, DisplayInfo] = {}
        for user_id, real_name, handle in records:
            if not user_id:
                continue
            entries[user_id] = DisplayInfo(
                real_name=real_name or None,
                handle=handle or None,
            )
        logger.info("Loaded %d users into the directory", len(entries))
        return cls(entries)

    def lookup(self, user_id: UserID) -> Optional[DisplayInfo]:
        return self._entries.get(user_id)

    def display_name(self, user_id: UserID) -> str:
        """Render a user as ``Real Name (handle)`` with raw-ID fallback."""
        info = self.lookup(user_id)
        if info is None:
            return user_id
        name = info.real_name or user_id
        if info.handle:
            return "{} ({})".format(name, info.handle)
        return name

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries
