"""The printer line: a FIFO of Slack user IDs with an admission rule.

WHY: People waiting for the printer need a fair first-come-first-served
order, but someone who just joined should not be able to grab several
consecutive slots while others are waiting. At the same time, when the
line is short there is spare capacity, so back-to-back requests are fine.

HOW: Queue wraps a deque of user IDs. Mutating operations return small
outcome dataclasses instead of raising, because every outcome (admitted,
rejected, not found, backup failed) is a normal reply to a chat command.
When a PersistenceStore is attached, every successful mutation rewrites
the snapshot file; a failed write is reported in the outcome but never
undoes the in-memory change.

RULES:
- can_admit(user) is True when fewer than 3 are waiting, or the tail is
  someone else; only the current tail is checked, not full membership
- The same user may hold several non-adjacent entries
- remove(user) drops only the first (closest to head) entry of that user
- Rejected adds and removals of absent users never touch the snapshot
- Indexes are always 0-based from the current head
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Iterator, List, Optional

from print_queue.core.users import UserDirectory, UserID

if TYPE_CHECKING:
    from print_queue.core.persistence import PersistenceStore

logger = logging.getLogger(__name__)

# Below this many waiting entries, a user may queue right behind themselves.
SHORT_LINE_LENGTH = 3


class AddStatus(str, enum.Enum):
    """Result kinds for Queue.add()."""

    ADDED = "added"
    ADDED_BUT_PERSIST_FAILED = "added_but_persist_failed"
    NOT_ADMITTED = "not_admitted"


class RemoveStatus(str, enum.Enum):
    """Result kinds for Queue.remove()."""

    REMOVED = "removed"
    REMOVED_BUT_PERSIST_FAILED = "removed_but_persist_failed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AddOutcome:
    """What happened when a user asked to join the line.

    RULES:
    - position: 0-based index of the new entry, None when not admitted
    - error: the OSError from the snapshot write, only for
      ADDED_BUT_PERSIST_FAILED
    """

    status: AddStatus
    position: Optional[int] = None
    error: Optional[OSError] = None

    @property
    def added(self) -> bool:
        return self.status is not AddStatus.NOT_ADMITTED


@dataclass(frozen=True)
class RemoveOutcome:
    """What happened when a user's entry was removed.

    RULES:
    - previous_index: where the entry was before removal, None if NOT_FOUND
    - error: the OSError from the snapshot write, only for
      REMOVED_BUT_PERSIST_FAILED
    """

    status: RemoveStatus
    previous_index: Optional[int] = None
    error: Optional[OSError] = None

    @property
    def removed(self) -> bool:
        return self.status is not RemoveStatus.NOT_FOUND


class Queue:
    """FIFO of user IDs for the shared printer.

    WHY: The single source of truth for who is waiting, mutated one
    command at a time by the CommandInterpreter.

    HOW: A deque holds the entries (front = next to print). An optional
    PersistenceStore receives the full entry list after each successful
    mutation. An optional UserDirectory resolves names for render().

    RULES:
    - Not thread-safe on its own; the Slack adapter serializes access
    - The store is never written for no-op operations
    """

    def __init__(
        self,
        store: Optional["PersistenceStore"] = None,
        directory: Optional[UserDirectory] = None,
    ) -> None:
        self._entries: Deque[UserID] = deque()
        self.store = store
        self.directory = directory if directory is not None else UserDirectory()
        self._backup_in_sync = True

    # -----------------------------------------------------------------------
    # Read-only access
    # -----------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[UserID]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return "Queue({!r})".format(list(self._entries))

    def entries(self) -> List[UserID]:
        """Snapshot of the line, head first."""
        return list(self._entries)

    def peek_first(self) -> Optional[UserID]:
        return self._entries[0] if self._entries else None

    def peek_last(self) -> Optional[UserID]:
        return self._entries[-1] if self._entries else None

    @property
    def backup_in_sync(self) -> bool:
        """False after a failed snapshot write, until the next good one."""
        return self._backup_in_sync

    # -----------------------------------------------------------------------
    # Admission
    # -----------------------------------------------------------------------

    def can_admit(self, user: UserID) -> bool:
        return len(self._entries) < SHORT_LINE_LENGTH or self.peek_last() != user

    def replay(self, user: UserID) -> bool:
        """Append without persisting, still enforcing the admission rule.

        WHY: Loading a snapshot rebuilds the line entry by entry. Writing
        the file back while reading it would be pointless, but the rule must
        still hold so a tampered file is caught.

        RULES:
        - Returns False (and changes nothing) if the user is not admissible
        """
        if not self.can_admit(user):
            return False
        self._entries.append(user)
        return True

    def add(self, user: UserID) -> AddOutcome:
        """Put a user at the back of the line if the admission rule allows.

        RULES:
        - NOT_ADMITTED leaves the line and the snapshot untouched
        - A snapshot failure yields ADDED_BUT_PERSIST_FAILED; the entry stays
        """
        if not self.replay(user):
            logger.debug("Rejected %s: already at the tail of %d", user, len(self))
            return AddOutcome(status=AddStatus.NOT_ADMITTED)

        position = len(self._entries) - 1
        logger.debug("Added %s at position %d", user, position)

        error = self._persist()
        if error is not None:
            return AddOutcome(
                status=AddStatus.ADDED_BUT_PERSIST_FAILED,
                position=position,
                error=error,
            )
        return AddOutcome(status=AddStatus.ADDED, position=position)

    # -----------------------------------------------------------------------
    # Removal
    # -----------------------------------------------------------------------

    def remove_first(self) -> Optional[UserID]:
        """Pop the head of the line, or return None if nobody is waiting.

        RULES:
        - An empty line is not written to the snapshot
        - A failed write is logged and reflected in backup_in_sync
        """
        if not self._entries:
            return None
        user = self._entries.popleft()
        logger.debug("Removed %s from the front", user)
        self._persist()
        return user

    def remove(self, user: UserID) -> RemoveOutcome:
        """Remove the user's earliest entry, wherever it is in the line.

        WHY: A user holding several tickets finishes or withdraws them one
        at a time, oldest first.

        HOW: Linear scan for the first match, then delete it from the
        deque so later entries move forward by one.
        """
        try:
            index = self._entries.index(user)
        except ValueError:
            return RemoveOutcome(status=RemoveStatus.NOT_FOUND)

        del self._entries[index]
        logger.debug("Removed %s from position %d", user, index)

        error = self._persist()
        if error is not None:
            return RemoveOutcome(
                status=RemoveStatus.REMOVED_BUT_PERSIST_FAILED,
                previous_index=index,
                error=error,
            )
        return RemoveOutcome(status=RemoveStatus.REMOVED, previous_index=index)

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self) -> str:
        """Numbered listing of the line, one ``"{index}. {name}"`` per entry.

        Returns an empty string for an empty line.
        """
        return "\n".join(
            "{}. {}".format(index, self.directory.display_name(user))
            for index, user in enumerate(self._entries)
        )

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    def _persist(self) -> Optional[OSError]:
        if self.store is None:
            return None
        try:
            self.store.save(self.entries())
        except OSError as exc:
            logger.warning("Queue snapshot write failed, backup is stale: %s", exc)
            self._backup_in_sync = False
            return exc
        self._backup_in_sync = True
        return None
