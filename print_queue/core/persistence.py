"""Snapshot file for crash recovery of the printer line.

WHY: The bot keeps the line in memory. If the process restarts (deploy,
crash, host reboot) people would silently lose their place. A small text
snapshot, rewritten after every change and read back at startup, restores
the line.

HOW: The snapshot is UTF-8 text with one line per queue slot:
``"{index}\\t{user_id}\\n"``, index 0-based and contiguous. PersistenceStore
keeps the file open in read/write mode without truncation and overwrites
it in place on every save: blank the old content with spaces, rewind,
write the new body, flush. load_queue() parses the file strictly and
replays the entries through the queue's admission rule.

RULES:
- save() always writes the entire line, never a delta
- Blank (or whitespace-only) lines are ignored on load
- Any format problem raises SnapshotFormatError: bytes that are not
  UTF-8, a bad or duplicate position, a gap, an empty user ID, or an
  entry that breaks the admission rule
- Loading never repairs a file; the caller must refuse to start instead
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Sequence, Union

from print_queue.core.queue import Queue
from print_queue.core.users import UserDirectory, UserID

logger = logging.getLogger(__name__)

_POSITION_RE = re.compile(r"[0-9]+")

PathLike = Union[str, os.PathLike]


class SnapshotFormatError(ValueError):
    """The snapshot file is malformed or violates the admission rule."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        if line_number is not None:
            message = "line {}: {}".format(line_number, message)
        super().__init__(message)
        self.line_number = line_number


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------


def serialize_entries(entries: Sequence[UserID]) -> str:
    return "".join("{}\t{}\n".format(index, user) for index, user in enumerate(entries))


def decode_snapshot(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SnapshotFormatError("snapshot is not valid UTF-8: {}".format(exc)) from exc


def parse_snapshot(text: str) -> List[UserID]:
    """Parse snapshot text into the line's user IDs, head first.

    WHY: The file is the only record of the line across restarts. A
    half-written or hand-edited file must be rejected loudly rather than
    guessed at, otherwise people end up in the wrong order.

    HOW: Each non-blank line is split on its first tab into a position and
    a user ID. Positions are collected in a dict to catch duplicates, then
    checked for contiguity from 0.

    RULES:
    - Position must be a plain non-negative decimal integer
    - Exactly one line per position, positions 0..n-1 with no gaps
    - The user ID must be non-empty and contain no whitespace
    """
    slots: Dict[int, UserID] = {}

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        position_text, sep, user = line.partition("\t")
        if not sep:
            raise SnapshotFormatError(
                "expected '<position><TAB><user>', got {!r}".format(line),
                line_number,
            )

        position_text = position_text.strip()
        if not _POSITION_RE.fullmatch(position_text):
            raise SnapshotFormatError(
                "position {!r} is not a non-negative integer".format(position_text),
                line_number,
            )
        position = int(position_text)

        user = user.strip()
        if not user or any(ch.isspace() for ch in user):
            raise SnapshotFormatError(
                "invalid user ID {!r}".format(user),
                line_number,
            )

        if position in slots:
            raise SnapshotFormatError(
                "duplicate position {}".format(position),
                line_number,
            )
        slots[position] = user

    for expected in range(len(slots)):
        if expected not in slots:
            raise SnapshotFormatError(
                "missing position {} (positions must run from 0 to {})".format(
                    expected, len(slots) - 1
                )
            )

    return [slots[index] for index in range(len(slots))]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class PersistenceStore:
    """In-place overwriting writer for the snapshot file.

    WHY: The file stays open for the life of the process, opened for
    read/write without truncation so it can also be re-read. Because the
    mode does not truncate, a shorter snapshot written over a longer one
    would leave stale bytes behind; blanking the old content first
    prevents that.

    HOW: The file is created if missing. save() measures the current
    length, overwrites it with spaces, rewinds and writes the new body.

    RULES:
    - Not thread-safe; callers hold the queue lock
    - OSError from any step propagates to the caller
    """

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT, 0o644)
        self._file: BinaryIO = os.fdopen(fd, "r+b")

    def save(self, entries: Sequence[UserID]) -> None:
        self._overwrite(serialize_entries(entries).encode("utf-8"))

    def clear(self) -> None:
        """Blank the snapshot so the next load yields an empty line."""
        self._overwrite(b"")

    def read_bytes(self) -> bytes:
        self._file.seek(0)
        return self._file.read()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "PersistenceStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _overwrite(self, body: bytes) -> None:
        length = self._file.seek(0, os.SEEK_END)
        self._file.seek(0)
        self._file.write(b" " * length)
        self._file.seek(0)
        self._file.write(body)
        self._file.flush()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def queue_from_entries(
    entries: Sequence[UserID],
    directory: Optional[UserDirectory] = None,
) -> Queue:
    """Rebuild a Queue by replaying entries through the admission rule."""
    queue = Queue(directory=directory)
    for index, user in enumerate(entries):
        if not queue.replay(user):
            raise SnapshotFormatError(
                "entry {} ({}) follows itself in a line of {} or more".format(
                    index, user, len(queue)
                )
            )
    return queue


def load_queue(
    path: PathLike,
    directory: Optional[UserDirectory] = None,
) -> Queue:
    """Read a snapshot file and return the queue it describes.

    RULES:
    - Raises FileNotFoundError if the file does not exist
    - Raises SnapshotFormatError for any format or rule violation
    - The returned queue has no store attached
    """
    path = Path(path)
    return _queue_from_bytes(path.read_bytes(), path, directory)


def _queue_from_bytes(
    data: bytes,
    path: Path,
    directory: Optional[UserDirectory],
) -> Queue:
    try:
        entries = parse_snapshot(decode_snapshot(data))
        queue = queue_from_entries(entries, directory=directory)
    except SnapshotFormatError as exc:
        raise SnapshotFormatError("{}: {}".format(path, exc)) from exc
    logger.info("Loaded %d queue entries from %s", len(queue), path)
    return queue


def open_queue(
    path: PathLike,
    directory: Optional[UserDirectory] = None,
) -> Queue:
    """Load the snapshot if present and attach a store for future writes.

    WHY: Startup wants "resume where we left off" semantics. A missing
    file just means the bot has never run with persistence before.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No snapshot at %s, starting with an empty queue", path)

    store = PersistenceStore(path)
    try:
        queue = _queue_from_bytes(store.read_bytes(), path, directory)
    except SnapshotFormatError:
        store.close()
        raise
    queue.store = store
    return queue
