from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import MailboxIOError
from .logging_io import EventLogger
from .message import MessageKind, raw_name_from_filename


@dataclass(frozen=True)
class QueueEntry:
    path: Path
    kind: MessageKind
    name: Optional[str] = None

    @classmethod
    def classify(cls, path: Path) -> Optional["QueueEntry"]:
        """Build an entry from a mailbox filename, or return None if the protocol ignores it."""
        filename = path.name
        if not filename.isascii():
            return None
        kind = MessageKind.from_filename(filename)
        if kind is None:
            return None
        name = raw_name_from_filename(filename) if kind is MessageKind.RAW else None
        return cls(path=path, kind=kind, name=name)


class MailboxScanner:
    """Lists the mailbox directory and keeps a snapshot of the pending entries.

    The snapshot is only refilled once it is empty; a refill replaces it entirely
    and keeps the order the directory listing returned.
    """

    def __init__(self, mailbox_path: Path, event_logger: EventLogger | None = None):
        self._mailbox_path = Path(mailbox_path)
        self._event_logger = event_logger
        self._backlog: List[QueueEntry] = []

    @property
    def mailbox_path(self) -> Path:
        return self._mailbox_path

    @property
    def backlog(self) -> List[QueueEntry]:
        return list(self._backlog)

    @property
    def current(self) -> Optional[QueueEntry]:
        return self._backlog[0] if self._backlog else None

    def has_pending(self) -> bool:
        if self._backlog:
            return True
        self._backlog = self._scan()
        if self._event_logger and self._backlog:
            self._event_logger.emit("mailbox_scan", {"backlog": len(self._backlog)})
        return bool(self._backlog)

    def pop_current(self) -> QueueEntry:
        return self._backlog.pop(0)

    def _scan(self) -> List[QueueEntry]:
        entries: List[QueueEntry] = []
        try:
            with os.scandir(self._mailbox_path) as listing:
                for item in listing:
                    if not item.is_file(follow_symlinks=False):
                        continue
                    entry = QueueEntry.classify(Path(item.path))
                    if entry is not None:
                        entries.append(entry)
        except OSError as exc:
            raise MailboxIOError(f"Failed to list mailbox {self._mailbox_path}: {exc}") from exc
        return entries
