import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from sendmatrix.errors import MailboxIOError
from sendmatrix.message import MessageKind
from sendmatrix.scanner import MailboxScanner, QueueEntry


def _seed_garbage(mailbox: Path) -> None:
    (mailbox / "pending.tmp").write_bytes(b"partial")
    (mailbox / "notes.md").write_bytes(b"not ours")
    (mailbox / "README").write_bytes(b"no extension")
    (mailbox / ".txt").write_bytes(b"dotfile")
    (mailbox / "grüße.txt").write_bytes(b"non-ascii")
    (mailbox / "folder.txt").mkdir()
    target = mailbox.parent / "outside.txt"
    target.write_bytes(b"outside")
    os.symlink(target, mailbox / "link.txt")


def test_scanner_ignores_unrecognized_members(tmp_path: Path) -> None:
    mailbox = tmp_path / "mailbox"
    mailbox.mkdir()
    _seed_garbage(mailbox)
    scanner = MailboxScanner(mailbox)

    assert scanner.has_pending() is False
    assert scanner.backlog == []
    assert scanner.current is None


def test_scanner_classifies_entries(tmp_path: Path) -> None:
    (tmp_path / "A.txt").write_bytes(b"a")
    (tmp_path / "B.MARKDOWN").write_bytes(b"b")
    (tmp_path / "photo.jpg.Raw").write_bytes(b"c")
    scanner = MailboxScanner(tmp_path)

    assert scanner.has_pending() is True
    entries = {entry.path.name: entry for entry in scanner.backlog}
    assert set(entries) == {"A.txt", "B.MARKDOWN", "photo.jpg.Raw"}
    assert entries["A.txt"].kind is MessageKind.PLAINTEXT
    assert entries["B.MARKDOWN"].kind is MessageKind.MARKDOWN
    assert entries["photo.jpg.Raw"] == QueueEntry(
        path=tmp_path / "photo.jpg.Raw", kind=MessageKind.RAW, name="photo.jpg"
    )


def test_scanner_keeps_snapshot_until_empty(tmp_path: Path) -> None:
    (tmp_path / "first.txt").write_bytes(b"1")
    scanner = MailboxScanner(tmp_path)
    assert scanner.has_pending() is True

    (tmp_path / "second.txt").write_bytes(b"2")
    (tmp_path / "first.txt").unlink()
    assert scanner.has_pending() is True
    assert [entry.path.name for entry in scanner.backlog] == ["first.txt"]

    scanner.pop_current()
    assert scanner.has_pending() is True
    assert [entry.path.name for entry in scanner.backlog] == ["second.txt"]


def test_scanner_refill_reflects_current_state(tmp_path: Path) -> None:
    scanner = MailboxScanner(tmp_path)
    assert scanner.has_pending() is False

    (tmp_path / "late.txt").write_bytes(b"late")
    assert scanner.has_pending() is True
    assert scanner.current is not None
    assert scanner.current.path == tmp_path / "late.txt"


def test_scanner_missing_mailbox(tmp_path: Path) -> None:
    scanner = MailboxScanner(tmp_path / "missing")
    with pytest.raises(MailboxIOError):
        scanner.has_pending()
