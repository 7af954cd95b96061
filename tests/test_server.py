import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from sendmatrix.config import ServerConfig
from sendmatrix.controller import MailboxController
from sendmatrix.errors import EntryTooLargeError
from sendmatrix.lock import acquire_process_lock
from sendmatrix.message import MessageKind, PlaintextMessage, RawMessage
from sendmatrix.publisher import publish_file, publish_text
from sendmatrix.server import run_server, serve


class RecordingDelivery:
    def __init__(self, fail: bool = False) -> None:
        self.sent = []
        self._fail = fail

    def send(self, message) -> None:
        if self._fail:
            raise RuntimeError("delivery failed")
        self.sent.append(message)


def _no_sleep(_seconds: float) -> None:
    raise AssertionError("unexpected poll wait")


def _config(tmp_path: Path, mailbox: Path, **overrides) -> ServerConfig:
    values = dict(
        ipc_path=str(mailbox),
        matrix_path="matrix-commander-rs",
        matrix_room=None,
        poll_interval_s=0.01,
        log_path=tmp_path / "server.log",
        event_log_path=None,
        lock_path=None,
    )
    values.update(overrides)
    return ServerConfig(**values)


def test_serve_delivers_then_completes(tmp_path: Path) -> None:
    source = tmp_path / "doc.pdf"
    source.write_bytes(b"%PDF")
    mailbox = tmp_path / "mailbox"
    mailbox.mkdir()
    publish_text(mailbox, MessageKind.PLAINTEXT, "hello")
    publish_file(mailbox, source)

    delivery = RecordingDelivery()
    delivered = serve(MailboxController(mailbox, sleep=_no_sleep), delivery, limit=2)

    assert delivered == 2
    assert sorted(delivery.sent, key=repr) == sorted(
        [PlaintextMessage(b"hello"), RawMessage(name="doc.pdf", payload=b"%PDF")], key=repr
    )
    assert list(mailbox.iterdir()) == []


def test_failed_delivery_keeps_entry(tmp_path: Path) -> None:
    final = publish_text(tmp_path, MessageKind.PLAINTEXT, "retry me")
    controller = MailboxController(tmp_path, sleep=_no_sleep)

    with pytest.raises(RuntimeError):
        serve(controller, RecordingDelivery(fail=True), limit=1)
    assert final.exists()
    assert controller.current is not None


def test_serve_stops_on_oversized_head(tmp_path: Path) -> None:
    final = publish_text(tmp_path, MessageKind.MARKDOWN, "#" * 5000)
    delivery = RecordingDelivery()
    with pytest.raises(EntryTooLargeError):
        serve(MailboxController(tmp_path, sleep=_no_sleep), delivery, limit=1)
    assert delivery.sent == []
    assert final.exists()


def test_run_server_logs_backlog(tmp_path: Path) -> None:
    mailbox = tmp_path / "mailbox"
    mailbox.mkdir()
    publish_text(mailbox, MessageKind.PLAINTEXT, "queued")
    config = _config(tmp_path, mailbox, lock_path=tmp_path / "server.lock")
    delivery = RecordingDelivery()

    assert run_server(config, delivery=delivery, limit=1) == 1

    assert delivery.sent == [PlaintextMessage(b"queued")]
    log = (tmp_path / "server.log").read_text(encoding="utf-8")
    assert "IPC backlog: 1" in log
    assert "Delivered plaintext message (6 bytes)" in log
    assert not (tmp_path / "server.lock").exists()


def test_run_server_refuses_second_consumer(tmp_path: Path) -> None:
    mailbox = tmp_path / "mailbox"
    mailbox.mkdir()
    publish_text(mailbox, MessageKind.PLAINTEXT, "untouched")
    lock_path = tmp_path / "server.lock"
    lock = acquire_process_lock(lock_path)
    assert lock is not None
    delivery = RecordingDelivery()
    try:
        assert run_server(_config(tmp_path, mailbox, lock_path=lock_path), delivery=delivery, limit=1) == 0
    finally:
        lock.release()
    assert delivery.sent == []
    assert len(list(mailbox.iterdir())) == 1
