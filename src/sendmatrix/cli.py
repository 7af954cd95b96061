from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer

from .config import ServerConfig, default_ipc_path, positive_float
from .errors import MailboxError, PayloadEncodingError
from .message import MessageKind
from .publisher import publish_file, publish_text

app = typer.Typer(add_completion=False)

STDIN_PAYLOAD = "-"


def _read_stdin() -> bytes:
    data = sys.stdin.buffer.read()
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PayloadEncodingError(f"stdin is not valid UTF-8: {exc}") from exc
    return data


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"!> {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def send(
    ipc_path: Optional[str] = typer.Option(None, "--ipc-path", help="Mailbox directory (default: $IPC_PATH)"),
    kind_name: str = typer.Option("plaintext", "--type", help="plaintext, text, markdown or raw"),
    payload: str = typer.Option(STDIN_PAYLOAD, "--payload", help="Message text, '-' for stdin, or a file for raw"),
) -> None:
    """Publish one message into the mailbox."""
    mailbox = ipc_path or default_ipc_path()
    try:
        kind = MessageKind.parse(kind_name)
        if kind is MessageKind.RAW:
            publish_file(mailbox, payload)
        else:
            data = _read_stdin() if payload == STDIN_PAYLOAD else payload
            publish_text(mailbox, kind, data)
    except MailboxError as exc:
        _fail(exc)


@app.command()
def serve(
    ipc_path: Optional[str] = typer.Option(None, "--ipc-path", help="Mailbox directory (default: $IPC_PATH)"),
    matrix_path: Optional[str] = typer.Option(None, "--matrix-path", help="matrix-commander binary"),
    poll_interval: Optional[float] = typer.Option(None, "--poll-interval", help="Seconds between mailbox scans"),
    log_path: Optional[Path] = typer.Option(None, "--log-file", help="Also write the server log here"),
    lock_path: Optional[Path] = typer.Option(None, "--lock-file", help="Refuse to start if this lock is held"),
) -> None:
    """Deliver mailbox messages through matrix-commander until interrupted."""
    from services.matrix_commander import DeliveryError

    from .server import run_server

    try:
        config = ServerConfig.from_env()
        if ipc_path:
            config.ipc_path = ipc_path
        if matrix_path:
            config.matrix_path = matrix_path
        if poll_interval is not None:
            config.poll_interval_s = positive_float("--poll-interval", poll_interval)
        if log_path:
            config.log_path = log_path
        if lock_path:
            config.lock_path = lock_path
        run_server(config)
    except (MailboxError, DeliveryError) as exc:
        _fail(exc)


if __name__ == "__main__":
    app()
