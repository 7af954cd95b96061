"""Deliver mailbox messages through the external ``matrix-commander`` program."""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import Callable, Optional, Sequence

from loguru import logger

from sendmatrix.message import MarkdownMessage, Message, PlaintextMessage, RawMessage

RunFn = Callable[..., subprocess.CompletedProcess]


class DeliveryError(RuntimeError):
    pass


def message_arguments(message: Message) -> list[str]:
    if isinstance(message, PlaintextMessage):
        return ["--message", "-"]
    if isinstance(message, MarkdownMessage):
        return ["--message", "-", "--markdown"]
    if isinstance(message, RawMessage):
        return ["--file", "-", "--file-name", message.name]
    raise TypeError(f"Unsupported message type: {type(message).__name__}")


class MatrixCommander:
    """Thin wrapper that pipes a message into one ``matrix-commander`` invocation.

    The program posts to its configured default room unless ``room`` is given.
    """

    def __init__(self, binary: str, *, room: Optional[str] = None, run: RunFn = subprocess.run):
        self._binary = binary
        self._room = room
        self._run = run

    @property
    def binary(self) -> str:
        return self._binary

    @staticmethod
    def ensure_supported(binary: str) -> None:
        if os.path.sep in binary:
            if not os.access(binary, os.X_OK):
                raise DeliveryError(f"matrix-commander binary is not executable: {binary}")
        elif shutil.which(binary) is None:
            raise DeliveryError(f"matrix-commander binary `{binary}` not found on PATH.")

    def whoami(self) -> str:
        return self._invoke(["--whoami"], b"").strip()

    def send(self, message: Message) -> None:
        args = message_arguments(message)
        if self._room:
            args += ["--room", self._room]
        logger.debug(f"{self}: sending {message.kind.name.lower()} ({len(message.payload)} bytes)")
        self._invoke(args, message.payload)

    def _invoke(self, args: Sequence[str], data: bytes) -> str:
        command = [self._binary, *args]
        try:
            result = self._run(command, input=data, stdout=subprocess.PIPE, stderr=None, check=False)
        except OSError as exc:
            raise DeliveryError(f"Failed to start {self._binary}: {exc}") from exc
        if result.returncode != 0:
            raise DeliveryError(f"{self._binary} exited with status {result.returncode}")
        try:
            return (result.stdout or b"").decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DeliveryError(f"{self._binary} printed non-UTF-8 output") from exc

    def __str__(self) -> str:
        return f"MatrixCommander({self._binary})"
