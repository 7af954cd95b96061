from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class ProcessLock:
    path: Path
    pid: int

    def release(self) -> None:
        try:
            if self.path.read_text(encoding="utf-8").strip() != str(self.pid):
                return
        except OSError:
            return
        self.path.unlink(missing_ok=True)


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _read_pid(path: Path) -> Optional[int]:
    try:
        return int(path.read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


def acquire_process_lock(path: Path) -> Optional[ProcessLock]:
    """Take an exclusive pid lock file, reclaiming it from dead owners.

    Returns None while another live process holds the lock.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    pid = os.getpid()
    for _ in range(2):
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            owner = _read_pid(path)
            if owner is not None and _pid_alive(owner):
                return None
            path.unlink(missing_ok=True)
            continue
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(f"{pid}\n")
        return ProcessLock(path=path, pid=pid)
    return None
