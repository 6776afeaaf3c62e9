"""Process-wide advisory lock around apply/install/uninstall."""

from __future__ import annotations

import fcntl
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from mdnsbridge.exceptions import LockError


@contextmanager
def operation_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive, non-blocking ``flock`` on ``path`` for the block.

    A second invocation fails fast with :class:`LockError` instead of
    interleaving partial state. The lock is released on every exit path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise LockError(f"Another mdns-bridge operation is running (lock {path})") from e
        logger.debug(f"Acquired lock {path}")
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)
