"""Advisory file lock serializing queue document mutations."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from transfer_queue.domain.ports import ExclusiveGate

logger = logging.getLogger(__name__)


def _lock(handle: IO[str]) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        # LK_LOCK retries for ~10s before raising; loop to keep blocking semantics.
        while True:
            try:
                msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
                return
            except OSError:
                continue
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)


def _unlock(handle: IO[str]) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


class FileLockGate(ExclusiveGate):
    """Exclusive hold on a dedicated lock file.

    Every acquisition opens its own file description, so threads of one process
    contend with each other the same way separate processes do. The operating
    system drops the lock if the holder dies.
    """

    def __init__(self, lock_path: Path) -> None:
        self._lock_path = lock_path

    @property
    def lock_path(self) -> Path:
        """Return the lock resource location."""

        return self._lock_path

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Block until the lock is held, run the body, always release."""

        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock_path.open("a+", encoding="utf-8") as handle:
            _lock(handle)
            try:
                yield
            finally:
                try:
                    _unlock(handle)
                except OSError:
                    # Closing the handle below releases the lock as well.
                    logger.warning("Failed to unlock '%s' explicitly.", self._lock_path)


__all__ = ["FileLockGate"]
