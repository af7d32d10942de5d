"""Ports for persistence, locking, liveness, and transfer execution."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from transfer_queue.domain.jobs import QueueDocument


class QueueStore(Protocol):
    """Durable storage of the single queue document."""

    def load(self) -> QueueDocument:
        """Return the stored document or raise ``QueueStoreUnavailableError``."""

    def load_or_initialize(self) -> QueueDocument:
        """Return the stored document, or an empty one if nothing is stored yet."""

    def save(self, document: QueueDocument) -> None:
        """Replace the stored document atomically."""

    def exists(self) -> bool:
        """Return whether a document has been stored."""


class ExclusiveGate(Protocol):
    """Cross-process mutual exclusion around queue document mutations."""

    def exclusive(self) -> AbstractContextManager[None]:
        """Block until the exclusive hold is acquired; release on exit."""


class LivenessToken(Protocol):
    """Process-identity record proving a worker is alive."""

    def acquire(self) -> None:
        """Claim the token for this process or raise ``WorkerAlreadyRunningError``."""

    def release(self) -> None:
        """Drop the token if this process still owns it."""

    def read_pid(self) -> int | None:
        """Return the recorded process id, if any."""

    def is_alive(self) -> bool:
        """Return whether the recorded process currently exists."""

    def clear_stale(self) -> bool:
        """Remove a token whose process is gone; return whether one was removed."""


class TransferEngine(Protocol):
    """External byte-transfer collaborator."""

    async def transfer(self, source: str, destination: str, stream_count: int) -> None:
        """Copy ``source`` to ``destination``; raise ``TransferFailedError`` on failure."""


class WorkerLauncher(Protocol):
    """Starts a detached worker process."""

    def launch(self) -> int:
        """Spawn the worker and return its process id."""


__all__ = [
    "ExclusiveGate",
    "LivenessToken",
    "QueueStore",
    "TransferEngine",
    "WorkerLauncher",
]
