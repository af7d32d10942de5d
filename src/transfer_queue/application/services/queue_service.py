"""Job lifecycle transitions over the persisted queue document."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TypeVar

from transfer_queue.domain.errors import QueueValidationError
from transfer_queue.domain.jobs import Job, QueueCounts, QueueDocument
from transfer_queue.domain.ports import ExclusiveGate, QueueStore

DEFAULT_MAX_RETRIES = 3

T = TypeVar("T")

logger = logging.getLogger(__name__)


class TransferQueueService:
    """Gate-protected load -> transform -> save operations on the queue.

    Each public method is one critical section. Transforms that raise leave the
    stored document untouched, and transforms that change nothing skip the save.
    Methods must not call each other while holding the gate.
    """

    def __init__(
        self,
        store: QueueStore,
        gate: ExclusiveGate,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._store = store
        self._gate = gate
        self._max_retries = max(1, max_retries)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def initialize(self) -> None:
        """Create the empty document on first use."""

        with self._gate.exclusive():
            if not self._store.exists():
                self._store.save(QueueDocument())

    def enqueue(
        self,
        source: str,
        destination: str,
        display_name: str,
        size_bytes: int,
    ) -> Job:
        """Append a new job to the tail of ``pending``."""

        if not source.strip():
            raise QueueValidationError("source must not be empty.")
        if not destination.strip():
            raise QueueValidationError("destination must not be empty.")
        if size_bytes < 0:
            raise QueueValidationError(f"size_bytes must be >= 0, got {size_bytes}.")

        job = Job(
            source=source,
            destination=destination,
            display_name=display_name,
            size_bytes=size_bytes,
        )

        def transform(document: QueueDocument) -> Job:
            document.pending.append(job)
            return job

        queued = self._transact(transform)
        logger.info("Queued job '%s' (%s, %s bytes).", job.id, display_name, size_bytes)
        return queued

    def claim_batch(self, n: int) -> list[Job]:
        """Remove and return up to ``n`` jobs from the head of ``pending``."""

        if n <= 0:
            return []

        def transform(document: QueueDocument) -> list[Job]:
            batch = document.pending[:n]
            del document.pending[:n]
            return batch

        return self._transact(transform)

    def mark_in_flight(self, batch: Iterable[Job]) -> None:
        """Record claimed jobs in ``in_flight``; ids already there are skipped."""

        jobs = list(batch)
        if not jobs:
            return

        def transform(document: QueueDocument) -> None:
            _append_in_flight(document, jobs)

        self._transact(transform)

    def claim_for_dispatch(self, n: int) -> list[Job]:
        """Claim up to ``n`` pending jobs and record them in flight in one step."""

        if n <= 0:
            return []

        def transform(document: QueueDocument) -> list[Job]:
            batch = document.pending[:n]
            del document.pending[:n]
            _append_in_flight(document, batch)
            return batch

        return self._transact(transform)

    def complete(self, job: Job) -> Job | None:
        """Move ``job`` from ``in_flight`` to ``completed``."""

        def transform(document: QueueDocument) -> Job | None:
            current = document.take_in_flight(job.id)
            if current is None:
                return None
            done = current.model_copy(update={"completed_at": datetime.now(tz=UTC)})
            document.completed.append(done)
            return done

        done = self._transact(transform)
        if done is None:
            logger.info("Job '%s' is not in flight; complete is a no-op.", job.id)
            return None
        logger.info("Completed: %s", done.display_name)
        return done

    def fail_or_retry(self, job: Job) -> Job | None:
        """Requeue ``job`` at the tail of ``pending`` or move it to ``failed``.

        The retry counter of the stored in-flight record is authoritative.
        """

        max_retries = self._max_retries

        def transform(document: QueueDocument) -> Job | None:
            current = document.take_in_flight(job.id)
            if current is None:
                return None
            retries = current.retries + 1
            if retries < max_retries:
                retried = current.model_copy(update={"retries": retries})
                document.pending.append(retried)
                return retried
            failed = current.model_copy(
                update={"retries": retries, "failed_at": datetime.now(tz=UTC)}
            )
            document.failed.append(failed)
            return failed

        updated = self._transact(transform)
        if updated is None:
            logger.info("Job '%s' is not in flight; fail_or_retry is a no-op.", job.id)
            return None
        if updated.failed_at is None:
            logger.info(
                "Retry %s/%s queued for %s.",
                updated.retries,
                max_retries,
                updated.display_name,
            )
        else:
            logger.error("Max retries reached, moved to failed: %s", updated.display_name)
        return updated

    def release_in_flight(self, job_ids: Iterable[str]) -> int:
        """Drop leftover ``in_flight`` entries for ``job_ids``; return how many."""

        ids = set(job_ids)
        if not ids:
            return 0

        def transform(document: QueueDocument) -> int:
            before = len(document.in_flight)
            document.in_flight = [job for job in document.in_flight if job.id not in ids]
            return before - len(document.in_flight)

        return self._transact(transform)

    def recover_crashed(self) -> int:
        """Move every in-flight job to the head of ``pending``."""

        def transform(document: QueueDocument) -> int:
            recovered = document.in_flight
            document.pending = [*recovered, *document.pending]
            document.in_flight = []
            return len(recovered)

        recovered = self._transact(transform)
        if recovered:
            logger.info("Recovered %s stuck transfer(s) to the head of the queue.", recovered)
        return recovered

    def discard_in_flight(self) -> int:
        """Drop every in-flight job without requeueing it."""

        def transform(document: QueueDocument) -> int:
            dropped = len(document.in_flight)
            document.in_flight = []
            return dropped

        return self._transact(transform)

    def requeue_in_flight_and_pause(self) -> int:
        """Move in-flight jobs to the head of ``pending`` and pause the queue."""

        def transform(document: QueueDocument) -> int:
            recovered = document.in_flight
            document.pending = [*recovered, *document.pending]
            document.in_flight = []
            document.paused = True
            return len(recovered)

        return self._transact(transform)

    def remove_pending(self, index: int) -> Job | None:
        """Remove the pending job at 0-based ``index``; out of range is a no-op."""

        def transform(document: QueueDocument) -> Job | None:
            if index < 0 or index >= len(document.pending):
                return None
            return document.pending.pop(index)

        removed = self._transact(transform)
        if removed is None:
            logger.info("No pending job at index %s; remove is a no-op.", index)
        return removed

    def clear_pending(self) -> int:
        return self._clear_bucket("pending")

    def clear_completed(self) -> int:
        return self._clear_bucket("completed")

    def clear_failed(self) -> int:
        return self._clear_bucket("failed")

    def retry_all_failed(self) -> int:
        """Move every failed job to the tail of ``pending`` with retries reset."""

        def transform(document: QueueDocument) -> int:
            revived = [
                job.model_copy(update={"retries": 0, "failed_at": None})
                for job in document.failed
            ]
            document.pending.extend(revived)
            document.failed = []
            return len(revived)

        return self._transact(transform)

    def set_paused(self, paused: bool) -> None:
        def transform(document: QueueDocument) -> None:
            document.paused = paused

        self._transact(transform)
        logger.info("Queue %s.", "paused" if paused else "resumed")

    def query_counts(self) -> QueueCounts:
        return self.snapshot().counts()

    def query_paused_state(self) -> bool:
        return self.snapshot().paused

    def snapshot(self) -> QueueDocument:
        """Return a consistent copy of the whole document."""

        with self._gate.exclusive():
            return self._store.load_or_initialize()

    def _clear_bucket(self, bucket: str) -> int:
        def transform(document: QueueDocument) -> int:
            cleared = len(getattr(document, bucket))
            setattr(document, bucket, [])
            return cleared

        return self._transact(transform)

    def _transact(self, transform: Callable[[QueueDocument], T]) -> T:
        """Run ``transform`` as one load -> transform -> save critical section."""

        with self._gate.exclusive():
            document = self._store.load_or_initialize()
            before = document.model_dump()
            result = transform(document)
            if document.model_dump() != before:
                self._store.save(document)
            return result


def _append_in_flight(document: QueueDocument, jobs: Iterable[Job]) -> None:
    known = {job.id for job in document.in_flight}
    for job in jobs:
        if job.id in known:
            continue
        document.in_flight.append(job)
        known.add(job.id)


__all__ = ["DEFAULT_MAX_RETRIES", "TransferQueueService"]
