"""Producer use cases exposed to the management API."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from transfer_queue.application.services.queue_service import TransferQueueService
from transfer_queue.application.services.worker_supervisor import WorkerSupervisor
from transfer_queue.domain.queue_models import (
    RECENTLY_COMPLETED_LIMIT,
    EnqueueJobRequest,
    JobResponse,
    OperationResponse,
    QueueCountsResponse,
    QueueStatusResponse,
    WorkerStatusResponse,
)

logger = logging.getLogger(__name__)


class QueueManagementService:
    """Combines queue operations with worker supervision.

    Operations that add runnable work start the worker unless the queue is
    paused or auto-start is disabled.
    """

    def __init__(
        self,
        queue: TransferQueueService,
        supervisor: WorkerSupervisor,
        auto_start_worker: bool = True,
    ) -> None:
        self._queue = queue
        self._supervisor = supervisor
        self._auto_start_worker = auto_start_worker

    @property
    def queue(self) -> TransferQueueService:
        return self._queue

    @property
    def supervisor(self) -> WorkerSupervisor:
        return self._supervisor

    def status(self) -> QueueStatusResponse:
        """Return counts, flags, and bucket contents."""

        document = self._queue.snapshot()
        return QueueStatusResponse(
            paused=document.paused,
            worker=self.worker_status(),
            counts=QueueCountsResponse.from_counts(document.counts()),
            in_flight=[JobResponse.from_job(job) for job in document.in_flight],
            pending=[JobResponse.from_job(job) for job in document.pending],
            failed=[JobResponse.from_job(job) for job in document.failed],
            recently_completed=[
                JobResponse.from_job(job)
                for job in document.completed[-RECENTLY_COMPLETED_LIMIT:]
            ],
        )

    def worker_status(self) -> WorkerStatusResponse:
        pid = self._supervisor.worker_pid()
        return WorkerStatusResponse(alive=pid is not None, pid=pid)

    def enqueue(self, request: EnqueueJobRequest) -> JobResponse:
        display_name = request.display_name or PurePosixPath(request.source).name or request.source
        job = self._queue.enqueue(
            source=request.source,
            destination=request.destination,
            display_name=display_name,
            size_bytes=request.size_bytes,
        )
        if request.start_worker:
            self._start_worker_unless_paused()
        return JobResponse.from_job(job)

    def remove_pending(self, index: int) -> JobResponse | None:
        removed = self._queue.remove_pending(index)
        return None if removed is None else JobResponse.from_job(removed)

    def clear_pending(self) -> OperationResponse:
        return OperationResponse(affected=self._queue.clear_pending())

    def clear_completed(self) -> OperationResponse:
        return OperationResponse(affected=self._queue.clear_completed())

    def clear_failed(self) -> OperationResponse:
        return OperationResponse(affected=self._queue.clear_failed())

    def retry_all_failed(self) -> OperationResponse:
        revived = self._queue.retry_all_failed()
        self._start_worker_unless_paused()
        return OperationResponse(affected=revived)

    def pause(self) -> OperationResponse:
        self._queue.set_paused(True)
        return OperationResponse()

    def resume(self) -> OperationResponse:
        self._queue.set_paused(False)
        self._start_worker()
        return OperationResponse()

    def start_worker(self) -> WorkerStatusResponse:
        self._supervisor.start_worker_if_not_running()
        return self.worker_status()

    def stop_worker(self) -> WorkerStatusResponse:
        self._supervisor.stop_worker()
        return self.worker_status()

    def requeue_in_flight(self) -> OperationResponse:
        """Kill running transfers and put them back at the head of the queue."""

        self._supervisor.stop_worker()
        requeued = self._queue.recover_crashed()
        self._start_worker_unless_paused()
        return OperationResponse(affected=requeued)

    def discard_in_flight(self) -> OperationResponse:
        """Kill running transfers and drop them from the queue."""

        self._supervisor.stop_worker()
        dropped = self._queue.discard_in_flight()
        logger.warning("Discarded %s in-flight transfer(s).", dropped)
        self._start_worker_unless_paused()
        return OperationResponse(affected=dropped)

    def abort_all(self) -> OperationResponse:
        """Stop the worker, requeue running transfers, and pause the queue."""

        self._supervisor.stop_worker()
        requeued = self._queue.requeue_in_flight_and_pause()
        logger.warning("All transfers aborted; %s requeued and queue paused.", requeued)
        return OperationResponse(affected=requeued)

    def _start_worker_unless_paused(self) -> None:
        if self._queue.query_paused_state():
            return
        self._start_worker()

    def _start_worker(self) -> None:
        if not self._auto_start_worker:
            return
        self._supervisor.start_worker_if_not_running()


__all__ = ["QueueManagementService"]
