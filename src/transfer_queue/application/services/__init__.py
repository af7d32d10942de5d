"""Application services public API."""

from transfer_queue.application.services.management_service import QueueManagementService
from transfer_queue.application.services.queue_service import (
    DEFAULT_MAX_RETRIES,
    TransferQueueService,
)
from transfer_queue.application.services.transfer_worker import (
    TransferWorker,
    WorkerExitCode,
    WorkerState,
)
from transfer_queue.application.services.worker_supervisor import WorkerSupervisor

__all__ = [
    "DEFAULT_MAX_RETRIES",
    "QueueManagementService",
    "TransferQueueService",
    "TransferWorker",
    "WorkerExitCode",
    "WorkerState",
    "WorkerSupervisor",
]
