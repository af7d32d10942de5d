"""Domain public API."""

from transfer_queue.domain.errors import (
    QueueStoreUnavailableError,
    QueueValidationError,
    TransferFailedError,
    TransferQueueError,
    WorkerAlreadyRunningError,
)
from transfer_queue.domain.jobs import Job, QueueCounts, QueueDocument
from transfer_queue.domain.ports import (
    ExclusiveGate,
    LivenessToken,
    QueueStore,
    TransferEngine,
    WorkerLauncher,
)
from transfer_queue.domain.queue_models import (
    EnqueueJobRequest,
    JobResponse,
    OperationResponse,
    QueueCountsResponse,
    QueueStatusResponse,
    WorkerStatusResponse,
)
from transfer_queue.domain.scheduling import (
    DEFAULT_CONNECTION_CEILING,
    EMPTY_PLAN,
    DispatchPlan,
    plan_dispatch,
)

__all__ = [
    "DEFAULT_CONNECTION_CEILING",
    "DispatchPlan",
    "EMPTY_PLAN",
    "EnqueueJobRequest",
    "ExclusiveGate",
    "Job",
    "JobResponse",
    "LivenessToken",
    "OperationResponse",
    "QueueCounts",
    "QueueCountsResponse",
    "QueueDocument",
    "QueueStatusResponse",
    "QueueStore",
    "QueueStoreUnavailableError",
    "QueueValidationError",
    "TransferEngine",
    "TransferFailedError",
    "TransferQueueError",
    "WorkerAlreadyRunningError",
    "WorkerLauncher",
    "WorkerStatusResponse",
    "plan_dispatch",
]
