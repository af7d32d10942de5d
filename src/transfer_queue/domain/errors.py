"""Domain exceptions for queue and worker operations."""


class TransferQueueError(Exception):
    """Base class for transfer queue errors."""


class QueueStoreUnavailableError(TransferQueueError):
    """Raised when the queue document cannot be read or parsed."""


class QueueValidationError(TransferQueueError):
    """Raised when producer input is rejected."""


class WorkerAlreadyRunningError(TransferQueueError):
    """Raised when another live worker holds the liveness token."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"A transfer worker is already running with PID {pid}.")
        self.pid = pid


class TransferFailedError(TransferQueueError):
    """Raised when one transfer-engine invocation does not succeed."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


__all__ = [
    "QueueStoreUnavailableError",
    "QueueValidationError",
    "TransferFailedError",
    "TransferQueueError",
    "WorkerAlreadyRunningError",
]
