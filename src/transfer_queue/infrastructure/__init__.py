"""Infrastructure layer public API."""

from transfer_queue.infrastructure.launcher import SubprocessWorkerLauncher
from transfer_queue.infrastructure.liveness import PidLivenessToken, pid_is_running
from transfer_queue.infrastructure.locking import FileLockGate
from transfer_queue.infrastructure.store import JsonFileQueueStore
from transfer_queue.infrastructure.transfers import RcloneOptions, RcloneTransferEngine

__all__ = [
    "FileLockGate",
    "JsonFileQueueStore",
    "PidLivenessToken",
    "RcloneOptions",
    "RcloneTransferEngine",
    "SubprocessWorkerLauncher",
    "pid_is_running",
]
