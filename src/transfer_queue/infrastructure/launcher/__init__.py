"""Worker process launchers."""

from transfer_queue.infrastructure.launcher.subprocess_worker_launcher import (
    SubprocessWorkerLauncher,
)

__all__ = ["SubprocessWorkerLauncher"]
