"""Transfer engine adapters."""

from transfer_queue.infrastructure.transfers.rclone_transfer_engine import (
    RcloneOptions,
    RcloneTransferEngine,
)

__all__ = ["RcloneOptions", "RcloneTransferEngine"]
