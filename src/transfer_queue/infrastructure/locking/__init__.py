"""Cross-process locking."""

from transfer_queue.infrastructure.locking.file_lock_gate import FileLockGate

__all__ = ["FileLockGate"]
