"""Queue document store implementations."""

from transfer_queue.infrastructure.store.json_queue_store import JsonFileQueueStore

__all__ = ["JsonFileQueueStore"]
