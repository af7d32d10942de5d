"""Route modules public API."""

from transfer_queue.api.routes.health import router as health_router
from transfer_queue.api.routes.queue import router as queue_router
from transfer_queue.api.routes.worker import router as worker_router

__all__ = ["health_router", "queue_router", "worker_router"]
