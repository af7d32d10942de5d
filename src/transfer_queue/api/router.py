"""Top-level API router composition."""

from fastapi import APIRouter

from transfer_queue.api.routes import health_router, queue_router, worker_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(queue_router)
api_router.include_router(worker_router)

__all__ = ["api_router"]
