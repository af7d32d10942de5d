"""HTTP management surface."""

from transfer_queue.api.router import api_router

__all__ = ["api_router"]
