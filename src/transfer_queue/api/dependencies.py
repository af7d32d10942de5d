"""Dependency providers for FastAPI routes."""

from functools import lru_cache

from transfer_queue.application.services import QueueManagementService
from transfer_queue.bootstrap import build_management_service
from transfer_queue.config import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return singleton settings."""

    return Settings()


@lru_cache(maxsize=1)
def get_management_service() -> QueueManagementService:
    """Return singleton service graph."""

    return build_management_service(get_settings())


__all__ = ["get_management_service", "get_settings"]
