"""Background worker control routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from transfer_queue.api.dependencies import get_management_service
from transfer_queue.api.routes.errors import raise_http_exception
from transfer_queue.application.services import QueueManagementService
from transfer_queue.domain.queue_models import WorkerStatusResponse

router = APIRouter(prefix="/worker", tags=["transfer worker"])


@router.get("", response_model=WorkerStatusResponse, status_code=200)
def get_worker_status(
    service: QueueManagementService = Depends(get_management_service),
) -> WorkerStatusResponse:
    try:
        return service.worker_status()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/start", response_model=WorkerStatusResponse, status_code=200)
def start_worker(
    service: QueueManagementService = Depends(get_management_service),
) -> WorkerStatusResponse:
    """Launch the worker unless one is already alive."""

    try:
        return service.start_worker()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/stop", response_model=WorkerStatusResponse, status_code=200)
def stop_worker(
    service: QueueManagementService = Depends(get_management_service),
) -> WorkerStatusResponse:
    """Terminate the live worker; its running jobs are recovered on next start."""

    try:
        return service.stop_worker()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


__all__ = ["router"]
