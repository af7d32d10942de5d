"""Health check routes."""

from fastapi import APIRouter, Depends, Response

from transfer_queue.api.dependencies import get_management_service
from transfer_queue.application.services import QueueManagementService
from transfer_queue.domain.errors import QueueStoreUnavailableError

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz(
    response: Response,
    service: QueueManagementService = Depends(get_management_service),
) -> dict[str, str]:
    """Liveness probe that also checks the queue document can be read."""

    try:
        service.queue.snapshot()
    except QueueStoreUnavailableError:
        response.status_code = 503
        return {"status": "degraded", "queue": "unavailable"}
    return {"status": "ok", "queue": "ok"}


__all__ = ["router"]
