"""Queue inspection and editing routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path

from transfer_queue.api.dependencies import get_management_service
from transfer_queue.api.routes.errors import raise_http_exception
from transfer_queue.application.services import QueueManagementService
from transfer_queue.domain.queue_models import (
    EnqueueJobRequest,
    JobResponse,
    OperationResponse,
    QueueStatusResponse,
)

router = APIRouter(prefix="/queue", tags=["transfer queue"])


@router.get("", response_model=QueueStatusResponse, status_code=200)
def get_queue_status(
    service: QueueManagementService = Depends(get_management_service),
) -> QueueStatusResponse:
    """Counts, pause flag, worker liveness, and bucket contents."""

    try:
        return service.status()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/jobs", response_model=JobResponse, status_code=201)
def enqueue_job(
    request: EnqueueJobRequest,
    service: QueueManagementService = Depends(get_management_service),
) -> JobResponse:
    """Append one transfer to the pending tail."""

    try:
        return service.enqueue(request)
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.delete("/pending/{index}", response_model=JobResponse, status_code=200)
def remove_pending_job(
    index: int = Path(..., ge=0),
    service: QueueManagementService = Depends(get_management_service),
) -> JobResponse:
    """Remove the pending job at a zero-based position."""

    try:
        removed = service.remove_pending(index)
        if removed is None:
            raise HTTPException(status_code=404, detail=f"No pending job at position {index}.")
        return removed
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.delete("/pending", response_model=OperationResponse, status_code=200)
def clear_pending(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    try:
        return service.clear_pending()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.delete("/completed", response_model=OperationResponse, status_code=200)
def clear_completed(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    try:
        return service.clear_completed()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.delete("/failed", response_model=OperationResponse, status_code=200)
def clear_failed(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    try:
        return service.clear_failed()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/failed/retry", response_model=OperationResponse, status_code=200)
def retry_failed(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    """Move every failed job back to pending with a fresh retry budget."""

    try:
        return service.retry_all_failed()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/pause", response_model=OperationResponse, status_code=200)
def pause_queue(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    try:
        return service.pause()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/resume", response_model=OperationResponse, status_code=200)
def resume_queue(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    try:
        return service.resume()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/in-flight/requeue", response_model=OperationResponse, status_code=200)
def requeue_in_flight(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    """Stop running transfers and put them back at the head of pending."""

    try:
        return service.requeue_in_flight()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.delete("/in-flight", response_model=OperationResponse, status_code=200)
def discard_in_flight(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    """Stop running transfers and drop them."""

    try:
        return service.discard_in_flight()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


@router.post("/abort", response_model=OperationResponse, status_code=200)
def abort_all(
    service: QueueManagementService = Depends(get_management_service),
) -> OperationResponse:
    """Stop the worker, requeue running transfers, and pause."""

    try:
        return service.abort_all()
    except Exception as exc:  # noqa: BLE001
        raise_http_exception(exc)


__all__ = ["router"]
