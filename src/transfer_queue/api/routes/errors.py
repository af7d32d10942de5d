"""Mapping of queue errors onto HTTP responses."""

from typing import NoReturn

from fastapi import HTTPException

from transfer_queue.domain.errors import QueueStoreUnavailableError, QueueValidationError


def raise_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, HTTPException):
        raise exc
    if isinstance(exc, QueueValidationError):
        raise HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, QueueStoreUnavailableError):
        raise HTTPException(status_code=503, detail=str(exc))
    raise HTTPException(status_code=500, detail="Unexpected transfer queue error")


__all__ = ["raise_http_exception"]
