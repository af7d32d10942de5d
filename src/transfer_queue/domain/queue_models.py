"""Request/response models for the queue management API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from transfer_queue.domain.jobs import Job, QueueCounts

RECENTLY_COMPLETED_LIMIT = 5


class ManagementModel(BaseModel):
    """Base model for management routes."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class JobResponse(ManagementModel):
    """One job as shown by management endpoints."""

    id: str
    source: str
    destination: str
    display_name: str = Field(alias="displayName")
    size_bytes: int = Field(alias="sizeBytes")
    retries: int
    enqueued_at: datetime = Field(alias="enqueuedAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    failed_at: datetime | None = Field(default=None, alias="failedAt")

    @classmethod
    def from_job(cls, job: Job) -> JobResponse:
        """Map a stored job record."""

        return cls(
            id=job.id,
            source=job.source,
            destination=job.destination,
            display_name=job.display_name,
            size_bytes=job.size_bytes,
            retries=job.retries,
            enqueued_at=job.enqueued_at,
            completed_at=job.completed_at,
            failed_at=job.failed_at,
        )


class QueueCountsResponse(ManagementModel):
    """Bucket sizes."""

    pending: int
    in_flight: int = Field(alias="inFlight")
    completed: int
    failed: int

    @classmethod
    def from_counts(cls, counts: QueueCounts) -> QueueCountsResponse:
        return cls(
            pending=counts.pending,
            in_flight=counts.in_flight,
            completed=counts.completed,
            failed=counts.failed,
        )


class WorkerStatusResponse(ManagementModel):
    """Worker liveness as seen through the liveness token."""

    alive: bool
    pid: int | None = None


class QueueStatusResponse(ManagementModel):
    """Full queue status payload."""

    paused: bool
    worker: WorkerStatusResponse
    counts: QueueCountsResponse
    in_flight: list[JobResponse] = Field(alias="inFlight")
    pending: list[JobResponse]
    failed: list[JobResponse]
    recently_completed: list[JobResponse] = Field(alias="recentlyCompleted")


class EnqueueJobRequest(ManagementModel):
    """Payload for adding one job to the tail of the queue."""

    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    display_name: str | None = Field(default=None, alias="displayName")
    size_bytes: int = Field(default=0, ge=0, alias="sizeBytes")
    start_worker: bool = Field(default=True, alias="startWorker")


class OperationResponse(ManagementModel):
    """Result of a bulk queue operation."""

    status: str = "ok"
    affected: int | None = None


__all__ = [
    "EnqueueJobRequest",
    "JobResponse",
    "OperationResponse",
    "QueueCountsResponse",
    "QueueStatusResponse",
    "RECENTLY_COMPLETED_LIMIT",
    "WorkerStatusResponse",
]
