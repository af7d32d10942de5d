"""Queue document aggregate and job records.

Field aliases keep the on-disk layout written by the earlier shell tool
(``downloading`` bucket, ``remote_path``/``local_path``/``filename`` job keys),
so existing queue files stay loadable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class QueueModel(BaseModel):
    """Base model for persisted queue records."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Job(QueueModel):
    """One queued transfer unit."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    source: str = Field(alias="remote_path")
    destination: str = Field(alias="local_path")
    display_name: str = Field(alias="filename")
    size_bytes: int = Field(default=0, ge=0, alias="size")
    retries: int = Field(default=0, ge=0)
    enqueued_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC),
        alias="added_at",
    )
    completed_at: datetime | None = None
    failed_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class QueueCounts:
    """Bucket sizes of one queue document snapshot."""

    pending: int = 0
    in_flight: int = 0
    completed: int = 0
    failed: int = 0


class QueueDocument(QueueModel):
    """Durable aggregate of every job plus the pause flag."""

    pending: list[Job] = Field(default_factory=list)
    in_flight: list[Job] = Field(default_factory=list, alias="downloading")
    completed: list[Job] = Field(default_factory=list)
    failed: list[Job] = Field(default_factory=list)
    paused: bool = False

    def counts(self) -> QueueCounts:
        """Return bucket sizes."""

        return QueueCounts(
            pending=len(self.pending),
            in_flight=len(self.in_flight),
            completed=len(self.completed),
            failed=len(self.failed),
        )

    def take_in_flight(self, job_id: str) -> Job | None:
        """Remove and return the in-flight record for ``job_id``, if any."""

        for index, job in enumerate(self.in_flight):
            if job.id == job_id:
                return self.in_flight.pop(index)
        return None

    def job_ids(self) -> list[str]:
        """Return ids across all buckets, duplicates included."""

        return [
            job.id
            for bucket in (self.pending, self.in_flight, self.completed, self.failed)
            for job in bucket
        ]


__all__ = ["Job", "QueueCounts", "QueueDocument"]
