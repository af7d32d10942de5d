"""Dispatch policy bounding concurrent transfer streams."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONNECTION_CEILING = 2


@dataclass(slots=True, frozen=True)
class DispatchPlan:
    """How many jobs to start now and how many streams each may open."""

    batch_size: int = 0
    streams_per_job: int = 0

    @property
    def is_empty(self) -> bool:
        """Return whether the plan starts no work."""

        return self.batch_size == 0

    @property
    def total_streams(self) -> int:
        """Return connections the plan opens at once."""

        return self.batch_size * self.streams_per_job


EMPTY_PLAN = DispatchPlan()


def plan_dispatch(
    pending_count: int,
    in_flight_count: int,
    connection_ceiling: int = DEFAULT_CONNECTION_CEILING,
) -> DispatchPlan:
    """Choose the next batch size and per-job stream count.

    A job that is alone in the system (``pending + in_flight == 1``) gets every
    stream under the ceiling. Otherwise the free capacity is spread one stream
    per job, so ``batch_size * streams_per_job`` never exceeds the ceiling.
    """

    if connection_ceiling < 1:
        raise ValueError("connection_ceiling must be >= 1.")
    if pending_count < 0 or in_flight_count < 0:
        raise ValueError("Queue counts must be >= 0.")

    if in_flight_count >= connection_ceiling:
        return EMPTY_PLAN
    if pending_count == 0:
        return EMPTY_PLAN
    if pending_count + in_flight_count == 1:
        return DispatchPlan(batch_size=1, streams_per_job=connection_ceiling)

    free_slots = connection_ceiling - in_flight_count
    return DispatchPlan(batch_size=min(pending_count, free_slots), streams_per_job=1)


__all__ = ["DEFAULT_CONNECTION_CEILING", "DispatchPlan", "EMPTY_PLAN", "plan_dispatch"]
