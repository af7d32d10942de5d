"""Background worker draining the queue within the connection ceiling."""

from __future__ import annotations

import asyncio
import logging
from enum import IntEnum, StrEnum

from transfer_queue.application.services.queue_service import TransferQueueService
from transfer_queue.domain.errors import QueueStoreUnavailableError, WorkerAlreadyRunningError
from transfer_queue.domain.jobs import Job
from transfer_queue.domain.ports import LivenessToken, TransferEngine
from transfer_queue.domain.scheduling import (
    DEFAULT_CONNECTION_CEILING,
    DispatchPlan,
    plan_dispatch,
)

_DEFAULT_POLL_INTERVAL_SECONDS = 5.0
_DEFAULT_IDLE_POLL_LIMIT = 12
_DEFAULT_LAUNCH_STAGGER_SECONDS = 1.0
_DEFAULT_BATCH_COOLDOWN_SECONDS = 2.0
_BYTES_PER_MB = 1024 * 1024

logger = logging.getLogger(__name__)


class WorkerState(StrEnum):
    """Worker lifecycle states."""

    STARTING = "STARTING"
    IDLE = "IDLE"
    DISPATCHING = "DISPATCHING"
    STOPPED = "STOPPED"


class WorkerExitCode(IntEnum):
    """Process exit codes of the worker entrypoint."""

    OK = 0
    ALREADY_RUNNING = 1
    STORE_UNAVAILABLE = 2


class TransferWorker:
    """Polls the queue, dispatches batches to the engine, exits when idle."""

    def __init__(
        self,
        queue: TransferQueueService,
        liveness_token: LivenessToken,
        transfer_engine: TransferEngine,
        connection_ceiling: int = DEFAULT_CONNECTION_CEILING,
        poll_interval_seconds: float = _DEFAULT_POLL_INTERVAL_SECONDS,
        idle_poll_limit: int = _DEFAULT_IDLE_POLL_LIMIT,
        launch_stagger_seconds: float = _DEFAULT_LAUNCH_STAGGER_SECONDS,
        batch_cooldown_seconds: float = _DEFAULT_BATCH_COOLDOWN_SECONDS,
    ) -> None:
        self._queue = queue
        self._liveness_token = liveness_token
        self._transfer_engine = transfer_engine
        self._connection_ceiling = max(1, connection_ceiling)
        self._poll_interval_seconds = max(poll_interval_seconds, 0.001)
        self._idle_poll_limit = max(1, idle_poll_limit)
        self._launch_stagger_seconds = max(launch_stagger_seconds, 0.0)
        self._batch_cooldown_seconds = max(batch_cooldown_seconds, 0.0)
        self._state = WorkerState.STARTING
        self._stop_event = asyncio.Event()
        self._transfer_tasks: list[asyncio.Task[bool]] = []

    @property
    def state(self) -> WorkerState:
        return self._state

    def request_stop(self) -> None:
        """Stop the loop and cancel running transfers.

        Cancelled jobs stay in ``in_flight``; the next startup requeues them.
        """

        if self._stop_event.is_set():
            return
        logger.info("Stop requested; cancelling %s transfer(s).", len(self._transfer_tasks))
        self._stop_event.set()
        for task in self._transfer_tasks:
            task.cancel()

    async def run(self) -> int:
        """Run until idle timeout or stop request and return the exit code."""

        self._state = WorkerState.STARTING
        try:
            await asyncio.to_thread(self._liveness_token.acquire)
        except WorkerAlreadyRunningError as exc:
            logger.error("%s Exiting.", exc)
            self._state = WorkerState.STOPPED
            return WorkerExitCode.ALREADY_RUNNING

        logger.info("Worker started (PID: %s).", self._liveness_token.read_pid())
        try:
            await asyncio.to_thread(self._queue.initialize)
            await asyncio.to_thread(self._queue.recover_crashed)
            await self._run_loop()
        except QueueStoreUnavailableError:
            logger.exception("Queue document became unavailable; worker exiting.")
            return WorkerExitCode.STORE_UNAVAILABLE
        finally:
            self._state = WorkerState.STOPPED
            self._liveness_token.release()
            logger.info("Worker shutting down.")
        return WorkerExitCode.OK

    async def _run_loop(self) -> None:
        idle_polls = 0
        while not self._stop_event.is_set():
            self._state = WorkerState.IDLE
            document = await asyncio.to_thread(self._queue.snapshot)
            if document.paused:
                await self._sleep(self._poll_interval_seconds)
                continue

            counts = document.counts()
            if counts.pending == 0 and counts.in_flight == 0:
                idle_polls += 1
                if idle_polls >= self._idle_poll_limit:
                    logger.info("Queue empty, worker exiting.")
                    return
                await self._sleep(self._poll_interval_seconds)
                continue

            idle_polls = 0
            plan = plan_dispatch(
                counts.pending,
                counts.in_flight,
                connection_ceiling=self._connection_ceiling,
            )
            if plan.is_empty:
                await self._sleep(self._poll_interval_seconds)
                continue

            await self._dispatch(plan)
            if self._batch_cooldown_seconds > 0:
                await self._sleep(self._batch_cooldown_seconds)

    async def _dispatch(self, plan: DispatchPlan) -> None:
        """Claim one batch, run it to completion, settle every outcome."""

        self._state = WorkerState.DISPATCHING
        batch = await asyncio.to_thread(self._queue.claim_for_dispatch, plan.batch_size)
        if not batch:
            return
        logger.info(
            "Dispatching %s job(s) at %s stream(s) each.",
            len(batch),
            plan.streams_per_job,
        )

        self._transfer_tasks = []
        try:
            for index, job in enumerate(batch):
                if index > 0 and self._launch_stagger_seconds > 0:
                    await self._sleep(self._launch_stagger_seconds)
                if self._stop_event.is_set():
                    break
                self._transfer_tasks.append(
                    asyncio.create_task(
                        self._run_job(job, plan.streams_per_job),
                        name=f"transfer-{job.id}",
                    )
                )
            results = await asyncio.gather(*self._transfer_tasks, return_exceptions=True)
        finally:
            self._transfer_tasks = []

        for job, result in zip(batch, results, strict=False):
            if isinstance(result, QueueStoreUnavailableError):
                raise result
            if isinstance(result, asyncio.CancelledError):
                continue
            if isinstance(result, BaseException):
                logger.error(
                    "Settling job '%s' failed: %s",
                    job.id,
                    result,
                    exc_info=result,
                )

        if self._stop_event.is_set():
            return
        leftovers = await asyncio.to_thread(
            self._queue.release_in_flight,
            [job.id for job in batch],
        )
        if leftovers:
            logger.warning("Cleared %s leftover in-flight entries.", leftovers)

    async def _run_job(self, job: Job, streams: int) -> bool:
        """Transfer one job and record its outcome; return whether it succeeded."""

        logger.info(
            "Downloading: %s (%sMB) [streams=%s]",
            job.display_name,
            job.size_bytes // _BYTES_PER_MB,
            streams,
        )
        try:
            await self._transfer_engine.transfer(job.source, job.destination, streams)
        except asyncio.CancelledError:
            logger.warning("Transfer cancelled, left in flight: %s", job.display_name)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed: %s (%s)", job.display_name, exc)
            await asyncio.to_thread(self._queue.fail_or_retry, job)
            return False

        await asyncio.to_thread(self._queue.complete, job)
        return True

    async def _sleep(self, seconds: float) -> None:
        """Sleep, returning early when a stop is requested."""

        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except TimeoutError:
            pass


__all__ = ["TransferWorker", "WorkerExitCode", "WorkerState"]
