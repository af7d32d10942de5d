"""Application bootstrap/wiring."""

import logging
from dataclasses import dataclass

from transfer_queue.application.services import (
    QueueManagementService,
    TransferQueueService,
    TransferWorker,
    WorkerSupervisor,
)
from transfer_queue.config import Settings
from transfer_queue.domain.ports import TransferEngine, WorkerLauncher
from transfer_queue.infrastructure.launcher import SubprocessWorkerLauncher
from transfer_queue.infrastructure.liveness import PidLivenessToken
from transfer_queue.infrastructure.locking import FileLockGate
from transfer_queue.infrastructure.store import JsonFileQueueStore
from transfer_queue.infrastructure.transfers import RcloneOptions, RcloneTransferEngine

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class _StateWiring:
    queue: TransferQueueService
    liveness_token: PidLivenessToken


def _build_state(settings: Settings) -> _StateWiring:
    gate = FileLockGate(settings.lock_path)
    queue = TransferQueueService(
        store=JsonFileQueueStore(settings.queue_path),
        gate=gate,
        max_retries=settings.max_retries,
    )
    return _StateWiring(
        queue=queue,
        liveness_token=PidLivenessToken(settings.worker_pid_path, gate=gate),
    )


def _build_transfer_engine(settings: Settings) -> TransferEngine:
    return RcloneTransferEngine(
        RcloneOptions(
            binary=settings.rclone_binary,
            timeout=settings.rclone_timeout,
            connect_timeout=settings.rclone_connect_timeout,
            low_level_retries=settings.rclone_low_level_retries,
            retries=settings.rclone_retries,
            stats_interval=settings.rclone_stats_interval,
            log_file=settings.log_path,
            log_level=settings.rclone_log_level,
        )
    )


def _worker_environment(settings: Settings) -> dict[str, str]:
    """Environment pinning a launched worker to this process's state files."""

    return {
        "TRANSFER_QUEUE_STATE_DIR": str(settings.state_dir),
        "TRANSFER_QUEUE_QUEUE_FILE_NAME": settings.queue_file_name,
        "TRANSFER_QUEUE_LOCK_FILE_NAME": settings.lock_file_name,
        "TRANSFER_QUEUE_WORKER_PID_FILE_NAME": settings.worker_pid_file_name,
        "TRANSFER_QUEUE_LOG_FILE_NAME": settings.log_file_name,
        "TRANSFER_QUEUE_MAX_RETRIES": str(settings.max_retries),
        "TRANSFER_QUEUE_CONNECTION_CEILING": str(settings.connection_ceiling),
    }


def build_queue_service(settings: Settings) -> TransferQueueService:
    """Compose the gate-protected queue over the configured state directory."""

    return _build_state(settings).queue


def build_transfer_worker(
    settings: Settings,
    transfer_engine: TransferEngine | None = None,
) -> TransferWorker:
    """Compose the worker process graph."""

    state = _build_state(settings)
    return TransferWorker(
        queue=state.queue,
        liveness_token=state.liveness_token,
        transfer_engine=transfer_engine or _build_transfer_engine(settings),
        connection_ceiling=settings.connection_ceiling,
        poll_interval_seconds=settings.poll_interval_seconds,
        idle_poll_limit=settings.idle_poll_limit,
        launch_stagger_seconds=settings.launch_stagger_seconds,
        batch_cooldown_seconds=settings.batch_cooldown_seconds,
    )


def build_management_service(
    settings: Settings,
    launcher: WorkerLauncher | None = None,
) -> QueueManagementService:
    """Compose the producer-facing service graph."""

    state = _build_state(settings)
    if not settings.auto_start_worker:
        logger.info("Worker auto-start disabled; workers start only on request.")
    supervisor = WorkerSupervisor(
        liveness_token=state.liveness_token,
        launcher=launcher
        or SubprocessWorkerLauncher(
            settings.log_path,
            env_overrides=_worker_environment(settings),
        ),
        stop_timeout_seconds=settings.worker_stop_timeout_seconds,
    )
    return QueueManagementService(
        queue=state.queue,
        supervisor=supervisor,
        auto_start_worker=settings.auto_start_worker,
    )


__all__ = ["build_management_service", "build_queue_service", "build_transfer_worker"]
