"""Producer-side control of the single background worker."""

from __future__ import annotations

import logging

import psutil

from transfer_queue.domain.ports import LivenessToken, WorkerLauncher

_DEFAULT_STOP_TIMEOUT_SECONDS = 10.0

logger = logging.getLogger(__name__)


class WorkerSupervisor:
    """Reports, starts, and stops the worker through its liveness token."""

    def __init__(
        self,
        liveness_token: LivenessToken,
        launcher: WorkerLauncher,
        stop_timeout_seconds: float = _DEFAULT_STOP_TIMEOUT_SECONDS,
    ) -> None:
        self._liveness_token = liveness_token
        self._launcher = launcher
        self._stop_timeout_seconds = max(stop_timeout_seconds, 0.1)

    def is_worker_alive(self) -> bool:
        return self._liveness_token.is_alive()

    def worker_pid(self) -> int | None:
        """Return the live worker PID, or ``None`` when no worker runs."""

        if not self._liveness_token.is_alive():
            return None
        return self._liveness_token.read_pid()

    def start_worker_if_not_running(self) -> bool:
        """Launch a worker unless one is alive; return whether one was launched.

        Two producers racing here may both launch; the loser exits at startup
        when it finds the winner's token.
        """

        if self._liveness_token.is_alive():
            return False
        self._launcher.launch()
        return True

    def stop_worker(self, timeout_seconds: float | None = None) -> bool:
        """Terminate the live worker and wait for it; return whether one was stopped."""

        pid = self.worker_pid()
        if pid is None:
            self._liveness_token.clear_stale()
            return False

        timeout = self._stop_timeout_seconds if timeout_seconds is None else timeout_seconds
        children: list[psutil.Process] = []
        try:
            process = psutil.Process(pid)
            children = process.children(recursive=True)
            process.terminate()
            try:
                process.wait(timeout=timeout)
            except psutil.TimeoutExpired:
                logger.warning("Worker PID %s ignored SIGTERM for %ss; killing.", pid, timeout)
                process.kill()
                process.wait(timeout=timeout)
        except psutil.NoSuchProcess:
            pass
        self._stop_orphaned_transfers(children, timeout)
        self._liveness_token.clear_stale()
        logger.info("Worker stopped (PID: %s).", pid)
        return True

    @staticmethod
    def _stop_orphaned_transfers(children: list[psutil.Process], timeout: float) -> None:
        """Terminate worker children (``rclone copy``) that outlived the worker."""

        survivors = [child for child in children if child.is_running()]
        if not survivors:
            return
        logger.warning("Stopping %s orphaned transfer process(es).", len(survivors))
        for child in survivors:
            try:
                child.terminate()
            except psutil.NoSuchProcess:
                continue
        _, alive = psutil.wait_procs(survivors, timeout=timeout)
        for child in alive:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                continue


__all__ = ["WorkerSupervisor"]
