"""Detached worker process launcher."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

from transfer_queue.domain.ports import WorkerLauncher

logger = logging.getLogger(__name__)

_WORKER_MODULE = "transfer_queue.worker_main"


class SubprocessWorkerLauncher(WorkerLauncher):
    """Starts ``python -m transfer_queue.worker_main`` in its own session.

    ``env_overrides`` are layered over the caller's environment so the worker
    resolves the same state directory as the producer that launched it.
    """

    def __init__(
        self,
        log_path: Path,
        python_executable: str | None = None,
        env_overrides: dict[str, str] | None = None,
    ) -> None:
        self._log_path = log_path
        self._python_executable = python_executable or sys.executable
        self._env_overrides = dict(env_overrides or {})
        self._children: list[subprocess.Popen[bytes]] = []

    def command(self) -> list[str]:
        return [self._python_executable, "-m", _WORKER_MODULE]

    def environment(self) -> dict[str, str]:
        return {**os.environ, **self._env_overrides}

    def launch(self) -> int:
        """Spawn the worker detached from the caller's terminal."""

        self._reap_exited()

        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        with self._log_path.open("ab") as log_handle:
            process = subprocess.Popen(
                self.command(),
                stdin=subprocess.DEVNULL,
                stdout=log_handle,
                stderr=log_handle,
                env=self.environment(),
                start_new_session=True,
                close_fds=True,
            )
        self._children.append(process)
        logger.info("Started transfer worker (PID: %s).", process.pid)
        return process.pid

    def _reap_exited(self) -> None:
        # Exited workers stay zombies until their parent polls them.
        self._children = [child for child in self._children if child.poll() is None]


__all__ = ["SubprocessWorkerLauncher"]
