"""PID-file liveness token enforcing a single worker instance."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import psutil

from transfer_queue.domain.errors import WorkerAlreadyRunningError
from transfer_queue.domain.ports import ExclusiveGate, LivenessToken

logger = logging.getLogger(__name__)


def pid_is_running(pid: int | None) -> bool:
    """Return whether ``pid`` names an existing process that is not a zombie."""

    if pid is None or pid <= 0:
        return False
    if not psutil.pid_exists(pid):
        return False
    try:
        # Exited-but-unreaped children still appear in the process table.
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        return True


class PidLivenessToken(LivenessToken):
    """Records the worker PID in a well-known file."""

    def __init__(
        self,
        pid_path: Path,
        gate: ExclusiveGate,
        pid: int | None = None,
    ) -> None:
        self._pid_path = pid_path
        self._gate = gate
        self._pid = os.getpid() if pid is None else pid

    @property
    def pid(self) -> int:
        """Return the process identity this token writes."""

        return self._pid

    def acquire(self) -> None:
        """Write our PID unless another live process already holds the token."""

        with self._gate.exclusive():
            existing = self.read_pid()
            if existing is not None and existing != self._pid and pid_is_running(existing):
                raise WorkerAlreadyRunningError(existing)
            if existing is not None and existing != self._pid:
                logger.info("Replacing stale worker token for PID %s.", existing)
            self._write_pid()

    def release(self) -> None:
        """Remove the token file when it still names this process."""

        with self._gate.exclusive():
            if self.read_pid() != self._pid:
                return
            self._pid_path.unlink(missing_ok=True)

    def read_pid(self) -> int | None:
        """Return the recorded PID, or ``None`` when absent or unparsable."""

        try:
            raw = self._pid_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError:
            logger.warning("Worker token '%s' is unreadable.", self._pid_path)
            return None
        if not raw.isdigit():
            return None
        return int(raw)

    def is_alive(self) -> bool:
        """Return whether the recorded PID is a running process."""

        return pid_is_running(self.read_pid())

    def clear_stale(self) -> bool:
        """Remove the token if its process is gone; return whether it was removed."""

        with self._gate.exclusive():
            pid = self.read_pid()
            if pid is not None and pid_is_running(pid):
                return False
            existed = self._pid_path.exists()
            self._pid_path.unlink(missing_ok=True)
            return existed

    def _write_pid(self) -> None:
        self._pid_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._pid_path.with_suffix(self._pid_path.suffix + ".tmp")
        tmp_path.write_text(f"{self._pid}\n", encoding="utf-8")
        os.replace(tmp_path, self._pid_path)


__all__ = ["PidLivenessToken", "pid_is_running"]
