"""Transfer engine adapter running ``rclone copy`` as a child process."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from transfer_queue.domain.errors import TransferFailedError
from transfer_queue.domain.ports import TransferEngine

logger = logging.getLogger(__name__)

_TERMINATE_GRACE_SECONDS = 5.0


@dataclass(slots=True, frozen=True)
class RcloneOptions:
    """Engine-level retry/timeout flags; fixed configuration."""

    binary: str = "rclone"
    timeout: str = "5m"
    connect_timeout: str = "60s"
    low_level_retries: int = 3
    retries: int = 1
    stats_interval: str = "30s"
    log_file: Path | None = None
    log_level: str = "INFO"


class RcloneTransferEngine(TransferEngine):
    """Copies one remote object into the destination's parent directory.

    ``rclone copy`` takes a target directory, so the destination path's parent
    is created and passed as the copy target.
    """

    def __init__(self, options: RcloneOptions | None = None) -> None:
        self._options = options or RcloneOptions()

    @property
    def options(self) -> RcloneOptions:
        return self._options

    def build_command(self, source: str, destination: str, stream_count: int) -> list[str]:
        """Return the argv for one transfer."""

        options = self._options
        command = [
            options.binary,
            "copy",
            source,
            str(Path(destination).parent),
            "--multi-thread-streams",
            str(max(1, stream_count)),
            "--multi-thread-cutoff",
            "0",
            "--timeout",
            options.timeout,
            "--contimeout",
            options.connect_timeout,
            "--low-level-retries",
            str(options.low_level_retries),
            "--retries",
            str(options.retries),
            f"--stats={options.stats_interval}",
            "--stats-one-line",
        ]
        if options.log_file is not None:
            command.append(f"--log-file={options.log_file}")
            command.append(f"--log-level={options.log_level}")
        return command

    async def transfer(self, source: str, destination: str, stream_count: int) -> None:
        """Run one copy to completion; raise ``TransferFailedError`` unless it exits 0."""

        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        command = self.build_command(source, destination, stream_count)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise TransferFailedError(
                f"Unable to start transfer engine '{self._options.binary}': {exc}"
            ) from exc

        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip().splitlines()
            tail = detail[-1] if detail else "<no output>"
            raise TransferFailedError(
                f"Transfer of '{source}' exited with code {process.returncode}: {tail}",
                returncode=process.returncode,
            )

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Stop a child whose transfer was cancelled."""

        if process.returncode is not None:
            return
        with suppress(ProcessLookupError):
            process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=_TERMINATE_GRACE_SECONDS)
        except TimeoutError:
            logger.warning("Transfer engine PID %s ignored SIGTERM; killing.", process.pid)
            with suppress(ProcessLookupError):
                process.kill()
            await process.wait()


__all__ = ["RcloneOptions", "RcloneTransferEngine"]
