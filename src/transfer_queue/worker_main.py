"""Background worker entrypoint."""

import asyncio
import logging
import signal
import sys
from contextlib import suppress

from transfer_queue.bootstrap import build_transfer_worker
from transfer_queue.config import Settings

_LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Send worker logs to the shared queue log file."""

    settings.state_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=settings.log_path,
        level=settings.log_level.value,
        format=_LOG_FORMAT,
        datefmt=_LOG_DATE_FORMAT,
    )


async def _main(settings: Settings) -> int:
    worker = build_transfer_worker(settings)
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGTERM, signal.SIGINT):
        # Not available on Windows event loops.
        with suppress(NotImplementedError):
            loop.add_signal_handler(signum, worker.request_stop)
    return int(await worker.run())


def run() -> None:
    """Run one worker until the queue drains or a stop is requested."""

    settings = Settings()
    configure_logging(settings)
    sys.exit(asyncio.run(_main(settings)))


if __name__ == "__main__":
    run()


__all__ = ["configure_logging", "run"]
