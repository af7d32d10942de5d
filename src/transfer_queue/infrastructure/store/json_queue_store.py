"""JSON file persistence for the queue document."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from transfer_queue.domain.errors import QueueStoreUnavailableError
from transfer_queue.domain.jobs import QueueDocument
from transfer_queue.domain.ports import QueueStore

logger = logging.getLogger(__name__)


class JsonFileQueueStore(QueueStore):
    """Stores the queue document as one JSON file replaced atomically on save.

    The store does no locking of its own; callers run ``load``/``save`` inside
    the exclusive gate.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return the queue document location."""

        return self._path

    def load(self) -> QueueDocument:
        """Read and validate the document."""

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise QueueStoreUnavailableError(
                f"Queue document '{self._path}' is unreadable: {exc}"
            ) from exc
        except UnicodeDecodeError as exc:
            raise QueueStoreUnavailableError(
                f"Queue document '{self._path}' is not valid UTF-8: {exc}"
            ) from exc
        try:
            return QueueDocument.model_validate_json(raw)
        except ValidationError as exc:
            raise QueueStoreUnavailableError(
                f"Queue document '{self._path}' is malformed: {exc}"
            ) from exc

    def load_or_initialize(self) -> QueueDocument:
        """Read the document, treating a missing file as an empty queue."""

        if not self._path.exists():
            logger.info("Queue document '%s' not found; starting empty.", self._path)
            return QueueDocument()
        return self.load()

    def save(self, document: QueueDocument) -> None:
        """Write to a sibling temp file, fsync, then rename over the target."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.serialize(document)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def exists(self) -> bool:
        return self._path.exists()

    @staticmethod
    def serialize(document: QueueDocument) -> str:
        """Return the canonical on-disk text for ``document``."""

        return document.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n"


__all__ = ["JsonFileQueueStore"]
