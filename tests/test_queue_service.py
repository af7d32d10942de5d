from __future__ import annotations

import threading
from pathlib import Path

import pytest

from transfer_queue.application.services import TransferQueueService
from transfer_queue.domain.errors import QueueStoreUnavailableError, QueueValidationError
from transfer_queue.domain.jobs import Job
from transfer_queue.infrastructure.locking import FileLockGate
from transfer_queue.infrastructure.store import JsonFileQueueStore


def _service(state_dir: Path, max_retries: int = 3) -> TransferQueueService:
    return TransferQueueService(
        store=JsonFileQueueStore(state_dir / "queue.json"),
        gate=FileLockGate(state_dir / "queue.lock"),
        max_retries=max_retries,
    )


def _enqueue(service: TransferQueueService, name: str) -> Job:
    return service.enqueue(
        source=f"remote:media/{name}",
        destination=f"/data/{name}",
        display_name=name,
        size_bytes=10,
    )


def test_initialize_creates_empty_document_once(tmp_path: Path) -> None:
    service = _service(tmp_path)

    service.initialize()
    _enqueue(service, "a.mkv")
    service.initialize()

    assert service.query_counts().pending == 1
    assert service.query_paused_state() is False


def test_claims_follow_enqueue_order(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b", "c"):
        _enqueue(service, name)

    first = service.claim_batch(2)
    second = service.claim_batch(2)

    assert [job.display_name for job in first] == ["a", "b"]
    assert [job.display_name for job in second] == ["c"]
    assert service.claim_batch(2) == []
    assert service.claim_batch(0) == []


def test_enqueue_rejects_invalid_input(tmp_path: Path) -> None:
    service = _service(tmp_path)

    with pytest.raises(QueueValidationError):
        service.enqueue(source="", destination="/data/a", display_name="a", size_bytes=0)
    with pytest.raises(QueueValidationError):
        service.enqueue(source="remote:a", destination="  ", display_name="a", size_bytes=0)
    with pytest.raises(QueueValidationError):
        service.enqueue(source="remote:a", destination="/data/a", display_name="a", size_bytes=-1)

    assert service.query_counts().pending == 0


def test_concurrent_claims_never_hand_out_a_job_twice(tmp_path: Path) -> None:
    service = _service(tmp_path)
    queued = {_enqueue(service, f"file-{index}").id for index in range(20)}
    claimed: list[str] = []
    claimed_lock = threading.Lock()

    def claimer() -> None:
        contender = _service(tmp_path)
        while True:
            batch = contender.claim_for_dispatch(2)
            if not batch:
                return
            with claimed_lock:
                claimed.extend(job.id for job in batch)

    threads = [threading.Thread(target=claimer) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10.0)

    assert len(claimed) == len(set(claimed))
    assert set(claimed) == queued
    counts = service.query_counts()
    assert counts.pending == 0
    assert counts.in_flight == 20
    assert sorted(service.snapshot().job_ids()) == sorted(queued)


def test_mark_in_flight_is_idempotent(tmp_path: Path) -> None:
    service = _service(tmp_path)
    _enqueue(service, "a")
    batch = service.claim_batch(1)

    service.mark_in_flight(batch)
    service.mark_in_flight(batch)

    assert service.query_counts().in_flight == 1


def test_complete_moves_job_once(tmp_path: Path) -> None:
    service = _service(tmp_path)
    _enqueue(service, "a")
    (job,) = service.claim_for_dispatch(1)

    done = service.complete(job)

    assert done is not None
    assert done.completed_at is not None
    assert service.complete(job) is None
    counts = service.query_counts()
    assert (counts.in_flight, counts.completed) == (0, 1)


def test_three_failures_move_job_to_failed(tmp_path: Path) -> None:
    service = _service(tmp_path)
    _enqueue(service, "a")

    outcomes = []
    for _ in range(3):
        (job,) = service.claim_for_dispatch(1)
        outcomes.append(service.fail_or_retry(job))

    assert [outcome.retries for outcome in outcomes] == [1, 2, 3]
    assert outcomes[-1].failed_at is not None
    snapshot = service.snapshot()
    assert snapshot.pending == []
    assert snapshot.in_flight == []
    assert [job.retries for job in snapshot.failed] == [3]


def test_retry_goes_to_tail_of_pending(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b"):
        _enqueue(service, name)
    (job,) = service.claim_for_dispatch(1)

    retried = service.fail_or_retry(job)

    assert retried is not None
    assert retried.retries == 1
    assert [pending.display_name for pending in service.snapshot().pending] == ["b", "a"]


def test_fail_or_retry_uses_stored_retry_counter(tmp_path: Path) -> None:
    service = _service(tmp_path)
    _enqueue(service, "a")
    (job,) = service.claim_for_dispatch(1)
    service.fail_or_retry(job)
    (retried,) = service.claim_for_dispatch(1)

    # A stale copy with retries=0 must not reset the stored counter.
    outcome = service.fail_or_retry(job)

    assert retried.retries == 1
    assert outcome is not None
    assert outcome.retries == 2
    assert service.fail_or_retry(job) is None


def test_recover_crashed_puts_in_flight_jobs_first(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b", "c", "d"):
        _enqueue(service, name)
    service.claim_for_dispatch(2)

    recovered = service.recover_crashed()

    assert recovered == 2
    snapshot = service.snapshot()
    assert [job.display_name for job in snapshot.pending] == ["a", "b", "c", "d"]
    assert snapshot.in_flight == []
    assert service.recover_crashed() == 0


def test_release_in_flight_drops_only_named_jobs(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b"):
        _enqueue(service, name)
    first, second = service.claim_for_dispatch(2)

    assert service.release_in_flight([first.id]) == 1
    assert [job.id for job in service.snapshot().in_flight] == [second.id]
    assert service.release_in_flight([]) == 0


def test_remove_pending_by_index(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b", "c"):
        _enqueue(service, name)

    removed = service.remove_pending(1)

    assert removed is not None
    assert removed.display_name == "b"
    assert service.remove_pending(7) is None
    assert service.remove_pending(-1) is None
    assert [job.display_name for job in service.snapshot().pending] == ["a", "c"]


def test_retry_all_failed_resets_counters(tmp_path: Path) -> None:
    service = _service(tmp_path, max_retries=1)
    for name in ("a", "b"):
        _enqueue(service, name)
    for job in service.claim_for_dispatch(1):
        service.fail_or_retry(job)

    assert service.retry_all_failed() == 1

    snapshot = service.snapshot()
    assert snapshot.failed == []
    assert [job.display_name for job in snapshot.pending] == ["b", "a"]
    assert snapshot.pending[-1].retries == 0
    assert snapshot.pending[-1].failed_at is None


def test_clear_buckets_and_pause_flag(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b", "c"):
        _enqueue(service, name)
    (job,) = service.claim_for_dispatch(1)
    service.complete(job)

    service.set_paused(True)
    assert service.query_paused_state() is True
    assert service.clear_pending() == 2
    assert service.clear_completed() == 1
    assert service.clear_failed() == 0

    counts = service.query_counts()
    assert (counts.pending, counts.in_flight, counts.completed, counts.failed) == (0, 0, 0, 0)
    service.set_paused(False)
    assert service.query_paused_state() is False


def test_requeue_in_flight_and_pause(tmp_path: Path) -> None:
    service = _service(tmp_path)
    for name in ("a", "b"):
        _enqueue(service, name)
    service.claim_for_dispatch(1)

    assert service.requeue_in_flight_and_pause() == 1

    snapshot = service.snapshot()
    assert snapshot.paused is True
    assert [job.display_name for job in snapshot.pending] == ["a", "b"]


def test_discard_in_flight(tmp_path: Path) -> None:
    service = _service(tmp_path)
    _enqueue(service, "a")
    service.claim_for_dispatch(1)

    assert service.discard_in_flight() == 1
    assert service.query_counts().in_flight == 0


def test_malformed_document_is_never_overwritten(tmp_path: Path) -> None:
    (tmp_path / "queue.json").write_text("garbage", encoding="utf-8")
    service = _service(tmp_path)

    with pytest.raises(QueueStoreUnavailableError):
        _enqueue(service, "a")

    assert (tmp_path / "queue.json").read_text(encoding="utf-8") == "garbage"
